# tests/property/conftest.py
"""Shared Hypothesis strategies for property-based tests.

Strategy Categories:
- Scalar values as they appear in editor-authored sample records
- Conversion tables
- Whole mapping graphs: one source, a handful of intermediate nodes, one
  target, and arbitrary edges between them (cycles, dangling references and
  unresolvable handles included)

Usage:
    from tests.property.conftest import mapping_graphs

    @given(graph=mapping_graphs())
    def test_resolver_never_raises(graph: MappingGraphCase) -> None:
        ...
"""

# =============================================================================
# Hypothesis Settings
# =============================================================================
#
# For standardized @settings decorators, import from tests.property.settings:
#   from tests.property.settings import STANDARD_SETTINGS, SLOW_SETTINGS
#
# Tiers: DETERMINISM (500), STATE_MACHINE (200), STANDARD (100), SLOW (50), QUICK (20)
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hypothesis import strategies as st

from fieldflow.contracts.enums import StringOperation
from fieldflow.contracts.graph import (
    ConcatConfig,
    ConcatRule,
    DateFormatConfig,
    Edge,
    MappingRule,
    Node,
    SplitterConfig,
    StringOpConfig,
)
from tests.fixtures.factories import make_edge, make_mapping, make_source, make_target, make_transform

SOURCE_FIELDS = ("a", "b", "c")
TARGET_FIELDS = ("x", "y", "z")

# =============================================================================
# Values
# =============================================================================

# Short text keeps lookups likely to hit; includes padding and the empty string
short_text = st.text(alphabet="ab -AB", max_size=4)

# JSON scalars found in sample records (finite numbers only, as in JSON)
scalar_values = st.one_of(
    st.none(),
    short_text,
    st.integers(min_value=-5, max_value=5),
    st.booleans(),
    st.floats(min_value=-10, max_value=10, allow_nan=False, allow_infinity=False),
)

# Sample records: any subset of the source fields
sample_records = st.dictionaries(st.sampled_from(SOURCE_FIELDS), scalar_values, max_size=len(SOURCE_FIELDS))

mapping_rules = st.lists(
    st.builds(lambda f, t: MappingRule(from_=f, to=t), short_text, st.text(alphabet="xyz", min_size=1, max_size=3)),
    max_size=4,
)

# =============================================================================
# Graphs
# =============================================================================


@dataclass(frozen=True)
class MappingGraphCase:
    """A generated graph; `targets` lists the Target node ids."""

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    targets: tuple[str, ...]


_SINGLE_INPUT_CONFIGS = (
    StringOpConfig(operation=StringOperation.UPPERCASE),
    StringOpConfig(operation=StringOperation.TRIM),
    StringOpConfig(operation=StringOperation.PREFIX, prefix="p-"),
    StringOpConfig(operation=StringOperation.SUBSTRING, start=1, length=2),
    DateFormatConfig(),
    SplitterConfig(delimiter=" ", index=1),
)


@st.composite
def intermediate_nodes(draw: st.DrawFn, node_id: str) -> Node:
    """A conversion table, a single-input transform or a two-rule concat."""
    kind = draw(st.sampled_from(["table", "transform", "concat"]))
    if kind == "table":
        rules = draw(mapping_rules)
        return make_mapping(node_id, [(rule.from_, rule.to) for rule in rules])
    if kind == "transform":
        return make_transform(node_id, draw(st.sampled_from(_SINGLE_INPUT_CONFIGS)))
    config = ConcatConfig(
        rules=(ConcatRule(id="r1", priority=draw(st.integers(1, 3))), ConcatRule(id="r2", priority=draw(st.integers(1, 3)))),
        delimiter=draw(st.sampled_from([",", " ", ""])),
    )
    return make_transform(node_id, config)


def _input_handles(node: Node) -> list[str]:
    if node.type == "target":
        return [*TARGET_FIELDS, "unknown"]
    if node.type == "transform" and isinstance(node.data.config, ConcatConfig):  # type: ignore[union-attr]
        return ["r1", "r2", "r9"]
    return ["input"]


def _output_handles(node: Node) -> list[str]:
    if node.type == "source":
        return [*SOURCE_FIELDS, "unknown"]
    if node.type == "target":
        return list(TARGET_FIELDS)
    return ["output"]


@st.composite
def mapping_graphs(draw: st.DrawFn, max_intermediates: int = 4, max_edges: int = 10) -> MappingGraphCase:
    """Arbitrary graphs over one source, two targets and a few intermediate nodes.

    Edges may run in any direction between any two nodes, so cycles,
    self-loops and target-to-target edges all occur. A few edges point at a
    node id that does not exist.
    """
    count = draw(st.integers(min_value=0, max_value=max_intermediates))
    intermediates = [draw(intermediate_nodes(f"n{i}")) for i in range(count)]
    stale = draw(st.booleans())
    targets = [
        make_target("t1", TARGET_FIELDS, records=[{"x": "stale"}] if stale else None),
        make_target("t2", TARGET_FIELDS),
    ]
    nodes: list[Node] = [make_source("src", SOURCE_FIELDS, records=[draw(sample_records)]), *intermediates, *targets]
    by_id = {node.id: node for node in nodes}
    upstream_ids = [node.id for node in nodes] + ["ghost"]
    downstream_ids = [node.id for node in nodes if node.type != "source"]

    edges: list[Edge] = []
    for index in range(draw(st.integers(min_value=0, max_value=max_edges))):
        source_id = draw(st.sampled_from(upstream_ids))
        target_id = draw(st.sampled_from(downstream_ids))
        source = by_id.get(source_id)
        source_handle = draw(st.sampled_from(_output_handles(source))) if source is not None else "x"
        target_handle = draw(st.sampled_from(_input_handles(by_id[target_id])))
        edges.append(make_edge(source_id, source_handle, target_id, target_handle, edge_id=f"e{index}"))

    return MappingGraphCase(nodes=tuple(nodes), edges=tuple(edges), targets=("t1", "t2"))


def target_records(nodes: tuple[Node, ...]) -> dict[str, Any]:
    """records[0] of every Target node, by id."""
    return {node.id: node.data.records[0] for node in nodes if node.type == "target"}  # type: ignore[union-attr]
