# src/fieldflow/engine/resolver.py
"""Value resolver: recompute every Target node's output record.

resolve_target_data() is a pure function of the graph. For each Target node
it walks the inbound edges in edge order, traces each one back to its
sources, evaluates the resulting expression against sample values and
writes the result under the target field's name. Blank results (absent,
null, "") are never written, and a later edge into the same field
overwrites an earlier one.

Target output is never read as an upstream input, so one pass reaches a
fixed point: resolving an already-resolved graph changes nothing.
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from fieldflow.contracts.graph import Edge, Node, SchemaField, TargetNode
from fieldflow.contracts.lineage import ValueExpr
from fieldflow.contracts.sentinels import is_blank
from fieldflow.core.graph import MappingGraph
from fieldflow.core.logging import get_logger
from fieldflow.engine.evaluate import evaluate, sample_reader
from fieldflow.engine.fields import resolve_field
from fieldflow.engine.options import DEFAULT_OPTIONS, ResolutionOptions
from fieldflow.engine.tracing import trace_edge

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class TargetBinding:
    """An inbound edge of a Target node whose both ends resolved."""

    edge: Edge
    target_field: SchemaField
    expression: ValueExpr


def iter_target_bindings(graph: MappingGraph, target: TargetNode) -> Iterator[TargetBinding]:
    """Inbound edges of `target` in write order, skipping unresolvable ones."""
    for edge in graph.incoming_edges(target.id):
        target_field = resolve_field(target, edge.target_handle)
        if target_field is None:
            logger.debug("Target handle did not resolve", node_id=target.id, edge_id=edge.id, handle=edge.target_handle)
            continue
        expression = trace_edge(graph, edge)
        if expression is None:
            logger.debug("Edge has no upstream value", node_id=target.id, edge_id=edge.id)
            continue
        yield TargetBinding(edge=edge, target_field=target_field, expression=expression)


def compute_target_record(
    graph: MappingGraph,
    target: TargetNode,
    options: ResolutionOptions = DEFAULT_OPTIONS,
) -> dict[str, Any]:
    """Output record of one Target node; {} when nothing is connected."""
    record: dict[str, Any] = {}
    for binding in iter_target_bindings(graph, target):
        value = evaluate(binding.expression, sample_reader, options)
        if is_blank(value):
            logger.debug("Blank value suppressed", node_id=target.id, edge_id=binding.edge.id)
            continue
        record[binding.target_field.name] = value
    return record


def _with_records(node: TargetNode, record: dict[str, Any]) -> TargetNode:
    records = (record,)
    if node.data.records == records:
        return node
    return node.model_copy(update={"data": node.data.model_copy(update={"records": records})})


def resolve_target_data(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    options: ResolutionOptions | None = None,
) -> tuple[Node, ...]:
    """Recompute the output record of every Target node.

    Args:
        nodes: Node snapshot; not modified
        edges: Edge snapshot; not modified
        options: Unmapped-value policy and reference date

    Returns:
        New node collection in the same order. Non-target nodes and targets
        whose output did not change are the same objects as in `nodes`;
        every other target has data == [record]. Never raises for graph
        content.
    """
    opts = options if options is not None else DEFAULT_OPTIONS
    graph = MappingGraph(nodes, edges)
    resolved: list[Node] = []
    for node in nodes:
        if isinstance(node, TargetNode):
            resolved.append(_with_records(node, compute_target_record(graph, node, opts)))
        else:
            resolved.append(node)
    logger.debug("Resolved target data", node_count=graph.node_count, edge_count=graph.edge_count)
    return tuple(resolved)
