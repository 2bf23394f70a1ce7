# tests/property/engine/test_transform_properties.py
"""Property-based tests for the multi-input transforms.

Concat and coalesce both read their rules in priority order, never in list
order, so the properties here shuffle the rule list and check that only
priorities matter.

Key Invariants:
- Concat joins exactly the non-blank inputs, in ascending priority
- Coalesce returns the first non-blank input by priority, else the default
- Neither transform raises for any combination of bound inputs
"""

from __future__ import annotations

from typing import Any

from hypothesis import given
from hypothesis import strategies as st

from fieldflow.contracts.coercion import to_text
from fieldflow.contracts.graph import DEFAULT_HANDLE, VALUE_HANDLE, CoalesceConfig, CoalesceRule, ConcatConfig, ConcatRule
from fieldflow.contracts.sentinels import is_blank
from fieldflow.engine.transforms import coalesce_values, concat_values
from tests.property.conftest import scalar_values
from tests.property.settings import STANDARD_SETTINGS

RULE_IDS = ("r1", "r2", "r3", "r4")


@st.composite
def rule_priorities(draw: st.DrawFn) -> list[tuple[str, int]]:
    """Rule ids paired with distinct priorities, in shuffled list order."""
    ids = draw(st.lists(st.sampled_from(RULE_IDS), min_size=1, max_size=len(RULE_IDS), unique=True))
    priorities = draw(st.permutations(range(1, len(ids) + 1)))
    return list(zip(ids, priorities, strict=True))


bound_values = st.dictionaries(st.sampled_from(RULE_IDS), scalar_values)


def _by_priority(pairs: list[tuple[str, int]]) -> list[str]:
    return [rule_id for rule_id, _ in sorted(pairs, key=lambda pair: pair[1])]


class TestConcatProperties:
    """Concat output is determined by priorities and present values only."""

    @given(pairs=rule_priorities(), values=bound_values, delimiter=st.sampled_from([",", " | ", ""]))
    @STANDARD_SETTINGS
    def test_joins_present_values_in_priority_order(
        self, pairs: list[tuple[str, int]], values: dict[str, Any], delimiter: str
    ) -> None:
        """Property: Output equals a priority-ordered join of non-blank inputs."""
        config = ConcatConfig(rules=tuple(ConcatRule(id=i, priority=p) for i, p in pairs), delimiter=delimiter)
        expected = delimiter.join(
            to_text(values[rule_id]) for rule_id in _by_priority(pairs) if rule_id in values and not is_blank(values[rule_id])
        )

        assert concat_values(config, values) == expected

    @given(pairs=rule_priorities(), values=bound_values)
    @STANDARD_SETTINGS
    def test_list_order_is_irrelevant(self, pairs: list[tuple[str, int]], values: dict[str, Any]) -> None:
        """Property: Reversing the rule list does not change the output."""
        rules = tuple(ConcatRule(id=i, priority=p) for i, p in pairs)

        forward = concat_values(ConcatConfig(rules=rules), values)
        backward = concat_values(ConcatConfig(rules=rules[::-1]), values)

        assert forward == backward


class TestCoalesceProperties:
    """Coalesce picks the first defined input."""

    @given(pairs=rule_priorities(), values=bound_values)
    @STANDARD_SETTINGS
    def test_value_handle_returns_first_defined_input(self, pairs: list[tuple[str, int]], values: dict[str, Any]) -> None:
        """Property: The "value" output is the first non-blank input by priority."""
        config = CoalesceConfig(rules=tuple(CoalesceRule(id=i, priority=p) for i, p in pairs), default_value="fallback")
        defined = [values[i] for i in _by_priority(pairs) if i in values and not is_blank(values[i])]

        result = coalesce_values(config, values, VALUE_HANDLE)

        if defined:
            assert result is defined[0]
        else:
            assert result == "fallback"

    @given(pairs=rule_priorities(), values=bound_values)
    @STANDARD_SETTINGS
    def test_output_value_labels_the_winning_rule(self, pairs: list[tuple[str, int]], values: dict[str, Any]) -> None:
        """Property: With outputValue set, the result names the winning rule."""
        config = CoalesceConfig(
            rules=tuple(CoalesceRule(id=i, priority=p, output_value=f"out-{i}") for i, p in pairs),
            default_value="fallback",
        )
        winners = [i for i in _by_priority(pairs) if i in values and not is_blank(values[i])]

        result = coalesce_values(config, values)

        assert result == (f"out-{winners[0]}" if winners else "fallback")

    @given(pairs=rule_priorities(), fallback=st.text(alphabet="xyz", min_size=1, max_size=3))
    @STANDARD_SETTINGS
    def test_default_input_beats_default_value(self, pairs: list[tuple[str, int]], fallback: str) -> None:
        """Property: With no rule input, a bound "default" input wins over defaultValue."""
        config = CoalesceConfig(rules=tuple(CoalesceRule(id=i, priority=p) for i, p in pairs), default_value="configured")

        assert coalesce_values(config, {DEFAULT_HANDLE: fallback}) == fallback
