# tests/property/engine/test_rule_ordering_state_machine.py
"""Property-based stateful tests for concat/coalesce rule ordering.

The editor keeps rule priorities dense: after any insert, remove or move the
priorities read 1..N in list order. A RuleBasedStateMachine drives random
edit sequences against a plain list model of rule ids.

Key Invariants:
- Priorities are exactly 1..N after every operation
- Rule order always matches the model
- Removing or moving an unknown rule raises and leaves the rules untouched
"""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st
from hypothesis.stateful import RuleBasedStateMachine, invariant, precondition, rule

from fieldflow.contracts.errors import GraphEditError
from fieldflow.contracts.graph import ConcatRule
from fieldflow.engine.editing import insert_rule, move_rule, remove_rule, renumber_rules
from tests.property.settings import STANDARD_SETTINGS, STATE_MACHINE_SETTINGS

positions = st.one_of(st.none(), st.integers(min_value=-2, max_value=8))


class RuleOrderingStateMachine(RuleBasedStateMachine):
    """Stateful property tests for rule insert/remove/move."""

    def __init__(self) -> None:
        super().__init__()
        self.rules: tuple[ConcatRule, ...] = ()
        self.model: list[str] = []
        self.next_id = 0

    def _clamp(self, index: int, size: int) -> int:
        return max(0, min(index, size))

    @rule(index=positions, priority=st.integers(min_value=-5, max_value=50))
    def insert(self, index: int | None, priority: int) -> None:
        """Insert a fresh rule; its own priority is overwritten by position."""
        rule_id = f"rule{self.next_id}"
        self.next_id += 1

        self.rules = insert_rule(self.rules, ConcatRule(id=rule_id, priority=priority), index)
        self.model.insert(len(self.model) if index is None else self._clamp(index, len(self.model)), rule_id)

    @precondition(lambda self: self.model)
    @rule(data=st.data())
    def remove(self, data: st.DataObject) -> None:
        """Remove an existing rule and close the gap."""
        rule_id = data.draw(st.sampled_from(self.model))

        self.rules = remove_rule(self.rules, rule_id)
        self.model.remove(rule_id)

    @precondition(lambda self: self.model)
    @rule(data=st.data(), index=st.integers(min_value=-2, max_value=8))
    def move(self, data: st.DataObject, index: int) -> None:
        """Move an existing rule to a (clamped) position."""
        rule_id = data.draw(st.sampled_from(self.model))

        self.rules = move_rule(self.rules, rule_id, index)
        self.model.remove(rule_id)
        self.model.insert(self._clamp(index, len(self.model)), rule_id)

    @rule()
    def unknown_rule_is_rejected(self) -> None:
        """Remove and move of a missing id raise GraphEditError without side effects."""
        before = self.rules
        with pytest.raises(GraphEditError):
            remove_rule(self.rules, "no-such-rule")
        with pytest.raises(GraphEditError):
            move_rule(self.rules, "no-such-rule", 0)
        assert self.rules == before

    @invariant()
    def priorities_are_dense(self) -> None:
        """Invariant: Priorities read 1..N in list order."""
        assert [r.priority for r in self.rules] == list(range(1, len(self.rules) + 1))

    @invariant()
    def order_matches_model(self) -> None:
        """Invariant: Rule ids appear in model order."""
        assert [r.id for r in self.rules] == self.model


# Create the test class that pytest will discover
TestRuleOrderingStateMachine = RuleOrderingStateMachine.TestCase
TestRuleOrderingStateMachine.settings = STATE_MACHINE_SETTINGS


# =============================================================================
# Additional Non-Stateful Ordering Properties
# =============================================================================


class TestRenumberRules:
    """Property tests for renumber_rules()."""

    @given(priorities=st.lists(st.integers(min_value=-10, max_value=10), max_size=8))
    @STANDARD_SETTINGS
    def test_renumber_is_stable_sort_then_dense(self, priorities: list[int]) -> None:
        """Property: Ties keep list order; result priorities are 1..N."""
        rules = [ConcatRule(id=f"r{i}", priority=p) for i, p in enumerate(priorities)]
        expected = [r.id for r in sorted(rules, key=lambda r: r.priority)]

        renumbered = renumber_rules(rules)

        assert [r.id for r in renumbered] == expected
        assert [r.priority for r in renumbered] == list(range(1, len(rules) + 1))

    @given(priorities=st.lists(st.integers(min_value=-10, max_value=10), max_size=8))
    @STANDARD_SETTINGS
    def test_renumber_is_idempotent(self, priorities: list[int]) -> None:
        """Property: Renumbering dense rules returns the same rule objects."""
        once = renumber_rules([ConcatRule(id=f"r{i}", priority=p) for i, p in enumerate(priorities)])

        twice = renumber_rules(once)

        assert all(a is b for a, b in zip(once, twice, strict=True))
