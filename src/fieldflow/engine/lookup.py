"""Conversion table lookup."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from fieldflow.contracts.coercion import to_text
from fieldflow.contracts.enums import UnmappedPolicy
from fieldflow.contracts.graph import MappingRule
from fieldflow.contracts.sentinels import NOT_MAPPED


@dataclass(frozen=True, slots=True)
class LookupResult:
    """Outcome of a table lookup. `value` is meaningful only when matched."""

    matched: bool
    value: str | None = None


NO_MATCH = LookupResult(matched=False)


def lookup(rules: Sequence[MappingRule], value: Any) -> LookupResult:
    """First rule whose trimmed `from` equals the trimmed text of `value`.

    Examples:
        >>> from fieldflow.contracts.graph import MappingRule
        >>> rules = [MappingRule(from_="A", to="X"), MappingRule(from_="A", to="Y")]
        >>> lookup(rules, " A ")
        LookupResult(matched=True, value='X')
    """
    key = to_text(value).strip()
    for rule in rules:
        if rule.from_.strip() == key:
            return LookupResult(matched=True, value=rule.to)
    return NO_MATCH


def apply_mapping_table(
    rules: Sequence[MappingRule],
    value: Any,
    policy: UnmappedPolicy = UnmappedPolicy.SENTINEL,
) -> Any:
    """Translate a value through a conversion table.

    An unmatched value (including any value against an empty table) becomes
    "NotMapped" under the sentinel policy, or stays as-is under passthrough.
    """
    result = lookup(rules, value)
    if result.matched:
        return result.value
    match policy:
        case UnmappedPolicy.SENTINEL:
            return NOT_MAPPED
        case UnmappedPolicy.PASSTHROUGH:
            return value
