# src/fieldflow/contracts/sentinels.py
"""Sentinel values for the mapping engine.

Two different things live here:

- MISSING: an in-process marker meaning "no value was found". It is distinct
  from None, which is a JSON null that really was present in a record.
- Visible sentinel strings: fixed strings written into target fields when a
  lookup or transform fails. They ARE the error channel to the editor, so a
  failure shows up in the output data instead of aborting evaluation.

Example usage:
    from fieldflow.contracts.sentinels import MISSING, is_blank

    value = value_of(node, field)
    if is_blank(value):
        # Nothing to write
        ...
"""

from typing import Any, Final


class MissingSentinel:
    """Sentinel class to distinguish missing values from None.

    This is a singleton - use the MISSING instance, not the class directly.
    Comparison should always use `is` identity, never equality.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "<MISSING>"

    def __bool__(self) -> bool:
        return False


MISSING: Final[MissingSentinel] = MissingSentinel()
"""Singleton sentinel indicating a value was not found.

Use identity comparison: `if value is MISSING:`
"""

NOT_MAPPED: Final[str] = "NotMapped"
INVALID_DATE_FORMAT: Final[str] = "Invalid Date Format"
UNSUPPORTED_FORMAT: Final[str] = "Unsupported Format"
INDEX_OUT_OF_RANGE: Final[str] = "Index out of range"
TRANSFORM_ERROR: Final[str] = "Transform Error"

VISIBLE_SENTINELS: Final[frozenset[str]] = frozenset(
    {NOT_MAPPED, INVALID_DATE_FORMAT, UNSUPPORTED_FORMAT, INDEX_OUT_OF_RANGE, TRANSFORM_ERROR}
)


def is_blank(value: Any) -> bool:
    """True when a value must not be written to a target field.

    Absent values, JSON null and the empty string are all "no value".
    Zero and False are real values.
    """
    return value is MISSING or value is None or (isinstance(value, str) and value == "")
