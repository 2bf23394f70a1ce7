"""Value-to-text coercion shared by lookups and transforms.

Graph documents are authored in a browser editor, so every string operation
in the engine works on the JavaScript `String(value)` rendering of its input.
Matching that rendering keeps lookups stable when a sample value is the
number 5 and a mapping rule says "5".
"""

import json
import math
from typing import Any

from fieldflow.contracts.sentinels import MISSING

# Above this magnitude JavaScript switches to exponent notation
_JS_EXPONENT_THRESHOLD = 1e21


def _float_to_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < _JS_EXPONENT_THRESHOLD:
        return str(int(value))
    return repr(value)


def to_text(value: Any) -> str:
    """Render a JSON-compatible value as text.

    Args:
        value: Any value found in a record, config, or sample

    Returns:
        The JavaScript String() rendering: booleans lowercase, integral floats
        without ".0", lists comma-joined. Objects render as compact JSON.

    Examples:
        >>> to_text(True)
        'true'
        >>> to_text(5.0)
        '5'
        >>> to_text(["a", 1, None])
        'a,1,'
    """
    if value is MISSING:
        return "undefined"
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _float_to_text(value)
    if isinstance(value, list | tuple):
        return ",".join("" if item is None or item is MISSING else to_text(item) for item in value)
    if isinstance(value, dict):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)
