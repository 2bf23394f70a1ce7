# src/fieldflow/engine/transforms.py
"""Transform function library.

Every function here is total over its input: malformed data and unusable
configuration produce a visible sentinel string instead of an exception.
apply_transform() is the single seam where transform nodes are executed;
it dispatches on the config variant and converts anything unexpected into
"Transform Error" so sibling branches keep evaluating.

Text semantics follow the browser editor the graphs come from: values are
coerced with to_text() before string work, numeric comparisons coerce like
JavaScript's Number(), and regex replacements understand $&, $1 and $$.
"""

import math
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any

from fieldflow.contracts.coercion import to_text
from fieldflow.contracts.enums import ConditionOperator, StringOperation
from fieldflow.contracts.graph import (
    DEFAULT_HANDLE,
    INPUT_HANDLE,
    VALUE_HANDLE,
    CoalesceConfig,
    ConcatConfig,
    ConditionalConfig,
    DateFormatConfig,
    SplitterConfig,
    StaticValueConfig,
    StringOpConfig,
    TransformConfig,
)
from fieldflow.contracts.sentinels import (
    INDEX_OUT_OF_RANGE,
    INVALID_DATE_FORMAT,
    MISSING,
    TRANSFORM_ERROR,
    UNSUPPORTED_FORMAT,
    is_blank,
)
from fieldflow.core.logging import get_logger
from fieldflow.engine.options import DEFAULT_OPTIONS, ResolutionOptions

logger = get_logger(__name__)

_JS_NUMBER = re.compile(r"^[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|Infinity)$")
_JS_RADIX_PREFIXES = {"0x": 16, "0X": 16, "0o": 8, "0O": 8, "0b": 2, "0B": 2}
_JS_REPLACEMENT_TOKEN = re.compile(r"\$(\$|&|`|'|\d{1,2})")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


# =============================================================================
# String operations
# =============================================================================


def _expand_replacement(template: str, match: re.Match[str]) -> str:
    """Expand a JavaScript String.replace() template for one match."""
    group_count = len(match.groups())

    def group_text(number: int) -> str:
        return match.group(number) or ""

    def substitute(token: re.Match[str]) -> str:
        code = token.group(1)
        if code == "$":
            return "$"
        if code == "&":
            return match.group(0)
        if code == "`":
            return match.string[: match.start()]
        if code == "'":
            return match.string[match.end() :]
        number = int(code)
        if len(code) == 2 and 0 < number <= group_count:
            return group_text(number)
        first = int(code[0])
        if 0 < first <= group_count:
            return group_text(first) + code[1:]
        return token.group(0)

    return _JS_REPLACEMENT_TOKEN.sub(substitute, template)


def _substring(text: str, start: int, end: int) -> str:
    # String.prototype.substring clamps to [0, len] and swaps reversed bounds
    lo = min(max(start, 0), len(text))
    hi = min(max(end, 0), len(text))
    if lo > hi:
        lo, hi = hi, lo
    return text[lo:hi]


def string_op(config: StringOpConfig, value: Any) -> str:
    """Apply a string operation to the text of `value`.

    Raises:
        re.error: If a replace pattern does not compile (apply_transform
            turns this into "Transform Error")
    """
    text = to_text(value)
    match config.operation:
        case StringOperation.UPPERCASE:
            return text.upper()
        case StringOperation.LOWERCASE:
            return text.lower()
        case StringOperation.TRIM:
            return text.strip()
        case StringOperation.PREFIX:
            return config.prefix + text
        case StringOperation.SUFFIX:
            return text + config.suffix
        case StringOperation.SUBSTRING:
            return _substring(text, config.start, config.start + config.length)
        case StringOperation.REPLACE:
            pattern = re.compile(config.find)
            return pattern.sub(lambda m: _expand_replacement(config.replacement, m), text)


# =============================================================================
# Dates
# =============================================================================


def reformat_date(config: DateFormatConfig, value: Any) -> str:
    """Rearrange date tokens. Only YYYY-MM-DD -> DD/MM/YYYY is supported.

    Examples:
        >>> reformat_date(DateFormatConfig(), "2024-01-05")
        '05/01/2024'
        >>> reformat_date(DateFormatConfig(), "not-a-date")
        'Invalid Date Format'
    """
    if config.input_format != "YYYY-MM-DD" or config.output_format != "DD/MM/YYYY":
        return UNSUPPORTED_FORMAT
    parts = to_text(value).split("-")
    if len(parts) != 3 or len(parts[0]) != 4:
        return INVALID_DATE_FORMAT
    year, month, day = parts
    return f"{day}/{month}/{year}"


def parse_date(text: str) -> datetime | None:
    """Parse YYYY-MM-DD or ISO-8601 text.

    Timezone-aware values are converted to naive UTC so everything compares.
    Returns None for anything unparseable.
    """
    text = text.strip()
    try:
        plain = _ISO_DATE.match(text)
        if plain:
            return datetime(int(plain.group(1)), int(plain.group(2)), int(plain.group(3)))
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


# =============================================================================
# Splitter
# =============================================================================


def split_text(config: SplitterConfig, value: Any) -> str:
    """Split and pick one part.

    A max_split of N keeps only the first N + 1 parts; 0 or None means no cap.
    """
    text = to_text(value)
    parts = list(text) if config.delimiter == "" else text.split(config.delimiter)
    if config.max_split:
        parts = parts[: config.max_split + 1]
    if 0 <= config.index < len(parts):
        return parts[config.index]
    return INDEX_OUT_OF_RANGE


# =============================================================================
# Multi-input transforms
# =============================================================================


def concat_values(config: ConcatConfig, values: Mapping[str, Any]) -> str:
    """Join bound rule values in ascending priority, skipping blanks.

    Args:
        config: Concat configuration
        values: Input value per rule id
    """
    ordered = sorted(config.rules, key=lambda rule: rule.priority)
    present = [to_text(values[rule.id]) for rule in ordered if not is_blank(values.get(rule.id, MISSING))]
    return config.delimiter.join(present)


def coalesce_values(config: CoalesceConfig, values: Mapping[str, Any], output_handle: str | None = None) -> Any:
    """First rule, by priority, whose bound input has a value.

    The "value" output handle yields the matched input itself; any other
    handle yields the rule's outputValue, or the input when outputValue is
    empty. With no match, a non-blank "default" input beats defaultValue.
    """
    for rule in sorted(config.rules, key=lambda r: r.priority):
        candidate = values.get(rule.id, MISSING)
        if is_blank(candidate):
            continue
        if output_handle == VALUE_HANDLE:
            return candidate
        return rule.output_value or candidate
    fallback = values.get(DEFAULT_HANDLE, MISSING)
    if not is_blank(fallback):
        return fallback
    return config.default_value


# =============================================================================
# Conditional
# =============================================================================


def to_number(text: str) -> float:
    """Coerce text like JavaScript Number(): blank is 0, junk is NaN."""
    text = text.strip()
    if text == "":
        return 0.0
    radix = _JS_RADIX_PREFIXES.get(text[:2])
    if radix is not None:
        try:
            return float(int(text[2:], radix))
        except ValueError:
            return math.nan
    if not _JS_NUMBER.match(text):
        return math.nan
    if text.endswith("Infinity"):
        return -math.inf if text.startswith("-") else math.inf
    return float(text)


def _compare_dates(left: str, right: str, operator: ConditionOperator) -> bool:
    lhs, rhs = parse_date(left), parse_date(right)
    if lhs is None or rhs is None:
        return False
    return lhs < rhs if operator is ConditionOperator.DATE_BEFORE else lhs > rhs


def _compare_to_today(left: str, today: date, operator: ConditionOperator) -> bool:
    parsed = parse_date(left)
    if parsed is None:
        return False
    day = parsed.date()
    return day < today if operator is ConditionOperator.DATE_BEFORE_TODAY else day > today


def evaluate_condition(operator: ConditionOperator, value: Any, compare_value: str, today: date) -> bool:
    """Evaluate `value <operator> compare_value` on trimmed text.

    NaN compares false in every direction, so numeric operators on
    non-numeric text are false, and so is any date operator on a side that
    does not parse.
    """
    left = to_text(value).strip()
    right = compare_value.strip()
    match operator:
        case ConditionOperator.EQ:
            return left == right
        case ConditionOperator.NE:
            return left != right
        case ConditionOperator.GT:
            return to_number(left) > to_number(right)
        case ConditionOperator.LT:
            return to_number(left) < to_number(right)
        case ConditionOperator.GE:
            return to_number(left) >= to_number(right)
        case ConditionOperator.LE:
            return to_number(left) <= to_number(right)
        case ConditionOperator.DATE_BEFORE | ConditionOperator.DATE_AFTER:
            return _compare_dates(left, right, operator)
        case ConditionOperator.DATE_BEFORE_TODAY | ConditionOperator.DATE_AFTER_TODAY:
            return _compare_to_today(left, today, operator)


def conditional(config: ConditionalConfig, value: Any, today: date) -> str:
    if evaluate_condition(config.operator, value, config.compare_value, today):
        return config.then_value
    return config.else_value


# =============================================================================
# Static values
# =============================================================================


def static_value(config: StaticValueConfig, output_handle: str | None) -> Any:
    """Constant exposed on `output_handle`; a lone constant answers any handle."""
    for constant in config.values:
        if constant.id == output_handle:
            return constant.value
    if len(config.values) == 1:
        return config.values[0].value
    return MISSING


# =============================================================================
# Dispatch
# =============================================================================


def apply_transform(
    config: TransformConfig,
    inputs: Mapping[str, Any],
    output_handle: str | None = None,
    options: ResolutionOptions = DEFAULT_OPTIONS,
) -> Any:
    """Run one transform node.

    Args:
        config: The node's transform configuration
        inputs: Input values by slot ("input", rule ids, "default");
            unbound slots may be absent or MISSING
        output_handle: Handle the consuming edge leaves through
        options: Evaluation options (reference date for *_today)

    Returns:
        The transform output, or MISSING when a single-input transform has
        no input value. A conditional without input takes its else branch.
        Never raises.
    """
    single = inputs.get(INPUT_HANDLE, MISSING)
    try:
        match config:
            case StaticValueConfig():
                return static_value(config, output_handle)
            case ConcatConfig():
                return concat_values(config, inputs)
            case CoalesceConfig():
                return coalesce_values(config, inputs, output_handle)
            case ConditionalConfig() if single is MISSING or single is None:
                return config.else_value
            case _ if single is MISSING or single is None:
                return MISSING
            case StringOpConfig():
                return string_op(config, single)
            case DateFormatConfig():
                return reformat_date(config, single)
            case SplitterConfig():
                return split_text(config, single)
            case ConditionalConfig():
                return conditional(config, single, options.current_date())
    except re.error as e:
        logger.warning("Transform pattern rejected", transform_kind=config.transform_kind, error=str(e))
        return TRANSFORM_ERROR
    except Exception as e:
        logger.warning(
            "Transform raised unexpectedly",
            transform_kind=config.transform_kind,
            error_type=type(e).__name__,
            error=str(e),
        )
        return TRANSFORM_ERROR
    return MISSING
