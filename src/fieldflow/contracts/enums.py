"""All kinds, operators, and policies used across module boundaries.

Values are the literal strings that appear in graph documents and exported
mapping configurations, so they must never be renamed.
"""

from enum import StrEnum


class NodeKind(StrEnum):
    """Variant of a node in the mapping graph.

    Stored in graph documents (nodes[].type).
    """

    SOURCE = "source"
    TARGET = "target"
    CONVERSION_MAPPING = "conversionMapping"
    TRANSFORM = "transform"


class FieldType(StrEnum):
    """Declared type of a schema field."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"


class TransformKind(StrEnum):
    """Kind of a transform node, the discriminator of its config.

    Values:
        STRING_OP: Single-input string operation (uppercase, prefix, replace...)
        DATE_FORMAT: Single-input date token rearrangement
        SPLITTER: Single-input split, returns one part
        CONCAT: Multi-input join in rule priority order
        COALESCE: Multi-input first-non-blank selection
        CONDITIONAL: Single-input IF/THEN/ELSE
        STATIC_VALUE: No inputs, one constant per output handle
    """

    STRING_OP = "string_op"
    DATE_FORMAT = "date_format"
    SPLITTER = "splitter"
    CONCAT = "concat"
    COALESCE = "coalesce"
    CONDITIONAL = "conditional"
    STATIC_VALUE = "static_value"


class StringOperation(StrEnum):
    """Operations supported by the string transform."""

    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    TRIM = "trim"
    PREFIX = "prefix"
    SUFFIX = "suffix"
    SUBSTRING = "substring"
    REPLACE = "replace"


class ConditionOperator(StrEnum):
    """Comparison operators of the conditional transform.

    The ordering operators compare numerically; the date_* operators parse
    both sides as dates.
    """

    EQ = "="
    NE = "!="
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="
    DATE_BEFORE = "date_before"
    DATE_AFTER = "date_after"
    DATE_BEFORE_TODAY = "date_before_today"
    DATE_AFTER_TODAY = "date_after_today"


class StepType(StrEnum):
    """Classification of a compiled execution step."""

    DIRECT_MAPPING = "direct_mapping"
    TRANSFORM = "transform"
    CONVERSION_MAPPING = "conversion_mapping"


class ConnectionType(StrEnum):
    """Classification of an exported connection by its upstream node."""

    DIRECT = "direct"
    TRANSFORM = "transform"
    MAPPING = "mapping"


class UnmappedPolicy(StrEnum):
    """What a conversion table emits when no rule matches.

    Values:
        SENTINEL: Emit "NotMapped" so the gap is visible in the output
        PASSTHROUGH: Emit the untranslated source value
    """

    SENTINEL = "sentinel"
    PASSTHROUGH = "passthrough"
