# src/fieldflow/contracts/graph.py
"""Mapping graph data model.

These models are both the in-memory representation and the wire format:
graph documents from the editor validate directly into them and dump back
with camelCase keys. Instances are frozen; engine functions build new
collections instead of mutating the caller's.

Node variants form a closed union discriminated by `type`:

    SourceNode            schema fields + sample records
    TargetNode            schema fields + computed output (records[0])
    ConversionMappingNode ordered {from, to} lookup rules
    TransformNode         a TransformConfig, discriminated by `transformKind`

Example document:
    {
      "nodes": [
        {"id": "src", "type": "source",
         "data": {"fields": [{"id": "f1", "name": "city"}], "data": [{"city": "oslo"}]}},
        {"id": "up", "type": "transform",
         "data": {"config": {"transformKind": "string_op", "operation": "uppercase"}}},
        {"id": "tgt", "type": "target", "data": {"fields": [{"id": "t1", "name": "City"}]}}
      ],
      "edges": [
        {"id": "e1", "source": "src", "sourceHandle": "f1", "target": "up", "targetHandle": "input"},
        {"id": "e2", "source": "up", "sourceHandle": "output", "target": "tgt", "targetHandle": "t1"}
      ]
    }
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from fieldflow.contracts.coercion import to_text
from fieldflow.contracts.enums import (
    ConditionOperator,
    FieldType,
    NodeKind,
    StringOperation,
    TransformKind,
)
from fieldflow.contracts.errors import GraphDocumentError

# Handles with a fixed meaning on intermediate nodes
INPUT_HANDLE = "input"
OUTPUT_HANDLE = "output"
DEFAULT_HANDLE = "default"
VALUE_HANDLE = "value"


class WireModel(BaseModel):
    """Base for every graph model.

    camelCase aliases on the wire, snake_case attributes in Python; unknown
    keys (editor styling, UI state) are ignored.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Schema fields
# =============================================================================


class SchemaField(WireModel):
    """A field definition on a schema node.

    `id` is unique within the node's field tree. Flat schemas often use the
    name as id; nested schemas use a dotted path ("customer.address.city").
    """

    id: str
    name: str
    type: FieldType = FieldType.STRING
    example_value: Any = None
    children: tuple[SchemaField, ...] = ()
    group_by: str | None = None  # Read by replay, not by the resolver
    path: str | None = None

    @property
    def value_path(self) -> str:
        """Path of this field's value inside a record.

        An explicit path wins; otherwise a dotted or indexed id is a path,
        and a plain id means the value lives under the field name.
        """
        if self.path:
            return self.path
        if "." in self.id or "[" in self.id:
            return self.id
        return self.name


def iter_fields(fields: tuple[SchemaField, ...]) -> Iterator[SchemaField]:
    """Yield every field of a field tree, depth-first, parents before children."""
    stack = list(reversed(fields))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


# =============================================================================
# Conversion mapping rules
# =============================================================================


class MappingRule(WireModel):
    """One row of a conversion table: `from` value translates to `to` value."""

    from_: str = Field(alias="from")
    to: str

    @field_validator("from_", "to", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        # Editors store numeric codes as numbers; lookups compare text anyway
        return value if isinstance(value, str) else to_text(value)


# =============================================================================
# Transform configurations
# =============================================================================


class StringOpConfig(WireModel):
    """Single-input string operation.

    `prefix`/`suffix` apply to their operations; `start`/`length` to
    substring; `find` (a regular expression) and `replacement` to replace.
    """

    transform_kind: Literal[TransformKind.STRING_OP] = TransformKind.STRING_OP
    operation: StringOperation = StringOperation.UPPERCASE
    prefix: str = ""
    suffix: str = ""
    start: int = 0
    length: int = 10
    find: str = ""
    replacement: str = ""


class DateFormatConfig(WireModel):
    """Date token rearrangement between two format strings."""

    transform_kind: Literal[TransformKind.DATE_FORMAT] = TransformKind.DATE_FORMAT
    input_format: str = "YYYY-MM-DD"
    output_format: str = "DD/MM/YYYY"


class SplitterConfig(WireModel):
    """Split by delimiter and keep the part at `index`."""

    transform_kind: Literal[TransformKind.SPLITTER] = TransformKind.SPLITTER
    delimiter: str = ","
    index: int = 0
    max_split: int | None = Field(default=None, ge=0)


class ConcatRule(WireModel):
    """One input slot of a concat transform."""

    id: str
    priority: int = 1
    source_field: str = ""
    source_handle: str | None = None

    @property
    def handle(self) -> str:
        """Input handle an edge must target to bind this rule."""
        return self.source_handle or self.id


class ConcatConfig(WireModel):
    """Join bound input values in ascending priority order."""

    transform_kind: Literal[TransformKind.CONCAT] = TransformKind.CONCAT
    rules: tuple[ConcatRule, ...] = ()
    delimiter: str = ","


class CoalesceRule(WireModel):
    """One candidate of a coalesce transform."""

    id: str
    priority: int = 1
    output_value: str = ""
    source_path: str | None = None

    @property
    def handles(self) -> tuple[str, str]:
        """Input handles that bind this rule (the editor prefixes rule ids)."""
        return (self.id, f"rule-{self.id}")


class CoalesceConfig(WireModel):
    """Emit the output of the first rule whose bound input has a value."""

    transform_kind: Literal[TransformKind.COALESCE] = TransformKind.COALESCE
    rules: tuple[CoalesceRule, ...] = ()
    default_value: str = ""


class ConditionalConfig(WireModel):
    """IF input <operator> compare_value THEN then_value ELSE else_value."""

    transform_kind: Literal[TransformKind.CONDITIONAL] = TransformKind.CONDITIONAL
    operator: ConditionOperator = ConditionOperator.EQ
    compare_value: str = ""
    then_value: str = ""
    else_value: str = ""

    @field_validator("compare_value", "then_value", "else_value", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return value if isinstance(value, str) else to_text(value)


class StaticValue(WireModel):
    """A constant exposed on its own output handle."""

    id: str
    value: Any = ""


class StaticValueConfig(WireModel):
    """No inputs; each constant is an output handle."""

    transform_kind: Literal[TransformKind.STATIC_VALUE] = TransformKind.STATIC_VALUE
    values: tuple[StaticValue, ...] = ()


TransformConfig = Annotated[
    StringOpConfig | DateFormatConfig | SplitterConfig | ConcatConfig | CoalesceConfig | ConditionalConfig | StaticValueConfig,
    Field(discriminator="transform_kind"),
]

# Kinds that read one bound input (the last inbound edge)
SINGLE_INPUT_KINDS: frozenset[TransformKind] = frozenset(
    {
        TransformKind.STRING_OP,
        TransformKind.DATE_FORMAT,
        TransformKind.SPLITTER,
        TransformKind.CONDITIONAL,
    }
)


# =============================================================================
# Nodes
# =============================================================================


class Position(WireModel):
    """Canvas position. Carried through for the editor, ignored by the engine."""

    x: float = 0.0
    y: float = 0.0


class SchemaNodeData(WireModel):
    """Payload of source and target nodes.

    `records` is `data` on the wire. For a target node, records[0] is the
    live computed output.
    """

    label: str = ""
    fields: tuple[SchemaField, ...] = ()
    records: tuple[dict[str, Any], ...] = Field(default=(), alias="data")


class ConversionMappingData(WireModel):
    """Payload of a conversion mapping node."""

    label: str = ""
    mappings: tuple[MappingRule, ...] = ()


class TransformData(WireModel):
    """Payload of a transform node."""

    label: str = ""
    config: TransformConfig

    @property
    def transform_kind(self) -> TransformKind:
        return self.config.transform_kind


class SourceNode(WireModel):
    id: str
    type: Literal[NodeKind.SOURCE] = NodeKind.SOURCE
    position: Position = Position()
    data: SchemaNodeData = SchemaNodeData()


class TargetNode(WireModel):
    id: str
    type: Literal[NodeKind.TARGET] = NodeKind.TARGET
    position: Position = Position()
    data: SchemaNodeData = SchemaNodeData()


class ConversionMappingNode(WireModel):
    id: str
    type: Literal[NodeKind.CONVERSION_MAPPING] = NodeKind.CONVERSION_MAPPING
    position: Position = Position()
    data: ConversionMappingData = ConversionMappingData()


class TransformNode(WireModel):
    id: str
    type: Literal[NodeKind.TRANSFORM] = NodeKind.TRANSFORM
    position: Position = Position()
    data: TransformData


Node = Annotated[
    SourceNode | TargetNode | ConversionMappingNode | TransformNode,
    Field(discriminator="type"),
]

type SchemaNode = SourceNode | TargetNode

NODE_ADAPTER: TypeAdapter[Node] = TypeAdapter(Node)


# =============================================================================
# Edges and whole graphs
# =============================================================================


class Edge(WireModel):
    """A directed connection from a source handle to a target handle."""

    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None


class GraphSnapshot(WireModel):
    """An immutable snapshot of a whole mapping graph."""

    nodes: tuple[Node, ...] = ()
    edges: tuple[Edge, ...] = ()

    @classmethod
    def from_dict(cls, document: dict[str, Any]) -> Self:
        """Validate a graph document with a single clear error type.

        Args:
            document: Parsed JSON/YAML with "nodes" and "edges" lists

        Returns:
            Validated snapshot

        Raises:
            GraphDocumentError: If the document is not a valid mapping graph
        """
        if not isinstance(document, dict):
            raise GraphDocumentError(f"Graph document must be an object, got {type(document).__name__}")
        try:
            return cls.model_validate(document)
        except ValidationError as e:
            raise GraphDocumentError(f"Invalid graph document: {e}") from e


def parse_node(payload: dict[str, Any]) -> Node:
    """Validate a single node dict.

    Raises:
        GraphDocumentError: If the payload is not a valid node
    """
    try:
        return NODE_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise GraphDocumentError(f"Invalid node: {e}") from e


def parse_edge(payload: dict[str, Any]) -> Edge:
    """Validate a single edge dict.

    Raises:
        GraphDocumentError: If the payload is not a valid edge
    """
    try:
        return Edge.model_validate(payload)
    except ValidationError as e:
        raise GraphDocumentError(f"Invalid edge: {e}") from e
