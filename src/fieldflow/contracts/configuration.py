# src/fieldflow/contracts/configuration.py
"""The MappingConfiguration export document.

    {
      id, name, version, createdAt,
      nodes: {sources, targets, transforms, mappings},
      connections: [{id, sourceNodeId, targetNodeId, sourceHandle, targetHandle, type}],
      execution: {steps},
      metadata: {description, tags, author, fingerprint, canonicalVersion}
    }

Node entries are flattened for readability: schema nodes carry their fields
under "schema" and their records under "sampleData"/"outputData";
transform nodes carry "transformType" next to their config.
"""

from typing import Any, Literal, Self

from pydantic import Field, ValidationError

from fieldflow.contracts.enums import ConnectionType, TransformKind
from fieldflow.contracts.errors import ConfigurationImportError
from fieldflow.contracts.execution import ExecutionStep
from fieldflow.contracts.graph import MappingRule, Position, SchemaField, TransformConfig, WireModel


class SchemaConfig(WireModel):
    fields: tuple[SchemaField, ...] = ()


class SourceNodeConfig(WireModel):
    id: str
    type: Literal["source"] = "source"
    label: str = ""
    position: Position = Position()
    schema_def: SchemaConfig = Field(default=SchemaConfig(), alias="schema")
    sample_data: tuple[dict[str, Any], ...] = ()


class TargetNodeConfig(WireModel):
    id: str
    type: Literal["target"] = "target"
    label: str = ""
    position: Position = Position()
    schema_def: SchemaConfig = Field(default=SchemaConfig(), alias="schema")
    output_data: tuple[dict[str, Any], ...] = ()


class TransformNodeConfig(WireModel):
    id: str
    type: Literal["transform"] = "transform"
    label: str = ""
    position: Position = Position()
    transform_type: TransformKind
    config: TransformConfig


class MappingNodeConfig(WireModel):
    id: str
    type: Literal["mapping"] = "mapping"
    label: str = ""
    position: Position = Position()
    mappings: tuple[MappingRule, ...] = ()


class NodesSection(WireModel):
    sources: tuple[SourceNodeConfig, ...] = ()
    targets: tuple[TargetNodeConfig, ...] = ()
    transforms: tuple[TransformNodeConfig, ...] = ()
    mappings: tuple[MappingNodeConfig, ...] = ()


class ConnectionConfig(WireModel):
    id: str
    source_node_id: str
    target_node_id: str
    source_handle: str | None = None
    target_handle: str | None = None
    type: ConnectionType = ConnectionType.DIRECT


class ExecutionSection(WireModel):
    steps: tuple[ExecutionStep, ...] = ()


class ConfigurationMetadata(WireModel):
    """Descriptive metadata plus the graph fingerprint taken at export time."""

    description: str | None = None
    tags: tuple[str, ...] = ()
    author: str | None = None
    fingerprint: str | None = None
    canonical_version: str | None = None


class MappingConfiguration(WireModel):
    """A complete exported mapping."""

    id: str
    name: str
    version: str = "1.0.0"
    created_at: str
    nodes: NodesSection = NodesSection()
    connections: tuple[ConnectionConfig, ...] = ()
    execution: ExecutionSection = ExecutionSection()
    metadata: ConfigurationMetadata | None = None

    @classmethod
    def from_dict(cls, document: dict[str, Any]) -> Self:
        """Validate an exported document.

        Raises:
            ConfigurationImportError: If the document is not a valid configuration
        """
        if not isinstance(document, dict):
            raise ConfigurationImportError(f"Configuration must be an object, got {type(document).__name__}")
        try:
            return cls.model_validate(document)
        except ValidationError as e:
            raise ConfigurationImportError(f"Invalid mapping configuration: {e}") from e

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
