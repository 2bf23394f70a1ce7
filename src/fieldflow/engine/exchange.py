# src/fieldflow/engine/exchange.py
"""Export to and import from the MappingConfiguration document.

export_mapping_configuration() groups nodes by kind, records every edge as
a connection and embeds the compiled execution steps, so the document is
both restorable by the editor and replayable by a runtime.
import_mapping_configuration() rebuilds the node/edge snapshot: sources,
then targets, then transforms, then conversion tables, then edges.
"""

import uuid
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from fieldflow.contracts.configuration import (
    ConfigurationMetadata,
    ConnectionConfig,
    ExecutionSection,
    MappingConfiguration,
    MappingNodeConfig,
    NodesSection,
    SchemaConfig,
    SourceNodeConfig,
    TargetNodeConfig,
    TransformNodeConfig,
)
from fieldflow.contracts.enums import ConnectionType
from fieldflow.contracts.graph import (
    ConversionMappingData,
    ConversionMappingNode,
    Edge,
    Node,
    SchemaNodeData,
    SourceNode,
    TargetNode,
    TransformData,
    TransformNode,
)
from fieldflow.core.canonical import CANONICAL_VERSION, graph_fingerprint
from fieldflow.core.config import ExportSettings
from fieldflow.core.logging import get_logger
from fieldflow.engine.compiler import compile_steps

logger = get_logger(__name__)

DEFAULT_MAPPING_NAME = "Untitled Mapping"


def _connection_type(source: Node | None, target: Node | None) -> ConnectionType:
    if isinstance(source, ConversionMappingNode) or isinstance(target, ConversionMappingNode):
        return ConnectionType.MAPPING
    if isinstance(source, TransformNode) or isinstance(target, TransformNode):
        return ConnectionType.TRANSFORM
    return ConnectionType.DIRECT


def _nodes_section(nodes: Sequence[Node]) -> NodesSection:
    sources: list[SourceNodeConfig] = []
    targets: list[TargetNodeConfig] = []
    transforms: list[TransformNodeConfig] = []
    mappings: list[MappingNodeConfig] = []
    for node in nodes:
        match node:
            case SourceNode():
                sources.append(
                    SourceNodeConfig(
                        id=node.id,
                        label=node.data.label,
                        position=node.position,
                        schema_def=SchemaConfig(fields=node.data.fields),
                        sample_data=node.data.records,
                    )
                )
            case TargetNode():
                targets.append(
                    TargetNodeConfig(
                        id=node.id,
                        label=node.data.label,
                        position=node.position,
                        schema_def=SchemaConfig(fields=node.data.fields),
                        output_data=node.data.records,
                    )
                )
            case TransformNode():
                transforms.append(
                    TransformNodeConfig(
                        id=node.id,
                        label=node.data.label,
                        position=node.position,
                        transform_type=node.data.transform_kind,
                        config=node.data.config,
                    )
                )
            case ConversionMappingNode():
                mappings.append(
                    MappingNodeConfig(
                        id=node.id,
                        label=node.data.label,
                        position=node.position,
                        mappings=node.data.mappings,
                    )
                )
    return NodesSection(
        sources=tuple(sources),
        targets=tuple(targets),
        transforms=tuple(transforms),
        mappings=tuple(mappings),
    )


def export_mapping_configuration(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    name: str = DEFAULT_MAPPING_NAME,
    settings: ExportSettings | None = None,
    *,
    mapping_id: str | None = None,
    created_at: datetime | None = None,
) -> MappingConfiguration:
    """Build the export document for a graph.

    Args:
        nodes: Node snapshot, exported as-is (target output included)
        edges: Edge snapshot; every edge becomes a connection
        name: Human-readable mapping name
        settings: Version and metadata defaults
        mapping_id: Fixed id; a random "mapping_<hex>" id when omitted
        created_at: Fixed timestamp; now (UTC) when omitted

    Returns:
        The MappingConfiguration document
    """
    export_settings = settings if settings is not None else ExportSettings()
    by_id = {node.id: node for node in reversed(nodes)}
    timestamp = created_at if created_at is not None else datetime.now(UTC)

    connections = tuple(
        ConnectionConfig(
            id=edge.id,
            source_node_id=edge.source,
            target_node_id=edge.target,
            source_handle=edge.source_handle,
            target_handle=edge.target_handle,
            type=_connection_type(by_id.get(edge.source), by_id.get(edge.target)),
        )
        for edge in edges
    )
    configuration = MappingConfiguration(
        id=mapping_id if mapping_id is not None else f"mapping_{uuid.uuid4().hex}",
        name=name,
        version=export_settings.version,
        created_at=timestamp.isoformat(),
        nodes=_nodes_section(nodes),
        connections=connections,
        execution=ExecutionSection(steps=tuple(compile_steps(nodes, edges))),
        metadata=ConfigurationMetadata(
            description=export_settings.description,
            tags=export_settings.tags,
            author=export_settings.author,
            fingerprint=graph_fingerprint(nodes, edges),
            canonical_version=CANONICAL_VERSION,
        ),
    )
    logger.info(
        "Exported mapping configuration",
        mapping_id=configuration.id,
        node_count=len(nodes),
        connection_count=len(connections),
        step_count=len(configuration.execution.steps),
    )
    return configuration


def import_mapping_configuration(
    configuration: MappingConfiguration | dict[str, Any],
) -> tuple[tuple[Node, ...], tuple[Edge, ...]]:
    """Rebuild nodes and edges from an export document.

    Connections whose endpoints are not among the imported nodes are
    dropped. Execution steps are not needed to rebuild the graph and are
    ignored.

    Args:
        configuration: A validated document or its parsed JSON

    Returns:
        (nodes, edges)

    Raises:
        ConfigurationImportError: If a dict document fails validation
    """
    document = (
        configuration
        if isinstance(configuration, MappingConfiguration)
        else MappingConfiguration.from_dict(configuration)
    )
    section = document.nodes
    nodes: list[Node] = []
    for source in section.sources:
        nodes.append(
            SourceNode(
                id=source.id,
                position=source.position,
                data=SchemaNodeData(label=source.label, fields=source.schema_def.fields, records=source.sample_data),
            )
        )
    for target in section.targets:
        nodes.append(
            TargetNode(
                id=target.id,
                position=target.position,
                data=SchemaNodeData(label=target.label, fields=target.schema_def.fields, records=target.output_data),
            )
        )
    for transform in section.transforms:
        nodes.append(
            TransformNode(
                id=transform.id,
                position=transform.position,
                data=TransformData(label=transform.label, config=transform.config),
            )
        )
    for mapping in section.mappings:
        nodes.append(
            ConversionMappingNode(
                id=mapping.id,
                position=mapping.position,
                data=ConversionMappingData(label=mapping.label, mappings=mapping.mappings),
            )
        )

    known = {node.id for node in nodes}
    edges: list[Edge] = []
    for connection in document.connections:
        if connection.source_node_id not in known or connection.target_node_id not in known:
            logger.debug("Dropping connection with missing endpoint", connection_id=connection.id)
            continue
        edges.append(
            Edge(
                id=connection.id,
                source=connection.source_node_id,
                target=connection.target_node_id,
                source_handle=connection.source_handle,
                target_handle=connection.target_handle,
            )
        )
    logger.info("Imported mapping configuration", mapping_id=document.id, node_count=len(nodes), edge_count=len(edges))
    return tuple(nodes), tuple(edges)
