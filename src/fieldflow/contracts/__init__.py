# src/fieldflow/contracts/__init__.py
"""Shared contracts for the mapping engine.

Enums, sentinels, graph models, value-expression trees, execution steps and
the export document. This package is a LEAF MODULE with no outbound
dependencies to core/engine.

Import patterns:
    from fieldflow.contracts import GraphSnapshot, SourceNode, Edge, MISSING
"""

from fieldflow.contracts.coercion import to_text
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
from fieldflow.contracts.enums import (
    ConditionOperator,
    ConnectionType,
    FieldType,
    NodeKind,
    StepType,
    StringOperation,
    TransformKind,
    UnmappedPolicy,
)
from fieldflow.contracts.errors import (
    ConfigurationImportError,
    FieldflowError,
    GraphDocumentError,
    GraphEditError,
    SymbolResolutionError,
)
from fieldflow.contracts.execution import (
    ExecutionStep,
    StepConversion,
    StepSource,
    StepTarget,
    StepTransform,
)
from fieldflow.contracts.graph import (
    DEFAULT_HANDLE,
    INPUT_HANDLE,
    OUTPUT_HANDLE,
    VALUE_HANDLE,
    CoalesceConfig,
    CoalesceRule,
    ConcatConfig,
    ConcatRule,
    ConditionalConfig,
    ConversionMappingData,
    ConversionMappingNode,
    DateFormatConfig,
    Edge,
    GraphSnapshot,
    MappingRule,
    Node,
    Position,
    SchemaField,
    SchemaNode,
    SchemaNodeData,
    SourceNode,
    SplitterConfig,
    StaticValue,
    StaticValueConfig,
    StringOpConfig,
    TargetNode,
    TransformConfig,
    TransformData,
    TransformNode,
    iter_fields,
    parse_edge,
    parse_node,
)
from fieldflow.contracts.lineage import FieldRef, LookupRef, TransformRef, ValueExpr, iter_field_refs
from fieldflow.contracts.sentinels import (
    INDEX_OUT_OF_RANGE,
    INVALID_DATE_FORMAT,
    MISSING,
    NOT_MAPPED,
    TRANSFORM_ERROR,
    UNSUPPORTED_FORMAT,
    VISIBLE_SENTINELS,
    MissingSentinel,
    is_blank,
)

__all__ = [
    "DEFAULT_HANDLE",
    "INDEX_OUT_OF_RANGE",
    "INPUT_HANDLE",
    "INVALID_DATE_FORMAT",
    "MISSING",
    "NOT_MAPPED",
    "OUTPUT_HANDLE",
    "TRANSFORM_ERROR",
    "UNSUPPORTED_FORMAT",
    "VALUE_HANDLE",
    "VISIBLE_SENTINELS",
    "CoalesceConfig",
    "CoalesceRule",
    "ConcatConfig",
    "ConcatRule",
    "ConditionOperator",
    "ConditionalConfig",
    "ConfigurationImportError",
    "ConfigurationMetadata",
    "ConnectionConfig",
    "ConnectionType",
    "ConversionMappingData",
    "ConversionMappingNode",
    "DateFormatConfig",
    "Edge",
    "ExecutionSection",
    "ExecutionStep",
    "FieldRef",
    "FieldType",
    "FieldflowError",
    "GraphDocumentError",
    "GraphEditError",
    "GraphSnapshot",
    "LookupRef",
    "MappingConfiguration",
    "MappingNodeConfig",
    "MappingRule",
    "MissingSentinel",
    "Node",
    "NodeKind",
    "NodesSection",
    "Position",
    "SchemaConfig",
    "SchemaField",
    "SchemaNode",
    "SchemaNodeData",
    "SourceNode",
    "SourceNodeConfig",
    "SplitterConfig",
    "StaticValue",
    "StaticValueConfig",
    "StepConversion",
    "StepSource",
    "StepTarget",
    "StepTransform",
    "StepType",
    "StringOpConfig",
    "StringOperation",
    "SymbolResolutionError",
    "TargetNode",
    "TargetNodeConfig",
    "TransformConfig",
    "TransformData",
    "TransformKind",
    "TransformNode",
    "TransformNodeConfig",
    "TransformRef",
    "UnmappedPolicy",
    "ValueExpr",
    "is_blank",
    "iter_field_refs",
    "iter_fields",
    "parse_edge",
    "parse_node",
    "to_text",
]
