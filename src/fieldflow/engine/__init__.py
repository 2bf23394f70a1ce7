# src/fieldflow/engine/__init__.py
"""Mapping evaluation engine.

Public entry points:
    resolve_target_data   recompute Target node output
    compile_steps         graph -> ordered ExecutionSteps
    replay_steps          ExecutionSteps (+ record) -> target records
    export_mapping_configuration / import_mapping_configuration
    validate_graph        non-fatal diagnostics
    add_node, remove_node, ... apply_edit_batch   graph edits
"""

from fieldflow.engine.compiler import compile_steps
from fieldflow.engine.editing import (
    BatchResult,
    GraphState,
    SymbolTable,
    add_edge,
    add_node,
    apply_edit_batch,
    insert_rule,
    move_rule,
    remove_edge,
    remove_node,
    remove_rule,
    renumber_rules,
    update_node,
)
from fieldflow.engine.evaluate import evaluate, record_reader, sample_reader
from fieldflow.engine.exchange import export_mapping_configuration, import_mapping_configuration
from fieldflow.engine.fields import get_path, resolve_field, value_of
from fieldflow.engine.lookup import LookupResult, apply_mapping_table, lookup
from fieldflow.engine.options import ResolutionOptions
from fieldflow.engine.replay import replay_steps
from fieldflow.engine.resolver import compute_target_record, resolve_target_data
from fieldflow.engine.tracing import trace_edge
from fieldflow.engine.transforms import apply_transform
from fieldflow.engine.validation import GraphIssue, validate_graph

__all__ = [
    "BatchResult",
    "GraphIssue",
    "GraphState",
    "LookupResult",
    "ResolutionOptions",
    "SymbolTable",
    "add_edge",
    "add_node",
    "apply_edit_batch",
    "apply_mapping_table",
    "apply_transform",
    "compile_steps",
    "compute_target_record",
    "evaluate",
    "export_mapping_configuration",
    "get_path",
    "import_mapping_configuration",
    "insert_rule",
    "lookup",
    "move_rule",
    "record_reader",
    "remove_edge",
    "remove_node",
    "remove_rule",
    "renumber_rules",
    "replay_steps",
    "resolve_field",
    "resolve_target_data",
    "sample_reader",
    "trace_edge",
    "update_node",
    "validate_graph",
    "value_of",
]
