# src/fieldflow/engine/tracing.py
"""Backward tracing from an edge to a value-expression tree.

trace_edge() follows an edge upstream through conversion tables and
transform nodes until it reaches Source fields. The walk uses an explicit
stack of frames instead of recursion, so chain depth is bounded only by
memory. Each frame remembers the node ids on its own backward path: meeting
one of them again is a cycle and that input becomes unbound (None). The same
node reached through two different branches is traced for both.

Which inbound edges feed which input slot:

    ConversionMapping   last edge on handle "input" (any edge if none uses it)
    single-input kinds  last inbound edge
    Concat              per rule: last edge whose targetHandle is the rule handle
    Coalesce            per rule: last edge on rule id or "rule-<id>";
                        "default" slot from the last edge on "default"
    StaticValue         no inputs
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fieldflow.contracts.graph import (
    DEFAULT_HANDLE,
    INPUT_HANDLE,
    SINGLE_INPUT_KINDS,
    CoalesceConfig,
    ConcatConfig,
    ConversionMappingNode,
    Edge,
    Node,
    SourceNode,
    TargetNode,
    TransformNode,
)
from fieldflow.contracts.lineage import FieldRef, LookupRef, TransformRef, ValueExpr
from fieldflow.contracts.sentinels import MISSING
from fieldflow.core.graph import MappingGraph
from fieldflow.core.logging import get_logger
from fieldflow.engine.fields import enclosing_array, resolve_field, value_of

logger = get_logger(__name__)

type IntermediateNode = ConversionMappingNode | TransformNode


@dataclass
class _Frame:
    """One intermediate node awaiting its inputs."""

    node: IntermediateNode
    output_handle: str | None
    path: frozenset[str]
    pending: list[tuple[str, Edge]]
    inputs: dict[str, ValueExpr | None] = field(default_factory=dict)
    current_slot: str | None = None


def _last(edges: list[Edge]) -> Edge | None:
    return edges[-1] if edges else None


def input_bindings(graph: MappingGraph, node: IntermediateNode) -> list[tuple[str, Edge]]:
    """(slot, edge) pairs feeding an intermediate node, in slot order."""
    incoming = graph.incoming_edges(node.id)
    bindings: list[tuple[str, Edge]] = []

    match node:
        case ConversionMappingNode():
            on_input = [e for e in incoming if e.target_handle == INPUT_HANDLE]
            chosen = _last(on_input or incoming)
            if chosen is not None:
                bindings.append((INPUT_HANDLE, chosen))
        case TransformNode() if node.data.transform_kind in SINGLE_INPUT_KINDS:
            chosen = _last(incoming)
            if chosen is not None:
                bindings.append((INPUT_HANDLE, chosen))
        case TransformNode():
            config = node.data.config
            if isinstance(config, ConcatConfig):
                for concat_rule in config.rules:
                    chosen = _last([e for e in incoming if e.target_handle == concat_rule.handle])
                    if chosen is not None:
                        bindings.append((concat_rule.id, chosen))
            elif isinstance(config, CoalesceConfig):
                for coalesce_rule in config.rules:
                    chosen = _last([e for e in incoming if e.target_handle in coalesce_rule.handles])
                    if chosen is not None:
                        bindings.append((coalesce_rule.id, chosen))
                chosen = _last([e for e in incoming if e.target_handle == DEFAULT_HANDLE])
                if chosen is not None:
                    bindings.append((DEFAULT_HANDLE, chosen))
    return bindings


def _field_ref(node: SourceNode, handle: str | None) -> FieldRef | None:
    source_field = resolve_field(node, handle)
    if source_field is None:
        logger.debug("Source handle did not resolve", node_id=node.id, handle=handle)
        return None
    sample = value_of(node, source_field)
    array = enclosing_array(node, source_field)
    return FieldRef(
        node_id=node.id,
        field_id=source_field.id,
        field_name=source_field.name,
        path=source_field.value_path,
        sample=None if sample is MISSING else sample,
        array_path=array.value_path if array is not None else None,
    )


def _finish(frame: _Frame) -> ValueExpr:
    match frame.node:
        case ConversionMappingNode():
            return LookupRef(
                node_id=frame.node.id,
                rules=frame.node.data.mappings,
                input=frame.inputs.get(INPUT_HANDLE),
            )
        case TransformNode():
            return TransformRef(
                node_id=frame.node.id,
                config=frame.node.data.config,
                output_handle=frame.output_handle,
                inputs=frame.inputs,
            )


def trace_edge(graph: MappingGraph, edge: Edge) -> ValueExpr | None:
    """Expression for the value an edge carries.

    Args:
        graph: Indexed graph snapshot
        edge: Any edge; only its source end is traced

    Returns:
        The expression tree, or None when the edge's upstream is missing,
        is a Target node, or is a Source field that does not resolve.
    """
    root = _start(graph, edge, frozenset())
    if not isinstance(root, _Frame):
        return root

    stack: list[_Frame] = [root]
    while True:
        frame = stack[-1]
        if frame.pending:
            slot, inbound = frame.pending.pop(0)
            frame.current_slot = slot
            step = _start(graph, inbound, frame.path)
            if isinstance(step, _Frame):
                stack.append(step)
            else:
                frame.inputs[slot] = step
            continue

        stack.pop()
        expr = _finish(frame)
        if not stack:
            return expr
        parent = stack[-1]
        assert parent.current_slot is not None
        parent.inputs[parent.current_slot] = expr


def _start(graph: MappingGraph, edge: Edge, path: frozenset[str]) -> ValueExpr | _Frame | None:
    """Leaf expression for the edge's upstream node, or a frame when it has inputs to trace."""
    node: Node | None = graph.get_node(edge.source)
    match node:
        case None:
            logger.debug("Edge references a missing node", edge_id=edge.id, node_id=edge.source)
            return None
        case _ if node.id in path:
            logger.debug("Cycle detected while tracing", edge_id=edge.id, node_id=node.id)
            return None
        case SourceNode():
            return _field_ref(node, edge.source_handle)
        case TargetNode():
            # Target output is never an upstream input
            return None
        case ConversionMappingNode() | TransformNode():
            return _Frame(
                node=node,
                output_handle=edge.source_handle,
                path=path | {node.id},
                pending=input_bindings(graph, node),
            )
