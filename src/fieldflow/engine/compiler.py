# src/fieldflow/engine/compiler.py
"""Execution step compiler.

Turns a graph into the ordered step list a runtime without the editor can
replay. Steps follow the resolver's write order exactly (Target nodes in
node order, inbound edges in edge order), so last-write-wins produces the
same result on replay. Edges into intermediate nodes do not become steps of
their own; they are folded into the expression of the step they feed.
"""

from collections.abc import Sequence
from typing import Any

from fieldflow.contracts.enums import StepType, StringOperation
from fieldflow.contracts.execution import (
    ExecutionStep,
    StepConversion,
    StepSource,
    StepTarget,
    StepTransform,
)
from fieldflow.contracts.graph import Edge, Node, StringOpConfig, TargetNode, TransformConfig
from fieldflow.contracts.lineage import FieldRef, LookupRef, TransformRef, iter_field_refs
from fieldflow.core.graph import MappingGraph
from fieldflow.core.logging import get_logger
from fieldflow.engine.fields import enclosing_array
from fieldflow.engine.resolver import TargetBinding, iter_target_bindings

logger = get_logger(__name__)


def _transform_summary(config: TransformConfig) -> StepTransform:
    parameters: dict[str, Any] = config.model_dump(mode="json", by_alias=True, exclude={"transform_kind"})
    operation: StringOperation | None = None
    if isinstance(config, StringOpConfig):
        operation = config.operation
        del parameters["operation"]
    return StepTransform(type=config.transform_kind, operation=operation, parameters=parameters)


def _step_source(binding: TargetBinding) -> StepSource:
    leaves = iter_field_refs(binding.expression)
    if leaves:
        origin = leaves[0]
        return StepSource(
            node_id=origin.node_id,
            field_id=origin.field_id,
            field_name=origin.field_name,
            value=origin.sample,
            source_path=origin.path,
        )
    # Constant-only chains (static values) originate at the node the edge leaves
    handle = binding.edge.source_handle or ""
    return StepSource(node_id=binding.edge.source, field_id=handle, field_name=handle)


def _build_step(number: int, target: TargetNode, binding: TargetBinding) -> ExecutionStep:
    expression = binding.expression
    field = binding.target_field
    array = enclosing_array(target, field)
    step_target = StepTarget(
        node_id=target.id,
        field_id=field.id,
        field_name=field.name,
        path=field.value_path if field.value_path != field.name else None,
        array_path=array.value_path if array is not None else None,
        group_by=array.group_by if array is not None else None,
    )
    common: dict[str, Any] = {
        "step_id": f"step_{number}",
        "source": _step_source(binding),
        "target": step_target,
        "expression": expression,
    }
    match expression:
        case FieldRef():
            return ExecutionStep(type=StepType.DIRECT_MAPPING, **common)
        case LookupRef():
            return ExecutionStep(
                type=StepType.CONVERSION_MAPPING,
                conversion=StepConversion(rules=expression.rules),
                **common,
            )
        case TransformRef():
            return ExecutionStep(
                type=StepType.TRANSFORM,
                transform=_transform_summary(expression.config),
                **common,
            )


def compile_steps(nodes: Sequence[Node], edges: Sequence[Edge]) -> list[ExecutionStep]:
    """Compile a graph into ordered execution steps.

    Args:
        nodes: Node snapshot
        edges: Edge snapshot

    Returns:
        One step per resolvable inbound edge of every Target node, numbered
        step_1..step_N in write order. Sample values are frozen into the
        steps. Never raises for graph content.
    """
    graph = MappingGraph(nodes, edges)
    steps: list[ExecutionStep] = []
    for node in nodes:
        if not isinstance(node, TargetNode):
            continue
        for binding in iter_target_bindings(graph, node):
            steps.append(_build_step(len(steps) + 1, node, binding))
    logger.debug("Compiled execution steps", step_count=len(steps))
    return steps
