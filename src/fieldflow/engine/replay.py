# src/fieldflow/engine/replay.py
"""Replay runtime for compiled execution steps.

Reproduces a mapping outside the editor: each step's expression is evaluated
against an input record (or against the sample values frozen into the steps
when no record is given) and written at its target field's path with the same
blank-suppression and last-write-wins rules as the resolver. Target fields
inside arrays are built element by element from the matching source array.

Steps without an expression (hand-written or produced by older exporters)
are rebuilt from their summary parts: the source field, plus the conversion
rules or the outermost transform.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import TypeAdapter, ValidationError

from fieldflow.contracts.coercion import to_text
from fieldflow.contracts.enums import StepType
from fieldflow.contracts.execution import ExecutionStep
from fieldflow.contracts.graph import INPUT_HANDLE, TransformConfig
from fieldflow.contracts.lineage import FieldRef, LookupRef, TransformRef, ValueExpr, iter_field_refs
from fieldflow.contracts.sentinels import is_blank
from fieldflow.core.logging import get_logger
from fieldflow.engine.evaluate import ValueReader, evaluate, record_reader, sample_reader
from fieldflow.engine.fields import get_path, relative_path, set_path
from fieldflow.engine.options import DEFAULT_OPTIONS, ResolutionOptions

logger = get_logger(__name__)

_TRANSFORM_CONFIG: TypeAdapter[TransformConfig] = TypeAdapter(TransformConfig)


def step_expression(step: ExecutionStep) -> ValueExpr | None:
    """The step's expression, rebuilt from its summary when absent."""
    if step.expression is not None:
        return step.expression

    leaf = FieldRef(
        node_id=step.source.node_id,
        field_id=step.source.field_id,
        field_name=step.source.field_name,
        path=step.source.source_path or step.source.field_name,
        sample=step.source.value,
    )
    match step.type:
        case StepType.DIRECT_MAPPING:
            return leaf
        case StepType.CONVERSION_MAPPING:
            rules = step.conversion.rules if step.conversion is not None else ()
            return LookupRef(node_id=step.step_id, rules=rules, input=leaf)
        case StepType.TRANSFORM:
            if step.transform is None:
                return None
            payload: dict[str, Any] = {**step.transform.parameters, "transformKind": step.transform.type}
            if step.transform.operation is not None:
                payload["operation"] = step.transform.operation
            try:
                config = _TRANSFORM_CONFIG.validate_python(payload)
            except ValidationError as e:
                logger.warning("Step transform not replayable", step_id=step.step_id, error=str(e))
                return None
            return TransformRef(node_id=step.step_id, config=config, inputs={INPUT_HANDLE: leaf})


def _element_reader(record: Mapping[str, Any], item: Any, array_path: str) -> ValueReader:
    """Leaves inside the iterated array read from the element, others from the record."""
    whole = record_reader(record)

    def read(ref: FieldRef) -> Any:
        if ref.array_path == array_path:
            return get_path(item, relative_path(ref.path, array_path))
        return whole(ref)

    return read


def _fill_element(steps: Sequence[ExecutionStep], reader: ValueReader, opts: ResolutionOptions) -> dict[str, Any]:
    element: dict[str, Any] = {}
    for step in steps:
        value = evaluate(step_expression(step), reader, opts)
        if is_blank(value):
            continue
        array_path = step.target.array_path or ""
        set_path(element, relative_path(step.target.path or step.target.field_name, array_path), value)
    return element


def _group_elements(elements: list[dict[str, Any]], group_by: str) -> list[dict[str, Any]]:
    """Merge elements sharing a groupBy value, in first-seen order.

    Later values win per key. Elements without a groupBy value stay as they are.
    """
    grouped: list[dict[str, Any]] = []
    buckets: dict[str, dict[str, Any]] = {}
    for element in elements:
        key = get_path(element, group_by)
        if is_blank(key):
            grouped.append(element)
            continue
        bucket = buckets.get(to_text(key))
        if bucket is None:
            bucket = dict(element)
            buckets[to_text(key)] = bucket
            grouped.append(bucket)
        else:
            bucket.update(element)
    return grouped


def _replay_array(
    steps: Sequence[ExecutionStep],
    record: Mapping[str, Any] | None,
    opts: ResolutionOptions,
) -> list[dict[str, Any]]:
    """Build one target array from the steps that write its element fields."""
    target_array = steps[0].target.array_path or ""
    if record is None:
        element = _fill_element(steps, sample_reader, opts)
        elements = [element] if element else []
    else:
        # The source array is the one the element fields are read from
        source_array = next(
            (
                leaf.array_path
                for step in steps
                for leaf in iter_field_refs(step_expression(step))
                if leaf.array_path is not None
            ),
            target_array,
        )
        items = get_path(record, source_array)
        if not isinstance(items, list):
            items = []
        elements = [_fill_element(steps, _element_reader(record, item, source_array), opts) for item in items]

    group_by = steps[0].target.group_by
    if group_by:
        elements = _group_elements(elements, group_by)
    return elements


def replay_steps(
    steps: Sequence[ExecutionStep],
    record: Mapping[str, Any] | None = None,
    options: ResolutionOptions | None = None,
) -> dict[str, dict[str, Any]]:
    """Replay steps in order.

    Fields outside arrays are written at their path. Fields describing array
    elements are replayed per target array once the other steps are done:
    one element per item of the source array (a single element built from
    samples when no record is given), merged by the array's groupBy key.

    Args:
        steps: Compiled steps, in their stored order
        record: Input record read by field path; None replays the sample
            values captured at compile time
        options: Unmapped-value policy and reference date

    Returns:
        Output records keyed by target node id. Every target node that owns
        at least one step is present, possibly with an empty record.
    """
    opts = options if options is not None else DEFAULT_OPTIONS
    reader: ValueReader = sample_reader if record is None else record_reader(record)
    outputs: dict[str, dict[str, Any]] = {}
    arrays: dict[tuple[str, str], list[ExecutionStep]] = {}
    for step in steps:
        target_record = outputs.setdefault(step.target.node_id, {})
        if step.target.array_path is not None:
            arrays.setdefault((step.target.node_id, step.target.array_path), []).append(step)
            continue
        value = evaluate(step_expression(step), reader, opts)
        if is_blank(value):
            continue
        set_path(target_record, step.target.path or step.target.field_name, value)

    for (node_id, array_path), group in arrays.items():
        elements = _replay_array(group, record, opts)
        if elements:
            set_path(outputs[node_id], array_path, elements)
        logger.debug("Replayed array", node_id=node_id, array_path=array_path, elements=len(elements))
    return outputs
