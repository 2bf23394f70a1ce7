# src/fieldflow/engine/evaluate.py
"""Evaluation of value-expression trees.

The same tree is evaluated against sample values (live resolver, replay
without a record) or against an input record (replay runtime). A reader
decides where leaf values come from; everything above the leaves is shared.
Evaluation is an explicit post-order walk, so deep chains do not recurse.
"""

from collections.abc import Callable, Mapping
from typing import Any

from fieldflow.contracts.lineage import FieldRef, LookupRef, TransformRef, ValueExpr
from fieldflow.contracts.sentinels import MISSING
from fieldflow.engine.fields import get_path
from fieldflow.engine.lookup import apply_mapping_table
from fieldflow.engine.options import DEFAULT_OPTIONS, ResolutionOptions
from fieldflow.engine.transforms import apply_transform

type ValueReader = Callable[[FieldRef], Any]


def sample_reader(ref: FieldRef) -> Any:
    """Leaf value captured when the expression was traced."""
    return MISSING if ref.sample is None else ref.sample


def record_reader(record: Mapping[str, Any]) -> ValueReader:
    """Leaf values read from an input record by field path."""

    def read(ref: FieldRef) -> Any:
        return get_path(record, ref.path)

    return read


def _children(expr: ValueExpr) -> list[ValueExpr]:
    match expr:
        case FieldRef():
            return []
        case LookupRef():
            return [] if expr.input is None else [expr.input]
        case TransformRef():
            return [child for child in expr.inputs.values() if child is not None]


def evaluate(
    expr: ValueExpr | None,
    reader: ValueReader = sample_reader,
    options: ResolutionOptions = DEFAULT_OPTIONS,
) -> Any:
    """Compute the value of an expression.

    Returns:
        The value, or MISSING when the expression yields no value. Never
        raises for graph content; failing transforms yield sentinel strings.
    """
    if expr is None:
        return MISSING

    results: dict[int, Any] = {}

    def value_of_child(child: ValueExpr | None) -> Any:
        return MISSING if child is None else results[id(child)]

    stack: list[tuple[ValueExpr, bool]] = [(expr, False)]
    while stack:
        current, expanded = stack.pop()
        if not expanded:
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(_children(current)))
            continue

        match current:
            case FieldRef():
                results[id(current)] = reader(current)
            case LookupRef():
                upstream = value_of_child(current.input)
                if upstream is MISSING or upstream is None:
                    results[id(current)] = MISSING
                else:
                    results[id(current)] = apply_mapping_table(current.rules, upstream, options.unmapped_policy)
            case TransformRef():
                inputs = {slot: value_of_child(child) for slot, child in current.inputs.items()}
                results[id(current)] = apply_transform(current.config, inputs, current.output_handle, options)

    return results[id(expr)]
