# src/fieldflow/contracts/lineage.py
"""Value-expression trees.

Tracing an edge backwards through a mapping graph produces one of these
trees: the leaves are source fields, the inner nodes are lookups and
transforms. The tree is the single representation shared by the live
resolver (evaluated against sample values), the step compiler (serialized
into each ExecutionStep) and the replay runtime (evaluated against an input
record), so all three agree on what an edge means.

A None child means "this input is not connected", either because no edge
feeds it or because the walk hit a cycle or a dangling reference.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field

from fieldflow.contracts.graph import MappingRule, TransformConfig, WireModel


class FieldRef(WireModel):
    """Leaf: a field on a Source node.

    Attributes:
        node_id: Source node id
        field_id: Resolved field id (not the raw edge handle)
        field_name: Field name; the key written into target records
        path: Where the value lives inside a record (dotted, with [n] indices)
        sample: Sample value captured at trace time; None when absent
        array_path: Path of the enclosing array field when this field
            describes array elements
    """

    kind: Literal["field"] = "field"
    node_id: str
    field_id: str
    field_name: str
    path: str
    sample: Any = None
    array_path: str | None = None


class LookupRef(WireModel):
    """A conversion table applied to one upstream expression."""

    kind: Literal["lookup"] = "lookup"
    node_id: str
    rules: tuple[MappingRule, ...] = ()
    input: ValueExpr | None = None


class TransformRef(WireModel):
    """A transform applied to its bound inputs.

    `inputs` is keyed by input slot: "input" for single-input transforms,
    rule ids for concat/coalesce, plus "default" for coalesce.
    """

    kind: Literal["transform"] = "transform"
    node_id: str
    config: TransformConfig
    output_handle: str | None = None
    inputs: dict[str, ValueExpr | None] = Field(default_factory=dict)


ValueExpr = Annotated[FieldRef | LookupRef | TransformRef, Field(discriminator="kind")]

LookupRef.model_rebuild()
TransformRef.model_rebuild()


def iter_field_refs(expr: ValueExpr | None) -> list[FieldRef]:
    """All leaves of an expression, left to right."""
    found: list[FieldRef] = []
    stack: list[ValueExpr | None] = [expr]
    while stack:
        current = stack.pop()
        match current:
            case None:
                continue
            case FieldRef():
                found.append(current)
            case LookupRef():
                stack.append(current.input)
            case TransformRef():
                stack.extend(reversed(list(current.inputs.values())))
    return found
