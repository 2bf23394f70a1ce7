# src/fieldflow/contracts/execution.py
"""Execution steps: the portable, replayable form of a mapping graph.

One step per (target field, inbound edge), in the order the resolver applies
writes. Each step carries a human-readable summary (source field, target
field, the outermost transform or conversion table) plus the full
value-expression tree, so a runtime without the editor can reproduce chains
of any depth.
"""

from typing import Any

from pydantic import Field

from fieldflow.contracts.enums import StepType
from fieldflow.contracts.graph import MappingRule, WireModel
from fieldflow.contracts.lineage import ValueExpr


class StepSource(WireModel):
    """The originating source field and its sample value at compile time."""

    node_id: str
    field_id: str
    field_name: str
    value: Any = None
    source_path: str | None = None


class StepTarget(WireModel):
    """The target field a step writes.

    `path` is set when the field lives below the record root. Fields that
    describe array elements also carry the array's path and its optional
    groupBy key; replay builds those arrays element by element.
    """

    node_id: str
    field_id: str
    field_name: str
    path: str | None = None
    array_path: str | None = None
    group_by: str | None = None


class StepTransform(WireModel):
    """Summary of the outermost transform applied by a step."""

    type: str
    operation: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class StepConversion(WireModel):
    """Conversion table rules, verbatim."""

    rules: tuple[MappingRule, ...] = ()


class ExecutionStep(WireModel):
    """One replayable unit of a compiled mapping."""

    step_id: str
    type: StepType
    source: StepSource
    target: StepTarget
    transform: StepTransform | None = None
    conversion: StepConversion | None = None
    expression: ValueExpr | None = None

    def to_wire(self) -> dict[str, Any]:
        # Optional parts are omitted rather than written as null
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
