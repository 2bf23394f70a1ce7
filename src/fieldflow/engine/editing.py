# src/fieldflow/engine/editing.py
"""Graph edits.

Every edit takes the current snapshot and returns a new one; nothing is
modified in place. Public edit functions re-run the resolver so Target
output always reflects the edited graph. Removing a node removes every edge
that touches it.

Rule helpers keep Concat/Coalesce priorities dense (1..N) after every
insert, removal or move, so priority stays the single ordering key.

apply_edit_batch() runs a list of edit actions, e.g. generated by an
assistant. An action may store the id it created under a name with
"storeAs"; later actions refer to it as "$name" wherever an id is
expected (nodeId, edgeId, an edge's source and target). Other strings, such
as a "$USD " prefix in node data, are never substituted. Names live in a
SymbolTable owned by the caller of the batch:

    [
      {"action": "add_node", "storeAs": "upper",
       "node": {"type": "transform", "data": {"config": {"transformKind": "string_op"}}}},
      {"action": "add_edge", "edge": {"source": "src", "sourceHandle": "name",
                                      "target": "$upper", "targetHandle": "input"}},
      {"action": "add_edge", "edge": {"source": "$upper", "target": "tgt", "targetHandle": "Name"}}
    ]
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from fieldflow.contracts.errors import GraphEditError, SymbolResolutionError
from fieldflow.contracts.graph import CoalesceRule, ConcatRule, Edge, Node, parse_edge, parse_node
from fieldflow.core.logging import get_logger
from fieldflow.engine.options import ResolutionOptions
from fieldflow.engine.resolver import resolve_target_data

logger = get_logger(__name__)

SYMBOL_PREFIX = "$"

# Action keys whose values are ids of existing nodes or edges
_REFERENCE_KEYS = ("nodeId", "node_id", "edgeId", "edge_id")
_EDGE_REFERENCE_KEYS = ("source", "target")


@dataclass(frozen=True, slots=True)
class GraphState:
    """A node/edge snapshot returned by every edit."""

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]


def _resolved(nodes: Sequence[Node], edges: Sequence[Edge], options: ResolutionOptions | None) -> GraphState:
    return GraphState(nodes=resolve_target_data(nodes, edges, options), edges=tuple(edges))


def _find_node(nodes: Sequence[Node], node_id: str) -> Node:
    for node in nodes:
        if node.id == node_id:
            return node
    raise GraphEditError(f"Node {node_id!r} does not exist")


# =============================================================================
# Raw edits (no resolution)
# =============================================================================


def _add_node(nodes: Sequence[Node], edges: Sequence[Edge], node: Node) -> GraphState:
    if any(existing.id == node.id for existing in nodes):
        raise GraphEditError(f"Node {node.id!r} already exists")
    return GraphState(nodes=(*nodes, node), edges=tuple(edges))


def _update_node(nodes: Sequence[Node], edges: Sequence[Edge], node_id: str, data: Mapping[str, Any]) -> GraphState:
    current = _find_node(nodes, node_id)
    payload = current.to_wire()
    payload["data"] = {**payload["data"], **data}
    replacement = parse_node(payload)
    return GraphState(
        nodes=tuple(replacement if node.id == node_id else node for node in nodes),
        edges=tuple(edges),
    )


def _remove_node(nodes: Sequence[Node], edges: Sequence[Edge], node_id: str) -> GraphState:
    _find_node(nodes, node_id)
    kept_edges = tuple(edge for edge in edges if node_id not in (edge.source, edge.target))
    logger.debug("Removed node", node_id=node_id, cascaded_edges=len(edges) - len(kept_edges))
    return GraphState(nodes=tuple(node for node in nodes if node.id != node_id), edges=kept_edges)


def _add_edge(nodes: Sequence[Node], edges: Sequence[Edge], edge: Edge) -> GraphState:
    known = {node.id for node in nodes}
    for endpoint in (edge.source, edge.target):
        if endpoint not in known:
            raise GraphEditError(f"Edge {edge.id!r} references missing node {endpoint!r}")
    if any(existing.id == edge.id for existing in edges):
        raise GraphEditError(f"Edge {edge.id!r} already exists")
    return GraphState(nodes=tuple(nodes), edges=(*edges, edge))


def _remove_edge(nodes: Sequence[Node], edges: Sequence[Edge], edge_id: str) -> GraphState:
    if not any(edge.id == edge_id for edge in edges):
        raise GraphEditError(f"Edge {edge_id!r} does not exist")
    return GraphState(nodes=tuple(nodes), edges=tuple(edge for edge in edges if edge.id != edge_id))


# =============================================================================
# Public edits
# =============================================================================


def add_node(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    node: Node,
    options: ResolutionOptions | None = None,
) -> GraphState:
    """Append a node.

    Raises:
        GraphEditError: If the id is already taken
    """
    state = _add_node(nodes, edges, node)
    return _resolved(state.nodes, state.edges, options)


def update_node(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    node_id: str,
    data: Mapping[str, Any],
    options: ResolutionOptions | None = None,
) -> GraphState:
    """Merge wire-format keys into a node's data.

    Example:
        update_node(nodes, edges, "table", {"mappings": [{"from": "A", "to": "B"}]})

    Raises:
        GraphEditError: If the node does not exist
        GraphDocumentError: If the merged data is not valid for the node kind
    """
    state = _update_node(nodes, edges, node_id, data)
    return _resolved(state.nodes, state.edges, options)


def remove_node(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    node_id: str,
    options: ResolutionOptions | None = None,
) -> GraphState:
    """Remove a node and every edge that references it.

    Raises:
        GraphEditError: If the node does not exist
    """
    state = _remove_node(nodes, edges, node_id)
    return _resolved(state.nodes, state.edges, options)


def add_edge(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    edge: Edge,
    options: ResolutionOptions | None = None,
) -> GraphState:
    """Append an edge between two existing nodes.

    Raises:
        GraphEditError: If an endpoint is missing or the id is already taken
    """
    state = _add_edge(nodes, edges, edge)
    return _resolved(state.nodes, state.edges, options)


def remove_edge(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    edge_id: str,
    options: ResolutionOptions | None = None,
) -> GraphState:
    """Remove one edge.

    Raises:
        GraphEditError: If the edge does not exist
    """
    state = _remove_edge(nodes, edges, edge_id)
    return _resolved(state.nodes, state.edges, options)


# =============================================================================
# Rule ordering
# =============================================================================

def renumber_rules[R: (ConcatRule, CoalesceRule)](rules: Sequence[R]) -> tuple[R, ...]:
    """Sort by priority (stable) and renumber densely from 1."""
    ordered = sorted(rules, key=lambda rule: rule.priority)
    return tuple(
        rule if rule.priority == position else rule.model_copy(update={"priority": position})
        for position, rule in enumerate(ordered, start=1)
    )


def insert_rule[R: (ConcatRule, CoalesceRule)](rules: Sequence[R], rule: R, index: int | None = None) -> tuple[R, ...]:
    """Insert a rule at `index` in priority order (append when None)."""
    ordered = list(renumber_rules(rules))
    position = len(ordered) if index is None else max(0, min(index, len(ordered)))
    ordered.insert(position, rule)
    return _dense(ordered)


def remove_rule[R: (ConcatRule, CoalesceRule)](rules: Sequence[R], rule_id: str) -> tuple[R, ...]:
    """Remove a rule by id and close the gap.

    Raises:
        GraphEditError: If no rule has that id
    """
    ordered = list(renumber_rules(rules))
    remaining = [rule for rule in ordered if rule.id != rule_id]
    if len(remaining) == len(ordered):
        raise GraphEditError(f"Rule {rule_id!r} does not exist")
    return _dense(remaining)


def move_rule[R: (ConcatRule, CoalesceRule)](rules: Sequence[R], rule_id: str, index: int) -> tuple[R, ...]:
    """Move a rule to position `index` (0-based, clamped) in priority order.

    Raises:
        GraphEditError: If no rule has that id
    """
    ordered = list(renumber_rules(rules))
    for position, rule in enumerate(ordered):
        if rule.id == rule_id:
            moving = ordered.pop(position)
            break
    else:
        raise GraphEditError(f"Rule {rule_id!r} does not exist")
    ordered.insert(max(0, min(index, len(ordered))), moving)
    return _dense(ordered)


def _dense[R: (ConcatRule, CoalesceRule)](ordered: Sequence[R]) -> tuple[R, ...]:
    # List order is authoritative here; priorities are rewritten to match it
    return tuple(
        rule if rule.priority == position else rule.model_copy(update={"priority": position})
        for position, rule in enumerate(ordered, start=1)
    )


# =============================================================================
# Batches
# =============================================================================


class SymbolTable:
    """Names bound to ids created earlier in a batch.

    Scoped to the batch call that receives it; pass the same table to
    several batches to share names between them.
    """

    def __init__(self) -> None:
        self._symbols: dict[str, str] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __len__(self) -> int:
        return len(self._symbols)

    def store(self, name: str, value: str) -> None:
        self._symbols[name.removeprefix(SYMBOL_PREFIX)] = value

    def lookup(self, name: str) -> str | None:
        return self._symbols.get(name.removeprefix(SYMBOL_PREFIX))

    def as_dict(self) -> dict[str, str]:
        return dict(self._symbols)

    def substitute(self, reference: Any, action_index: int) -> Any:
        """Value stored for a "$name" reference; anything else is returned as is.

        Raises:
            SymbolResolutionError: If a referenced name was never stored
        """
        if not isinstance(reference, str) or not reference.startswith(SYMBOL_PREFIX) or len(reference) == 1:
            return reference
        value = self.lookup(reference)
        if value is None:
            raise SymbolResolutionError(reference, action_index)
        return value

    def resolve_references(self, body: Mapping[str, Any], action_index: int) -> dict[str, Any]:
        """Substitute symbols at the id positions of one action.

        Node payloads, update data and edge handles are copied untouched, so
        literal "$..." text in a prefix, rule or branch value survives.
        """
        resolved = dict(body)
        for key in _REFERENCE_KEYS:
            if key in resolved:
                resolved[key] = self.substitute(resolved[key], action_index)
        edge = resolved.get("edge")
        if isinstance(edge, Mapping):
            resolved["edge"] = {
                key: self.substitute(value, action_index) if key in _EDGE_REFERENCE_KEYS else value
                for key, value in edge.items()
            }
        return resolved


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True, extra="forbid")


class AddNodeAction(_Action):
    action: Literal["add_node"]
    node: dict[str, Any]


class UpdateNodeAction(_Action):
    action: Literal["update_node"]
    node_id: str
    data: dict[str, Any]


class RemoveNodeAction(_Action):
    action: Literal["remove_node"]
    node_id: str


class AddEdgeAction(_Action):
    action: Literal["add_edge"]
    edge: dict[str, Any]


class RemoveEdgeAction(_Action):
    action: Literal["remove_edge"]
    edge_id: str


EditAction = Annotated[
    AddNodeAction | UpdateNodeAction | RemoveNodeAction | AddEdgeAction | RemoveEdgeAction,
    Field(discriminator="action"),
]

_ACTION_ADAPTER: TypeAdapter[EditAction] = TypeAdapter(EditAction)


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Outcome of a batch: the final snapshot and the symbols it stored."""

    nodes: tuple[Node, ...]
    edges: tuple[Edge, ...]
    symbols: SymbolTable


def _apply_action(state: GraphState, action: EditAction) -> tuple[GraphState, str]:
    """Run one action; returns the new state and the id it touched."""
    match action:
        case AddNodeAction():
            payload = dict(action.node)
            payload.setdefault("id", f"{payload.get('type', 'node')}-{uuid.uuid4().hex[:8]}")
            node = parse_node(payload)
            return _add_node(state.nodes, state.edges, node), node.id
        case UpdateNodeAction():
            return _update_node(state.nodes, state.edges, action.node_id, action.data), action.node_id
        case RemoveNodeAction():
            return _remove_node(state.nodes, state.edges, action.node_id), action.node_id
        case AddEdgeAction():
            payload = dict(action.edge)
            payload.setdefault("id", f"edge-{payload.get('source')}-{payload.get('target')}-{uuid.uuid4().hex[:8]}")
            edge = parse_edge(payload)
            return _add_edge(state.nodes, state.edges, edge), edge.id
        case RemoveEdgeAction():
            return _remove_edge(state.nodes, state.edges, action.edge_id), action.edge_id


def apply_edit_batch(
    nodes: Sequence[Node],
    edges: Sequence[Edge],
    actions: Sequence[Mapping[str, Any]],
    symbols: SymbolTable | None = None,
    options: ResolutionOptions | None = None,
) -> BatchResult:
    """Apply edit actions in order, then resolve once.

    Args:
        nodes: Starting node snapshot
        edges: Starting edge snapshot
        actions: Action dicts (see module docstring)
        symbols: Table to read and extend; a fresh one when None
        options: Resolution options for the final pass

    Returns:
        BatchResult with the resolved snapshot and the symbol table

    Raises:
        GraphEditError: If an action is malformed or cannot be applied;
            no partial result is returned
        SymbolResolutionError: If an action references an unknown "$name"
        GraphDocumentError: If a node or edge payload is invalid
    """
    table = symbols if symbols is not None else SymbolTable()
    state = GraphState(nodes=tuple(nodes), edges=tuple(edges))

    for index, raw in enumerate(actions):
        store_as = raw.get("storeAs", raw.get("store_as"))
        body = {key: value for key, value in raw.items() if key not in ("storeAs", "store_as")}
        try:
            action = _ACTION_ADAPTER.validate_python(table.resolve_references(body, index))
        except ValidationError as e:
            raise GraphEditError(f"Action #{index} is malformed: {e}") from e
        state, touched_id = _apply_action(state, action)
        if store_as:
            table.store(store_as, touched_id)
        logger.debug("Applied edit action", index=index, action=action.action, touched_id=touched_id)

    return BatchResult(
        nodes=resolve_target_data(state.nodes, state.edges, options),
        edges=state.edges,
        symbols=table,
    )
