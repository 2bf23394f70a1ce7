# src/fieldflow/engine/validation.py
"""Non-fatal graph diagnostics.

validate_graph() reports the problems the resolver silently works around
(skipped edges, unresolvable handles, cycles) so an editor or the CLI can
show them. It never raises and never changes the graph.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from fieldflow.contracts.graph import (
    DEFAULT_HANDLE,
    CoalesceConfig,
    ConcatConfig,
    Edge,
    Node,
    SourceNode,
    TargetNode,
    TransformNode,
)
from fieldflow.core.graph import MappingGraph
from fieldflow.engine.fields import resolve_field


@dataclass(frozen=True, slots=True)
class GraphIssue:
    """One diagnostic.

    Codes:
        duplicate_node_id         several nodes share an id; the first wins
        dangling_edge             an edge endpoint does not exist
        unresolved_source_handle  an edge leaves a Source through an unknown field
        unresolved_target_handle  an edge enters a Target through an unknown field
        target_as_input           an edge leaves a Target node (never evaluated)
        unbound_rule_handle       an edge enters a concat/coalesce on no rule handle
        cycle                     intermediate nodes feed each other
    """

    code: str
    message: str
    node_ids: tuple[str, ...]


def _rule_handles(node: TransformNode) -> set[str] | None:
    config = node.data.config
    if isinstance(config, ConcatConfig):
        return {rule.handle for rule in config.rules}
    if isinstance(config, CoalesceConfig):
        handles = {DEFAULT_HANDLE}
        for rule in config.rules:
            handles.update(rule.handles)
        return handles
    return None


def _edge_issues(graph: MappingGraph, edge: Edge) -> list[GraphIssue]:
    issues: list[GraphIssue] = []
    source = graph.get_node(edge.source)
    target = graph.get_node(edge.target)

    if isinstance(source, SourceNode) and resolve_field(source, edge.source_handle) is None:
        issues.append(
            GraphIssue(
                code="unresolved_source_handle",
                message=f"Edge {edge.id!r} leaves {source.id!r} through unknown field {edge.source_handle!r}",
                node_ids=(source.id,),
            )
        )
    if isinstance(source, TargetNode):
        issues.append(
            GraphIssue(
                code="target_as_input",
                message=f"Edge {edge.id!r} reads from target node {source.id!r}; target output is never an input",
                node_ids=(source.id,),
            )
        )
    if isinstance(target, TargetNode) and resolve_field(target, edge.target_handle) is None:
        issues.append(
            GraphIssue(
                code="unresolved_target_handle",
                message=f"Edge {edge.id!r} enters {target.id!r} through unknown field {edge.target_handle!r}",
                node_ids=(target.id,),
            )
        )
    if isinstance(target, TransformNode):
        handles = _rule_handles(target)
        if handles is not None and edge.target_handle not in handles:
            issues.append(
                GraphIssue(
                    code="unbound_rule_handle",
                    message=f"Edge {edge.id!r} enters {target.id!r} on {edge.target_handle!r}, which no rule uses",
                    node_ids=(target.id,),
                )
            )
    return issues


def validate_graph(nodes: Sequence[Node], edges: Sequence[Edge]) -> list[GraphIssue]:
    """Collect diagnostics for a graph snapshot.

    Returns:
        Issues in a stable order: duplicate ids, then per-edge issues in
        edge order, then cycles. Empty for a clean graph.
    """
    graph = MappingGraph(nodes, edges)
    issues: list[GraphIssue] = [
        GraphIssue(
            code="duplicate_node_id",
            message=f"Node id {node_id!r} is used more than once",
            node_ids=(node_id,),
        )
        for node_id in graph.duplicate_node_ids
    ]

    dangling = {id(edge) for edge in graph.dangling_edges}
    for edge in edges:
        if id(edge) in dangling:
            missing = tuple(endpoint for endpoint in (edge.source, edge.target) if not graph.has_node(endpoint))
            issues.append(
                GraphIssue(
                    code="dangling_edge",
                    message=f"Edge {edge.id!r} references missing node(s) {', '.join(missing)}",
                    node_ids=missing,
                )
            )
            continue
        issues.extend(_edge_issues(graph, edge))

    for cycle in graph.find_cycles():
        issues.append(
            GraphIssue(
                code="cycle",
                message=f"Nodes form a cycle: {' -> '.join([*cycle, cycle[0]])}",
                node_ids=tuple(cycle),
            )
        )
    return issues
