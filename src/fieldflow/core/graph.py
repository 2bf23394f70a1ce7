# src/fieldflow/core/graph.py
"""MappingGraph: indexed, read-only view over a node/edge snapshot.

Wraps a NetworkX MultiDiGraph so the resolver, compiler and validator share
one O(1) node index and one edge-order-preserving incoming-edge index, and
so cycle diagnostics can use NetworkX algorithms directly.

Edges whose endpoints are not both present stay out of the NetworkX graph;
they are kept in `dangling_edges` for diagnostics.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

import networkx as nx

from fieldflow.contracts.graph import Edge, Node


class MappingGraph:
    """Lookup structure for one immutable graph snapshot.

    Uses MultiDiGraph because several edges may join the same node pair
    (e.g. two source fields feeding two concat rules).
    """

    def __init__(self, nodes: Sequence[Node], edges: Sequence[Edge]) -> None:
        self._graph: nx.MultiDiGraph[str] = nx.MultiDiGraph()
        self._nodes: dict[str, Node] = {}
        self._incoming: dict[str, list[Edge]] = {}
        self._dangling: list[Edge] = []
        self._duplicate_ids = sorted(node_id for node_id, count in Counter(n.id for n in nodes).items() if count > 1)

        for node in nodes:
            # First definition of a duplicated id wins
            if node.id in self._nodes:
                continue
            self._nodes[node.id] = node
            self._graph.add_node(node.id, kind=node.type)

        for order, edge in enumerate(edges):
            if edge.source not in self._nodes or edge.target not in self._nodes:
                self._dangling.append(edge)
                continue
            self._incoming.setdefault(edge.target, []).append(edge)
            self._graph.add_edge(edge.source, edge.target, key=order, edge_id=edge.id)

    @property
    def node_count(self) -> int:
        """Number of distinct nodes in the graph."""
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        """Number of edges whose endpoints both exist."""
        return self._graph.number_of_edges()

    @property
    def dangling_edges(self) -> tuple[Edge, ...]:
        """Edges referencing a node id that is not in the graph."""
        return tuple(self._dangling)

    @property
    def duplicate_node_ids(self) -> tuple[str, ...]:
        """Node ids that occur more than once in the snapshot."""
        return tuple(self._duplicate_ids)

    def has_node(self, node_id: str) -> bool:
        """Check if node exists."""
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Node | None:
        """Node by id, or None when absent."""
        return self._nodes.get(node_id)

    def nodes(self) -> list[Node]:
        """Nodes in snapshot order."""
        return list(self._nodes.values())

    def incoming_edges(self, node_id: str) -> list[Edge]:
        """Edges pointing TO this node, in snapshot edge order."""
        return list(self._incoming.get(node_id, ()))

    def find_cycles(self) -> list[list[str]]:
        """Every elementary cycle, each as a list of node ids.

        Each cycle is rotated to start at its smallest node id so results
        are stable across runs.
        """
        cycles: list[list[str]] = []
        for cycle in nx.simple_cycles(nx.DiGraph(self._graph)):
            pivot = cycle.index(min(cycle))
            cycles.append(cycle[pivot:] + cycle[:pivot])
        return sorted(cycles)

