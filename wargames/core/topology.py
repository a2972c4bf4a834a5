"""
Topology Engine
===============

Time-ordered traversal of the causal event graph.

FENCE POST:
===========
This engine computes ORDER (geometry), not CAUSALITY (inference).

ALLOWED:
- Ordering events by date
- Restricting edges to forward-or-equal time pairs
- Reachability over admissible edges
- Structural diagnostics (counts, acyclicity)

FORBIDDEN:
- Centrality measures, influence scoring, any ranking of events
- Rejecting a World for containing cycles; backward edges are simply
  not followed, and a cycle among same-dated events is tolerated
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple
import networkx as nx

from ..contracts.world import Edge, World


@dataclass(frozen=True)
class TopologyMetrics:
    """Immutable structural diagnostics for one World."""
    event_count: int
    edge_count: int
    admissible_edge_count: int
    dangling_edge_count: int
    backward_edge_count: int
    is_acyclic: bool


class TopologyEngine:
    """
    Traversal order and edge admissibility.

    Ordering is by (date, event id); the id tie-break keeps same-date
    events deterministic.
    """

    def order(self, world: World) -> Tuple[str, ...]:
        """Event ids ascending by date, ties broken by id."""
        return tuple(
            event.event_id
            for event in sorted(world.nodes.values(), key=lambda e: (e.date, e.event_id))
        )

    def admissible_edges(
        self,
        world: World,
        order: Optional[Sequence[str]] = None
    ) -> Tuple[Edge, ...]:
        """
        Edges followed during propagation, in input order.

        Drops edges with a dangling endpoint and edges whose source comes
        after their destination in ``order``. The World keeps them.
        """
        order = self.order(world) if order is None else order
        position = {event_id: i for i, event_id in enumerate(order)}
        return tuple(
            edge for edge in world.edges
            if edge.src in position
            and edge.dst in position
            and position[edge.src] <= position[edge.dst]
        )

    def outgoing(self, edges: Sequence[Edge]) -> Dict[str, List[Edge]]:
        """Index edges by source id, preserving input order."""
        index: Dict[str, List[Edge]] = {}
        for edge in edges:
            index.setdefault(edge.src, []).append(edge)
        return index

    def build_graph(self, world: World) -> nx.DiGraph:
        """Directed graph of all events and admissible edges."""
        graph = nx.DiGraph()
        graph.add_nodes_from(world.nodes)
        for edge in self.admissible_edges(world):
            graph.add_edge(edge.src, edge.dst, mechanism=edge.mechanism.value, weight=edge.weight)
        return graph

    def descendants(self, world: World, event_id: str) -> Set[str]:
        """
        Ids reachable from ``event_id`` over admissible edges.

        The event itself is not included. Unknown ids have no descendants.
        """
        if event_id not in world.nodes:
            return set()
        return set(nx.descendants(self.build_graph(world), event_id))

    def compute_metrics(self, world: World) -> TopologyMetrics:
        order = self.order(world)
        position = {event_id: i for i, event_id in enumerate(order)}

        dangling = sum(
            1 for e in world.edges
            if e.src not in position or e.dst not in position
        )
        admissible = self.admissible_edges(world, order)
        backward = len(world.edges) - dangling - len(admissible)

        return TopologyMetrics(
            event_count=len(order),
            edge_count=len(world.edges),
            admissible_edge_count=len(admissible),
            dangling_edge_count=dangling,
            backward_edge_count=backward,
            is_acyclic=nx.is_directed_acyclic_graph(self.build_graph(world)),
        )


_default_topology = TopologyEngine()


def order(world: World) -> Tuple[str, ...]:
    return _default_topology.order(world)


def admissible_edges(world: World, order: Optional[Sequence[str]] = None) -> Tuple[Edge, ...]:
    return _default_topology.admissible_edges(world, order)
