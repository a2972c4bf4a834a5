"""
Topology Engine Tests
=====================

FENCE POST VERIFICATION:
========================
These tests verify that the topology engine:
1. Orders events by date with a deterministic id tie-break
2. Follows edges only forward-or-equal in time
3. Excludes dangling edges without rejecting the World
4. Tolerates cycles among same-dated events
"""

import networkx as nx

from wargames.contracts.state import StateVector
from wargames.contracts.world import Edge, Event, Mechanism, World
from wargames.core.topology import TopologyEngine, admissible_edges, order


def create_event(event_id: str, on: str) -> Event:
    return Event(event_id=event_id, title=event_id, date=on, state=StateVector())


def create_edge(src: str, dst: str, mechanism: Mechanism = Mechanism.MILITARY, weight: float = 1.0) -> Edge:
    return Edge(src=src, dst=dst, mechanism=mechanism, weight=weight)


def create_world(events, edges=()) -> World:
    return World(nodes={e.event_id: e for e in events}, edges=tuple(edges))


class TestOrder:

    def test_ascending_by_date(self):
        world = create_world([
            create_event("armistice", "1918-11-11"),
            create_event("sarajevo", "1914-06-28"),
            create_event("marne", "1914-09-06"),
        ])
        assert order(world) == ("sarajevo", "marne", "armistice")

    def test_same_date_broken_by_id(self):
        world = create_world([
            create_event("b", "1914-08-04"),
            create_event("a", "1914-08-04"),
            create_event("c", "1914-08-04"),
        ])
        assert order(world) == ("a", "b", "c")


class TestAdmissibleEdges:

    def test_backward_edge_dropped(self):
        world = create_world(
            [create_event("early", "1914-01-01"), create_event("late", "1915-01-01")],
            [create_edge("late", "early"), create_edge("early", "late")],
        )
        assert admissible_edges(world) == (create_edge("early", "late"),)

    def test_world_keeps_backward_edge(self):
        world = create_world(
            [create_event("early", "1914-01-01"), create_event("late", "1915-01-01")],
            [create_edge("late", "early")],
        )
        admissible_edges(world)
        assert len(world.edges) == 1

    def test_dangling_edge_dropped(self):
        world = create_world(
            [create_event("a", "1914-01-01")],
            [create_edge("a", "ghost"), create_edge("ghost", "a")],
        )
        assert admissible_edges(world) == ()

    def test_same_date_cycle_tolerated(self):
        world = create_world(
            [create_event("a", "1914-08-04"), create_event("b", "1914-08-04")],
            [create_edge("a", "b"), create_edge("b", "a")],
        )
        # Only the edge agreeing with the id tie-break survives
        assert admissible_edges(world) == (create_edge("a", "b"),)

    def test_input_order_preserved(self):
        world = create_world(
            [create_event("a", "1914-01-01"), create_event("b", "1914-02-01"), create_event("c", "1914-03-01")],
            [create_edge("a", "c"), create_edge("a", "b"), create_edge("b", "c")],
        )
        assert [(e.src, e.dst) for e in admissible_edges(world)] == [("a", "c"), ("a", "b"), ("b", "c")]


class TestGraphQueries:

    def test_build_graph(self):
        world = create_world(
            [create_event("a", "1914-01-01"), create_event("b", "1914-02-01")],
            [create_edge("a", "b", Mechanism.ECONOMIC, 0.5), create_edge("b", "a")],
        )
        graph = TopologyEngine().build_graph(world)
        assert isinstance(graph, nx.DiGraph)
        assert set(graph.nodes) == {"a", "b"}
        assert list(graph.edges(data=True)) == [("a", "b", {"mechanism": "economic", "weight": 0.5})]

    def test_descendants(self):
        world = create_world(
            [
                create_event("a", "1914-01-01"),
                create_event("b", "1914-02-01"),
                create_event("c", "1914-03-01"),
                create_event("d", "1914-04-01"),
            ],
            [create_edge("a", "b"), create_edge("b", "c"), create_edge("d", "a")],
        )
        engine = TopologyEngine()
        assert engine.descendants(world, "a") == {"b", "c"}
        assert engine.descendants(world, "d") == set()
        assert engine.descendants(world, "ghost") == set()

    def test_metrics(self):
        world = create_world(
            [create_event("a", "1914-01-01"), create_event("b", "1914-02-01")],
            [create_edge("a", "b"), create_edge("b", "a"), create_edge("a", "ghost")],
        )
        metrics = TopologyEngine().compute_metrics(world)
        assert metrics.event_count == 2
        assert metrics.edge_count == 3
        assert metrics.admissible_edge_count == 1
        assert metrics.dangling_edge_count == 1
        assert metrics.backward_edge_count == 1
        assert metrics.is_acyclic is True
