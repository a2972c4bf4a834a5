"""
Integration Test Fixtures

Small, explicit Worlds for scenario testing.
All fixtures are explicit - no random generation.
"""

from pathlib import Path

from wargames.contracts.state import StateVector
from wargames.contracts.world import (
    Edge,
    Event,
    Goal,
    GoalDirection,
    GoalMetric,
    Mechanism,
    World,
)


WWI_PATH = Path(__file__).resolve().parents[2] / "data" / "wwi.json"

ESCALATING_EDIT = "Archduke assassinated, war declared"
EASING_EDIT = "Ceasefire negotiated, armistice signed"
NEUTRAL_EDIT = "Archduke visits Sarajevo"


# =============================================================================
# WORLD FIXTURES
# =============================================================================

def create_two_event_world(prior: StateVector = None) -> World:
    """A(1914-06-01) -military, weight 1.0-> B(1914-07-01)."""
    return World(
        nodes={
            "A": Event(event_id="A", title="Archduke visits Sarajevo", date="1914-06-01",
                       state=prior or StateVector()),
            "B": Event(event_id="B", title="Austria mobilizes", date="1914-07-01"),
        },
        edges=(Edge(src="A", dst="B", mechanism=Mechanism.MILITARY, weight=1.0),),
    )


def create_world_with_goal() -> World:
    world = create_two_event_world()
    goal = Goal(
        goal_id="short_war",
        name="Short war",
        description="Finish early",
        metrics=(
            GoalMetric(key="war_escalation", target=0.3, weight=0.7, direction=GoalDirection.MIN),
            GoalMetric(key="end_by_date", target="1916-12-31", weight=0.3),
        ),
    )
    return World(nodes=world.nodes, edges=world.edges, goals=(goal,))
