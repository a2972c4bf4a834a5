"""
Propagation Accumulator Tests
=============================

Single forward pass: commit once per event, push scaled and decayed
shares forward, never mutate the input World.
"""

import pytest

from wargames.contracts.state import Delta, StateVector, round_half_up
from wargames.contracts.world import Edge, Event, Mechanism, World
from wargames.core.decay import decay, years_between
from wargames.core.propagation import PropagationConfig, PropagationEngine, propagate


def create_event(event_id: str, on: str, **state) -> Event:
    return Event(event_id=event_id, title=event_id, date=on, state=StateVector(**state))


def create_world(events, edges=()) -> World:
    return World(nodes={e.event_id: e for e in events}, edges=tuple(edges))


def month_decay() -> float:
    """Decay across 1914-06-01 -> 1914-07-01."""
    a = create_event("a", "1914-06-01")
    b = create_event("b", "1914-07-01")
    return decay(years_between(a.date, b.date))


@pytest.fixture
def chain():
    """a -> b -> c, military then diplomatic, one month apart."""
    return create_world(
        [
            create_event("a", "1914-06-01"),
            create_event("b", "1914-07-01"),
            create_event("c", "1914-08-01"),
        ],
        [
            Edge("a", "b", Mechanism.MILITARY, 1.0),
            Edge("b", "c", Mechanism.DIPLOMATIC, 0.5),
        ],
    )


class TestCommit:

    def test_source_commits_delta(self, chain):
        out = propagate(chain, "a", Delta(war_escalation=0.3))
        assert out.nodes["a"].state.war_escalation == pytest.approx(0.3)

    def test_source_clamped(self):
        world = create_world([create_event("a", "1914-06-01", war_escalation=0.9)])
        out = propagate(world, "a", Delta(war_escalation=0.5))
        assert out.nodes["a"].state.war_escalation == 1.0

    def test_downstream_sees_unclamped_delta(self):
        world = create_world(
            [create_event("a", "1914-06-01", war_escalation=0.9), create_event("b", "1914-07-01")],
            [Edge("a", "b", Mechanism.MILITARY, 1.0)],
        )
        out = propagate(world, "a", Delta(war_escalation=0.5))
        assert out.nodes["b"].state.war_escalation == pytest.approx(0.5 * 0.7 * month_decay())

    def test_casualties_floored_and_integral(self):
        world = create_world([create_event("a", "1914-06-01", casualties_expected=1000)])
        out = propagate(world, "a", Delta(casualties_expected=-5000))
        assert out.nodes["a"].state.casualties_expected == 0


class TestDiffusion:

    def test_military_hop(self, chain):
        out = propagate(chain, "a", Delta(mobilization_level=0.4, casualties_expected=20000))
        b = out.nodes["b"].state
        assert b.mobilization_level == pytest.approx(0.4 * month_decay())
        assert b.casualties_expected == round_half_up(20000 * month_decay())

    def test_second_hop_scaled_by_mechanism_and_weight(self, chain):
        out = propagate(chain, "a", Delta(war_escalation=0.5))
        b_share = 0.5 * 0.7 * month_decay()
        c_decay = decay(years_between(chain.nodes["b"].date, chain.nodes["c"].date))
        assert out.nodes["c"].state.war_escalation == pytest.approx(b_share * 0.2 * 0.5 * c_decay)

    def test_absent_dimension_stays_absent(self, chain):
        out = propagate(chain, "a", Delta(mobilization_level=0.4))
        assert out.nodes["b"].state.alliances_cohesion is None

    def test_multi_path_contributions_sum(self):
        world = create_world(
            [
                create_event("a", "1914-06-01"),
                create_event("b", "1914-06-01"),
                create_event("c", "1914-06-01"),
            ],
            [
                Edge("a", "c", Mechanism.MILITARY, 1.0),
                Edge("a", "b", Mechanism.MILITARY, 1.0),
                Edge("b", "c", Mechanism.MILITARY, 1.0),
            ],
        )
        out = propagate(world, "a", Delta(mobilization_level=0.2))
        # Same date: no decay, military passes mobilization in full
        assert out.nodes["c"].state.mobilization_level == pytest.approx(0.4)

    def test_fractional_casualty_shares_rounded_once(self):
        world = create_world(
            [create_event("a", "1914-06-01"), create_event("c", "1914-06-01")],
            [
                Edge("a", "c", Mechanism.MILITARY, 0.4),
                Edge("a", "c", Mechanism.MILITARY, 0.4),
            ],
        )
        out = propagate(world, "a", Delta(casualties_expected=1))
        # 0.4 + 0.4 rounds to 1 on commit; rounding each share would give 0
        assert out.nodes["c"].state.casualties_expected == 1

    def test_no_decay_when_lambda_zero(self, chain):
        engine = PropagationEngine(PropagationConfig(decay_lambda=0.0))
        out = engine.propagate(chain, "a", Delta(mobilization_level=0.4))
        assert out.nodes["b"].state.mobilization_level == pytest.approx(0.4)


class TestFailureSemantics:

    def test_unknown_source_is_ignored(self, chain):
        outcome = PropagationEngine().run(chain, "ghost", Delta(war_escalation=0.5))
        assert outcome.source_found is False
        assert outcome.committed == ()
        assert outcome.world == chain

    def test_dangling_edge_ignored(self):
        world = create_world(
            [create_event("a", "1914-06-01")],
            [Edge("a", "ghost", Mechanism.MILITARY, 1.0)],
        )
        out = propagate(world, "a", Delta(war_escalation=0.1))
        assert set(out.nodes) == {"a"}
        assert out.edges == world.edges

    def test_backward_edge_not_followed(self):
        world = create_world(
            [create_event("early", "1914-01-01"), create_event("late", "1915-01-01")],
            [Edge("late", "early", Mechanism.MILITARY, 1.0)],
        )
        out = propagate(world, "late", Delta(mobilization_level=0.5))
        assert out.nodes["early"].state == StateVector()

    def test_self_loop_contribution_dropped(self):
        world = create_world(
            [create_event("a", "1914-06-01")],
            [Edge("a", "a", Mechanism.MILITARY, 1.0)],
        )
        outcome = PropagationEngine().run(world, "a", Delta(mobilization_level=0.3))
        assert outcome.committed == ("a",)
        assert outcome.world.nodes["a"].state.mobilization_level == pytest.approx(0.3)
        assert len(outcome.dropped) == 1
        assert outcome.dropped[0].src == "a"
        assert outcome.metrics.is_acyclic is False

    def test_input_world_not_mutated(self, chain):
        before = chain.to_dict()
        propagate(chain, "a", Delta(war_escalation=0.5, casualties_expected=1000))
        assert chain.to_dict() == before

    def test_shape_preserved(self, chain):
        out = propagate(chain, "a", Delta(war_escalation=0.5))
        assert set(out.nodes) == set(chain.nodes)
        assert out.edges == chain.edges
        assert out.goals == chain.goals


class TestOutcome:

    def test_committed_in_time_order(self, chain):
        outcome = PropagationEngine().run(chain, "a", Delta(war_escalation=0.5))
        assert outcome.committed == ("a", "b", "c")

    def test_unreached_events_not_committed(self, chain):
        outcome = PropagationEngine().run(chain, "b", Delta(war_escalation=0.5))
        assert outcome.committed == ("b", "c")
        assert outcome.world.nodes["a"] is chain.nodes["a"]
