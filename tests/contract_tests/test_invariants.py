"""
Property Tests for Propagation Invariants
Clamp invariant, no-op propagation, decay monotonicity, forward-only
effect and mechanism isolation over generated Worlds.
"""

import pytest
from hypothesis import given, strategies as st
from hypothesis.strategies import composite
from datetime import date

from wargames.contracts.state import BOUNDED_DIMENSIONS, CASUALTIES, Delta, StateVector
from wargames.contracts.world import Edge, Event, Mechanism, World
from wargames.core.decay import decay
from wargames.core.propagation import propagate
from wargames.core.scaling import MECHANISM_SCALING, RESIDUAL_LEAKAGE, scale

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

WAR_DATES = st.dates(min_value=date(1914, 1, 1), max_value=date(1918, 12, 31))


@composite
def state_vectors(draw):
    """Generates valid committed states (bounded dims in [0, 1])."""
    values = {}
    for dimension in BOUNDED_DIMENSIONS:
        values[dimension] = draw(st.one_of(st.none(), st.floats(min_value=0.0, max_value=1.0)))
    values[CASUALTIES] = draw(st.one_of(st.none(), st.integers(min_value=0, max_value=10**6)))
    return StateVector(**values)


@composite
def deltas(draw):
    """Generates deltas with arbitrary sign and magnitude."""
    values = {}
    for dimension in BOUNDED_DIMENSIONS:
        values[dimension] = draw(st.one_of(st.none(), st.floats(min_value=-3.0, max_value=3.0)))
    values[CASUALTIES] = draw(st.one_of(st.none(), st.integers(min_value=-60000, max_value=60000)))
    return Delta(**values)


@composite
def worlds(draw):
    """Generates Worlds with random dates, including same-date ties and backward edges."""
    count = draw(st.integers(min_value=1, max_value=8))
    ids = [f"e{i}" for i in range(count)]
    nodes = {
        event_id: Event(
            event_id=event_id,
            title=event_id,
            date=draw(WAR_DATES),
            state=draw(state_vectors()),
        )
        for event_id in ids
    }
    edges = draw(st.lists(
        st.builds(
            Edge,
            src=st.sampled_from(ids),
            dst=st.sampled_from(ids + ["ghost"]),
            mechanism=st.sampled_from(list(Mechanism)),
            weight=st.floats(min_value=0.0, max_value=1.0),
        ),
        max_size=16,
    ))
    return World(nodes=nodes, edges=tuple(edges))


@composite
def world_with_source(draw):
    world = draw(worlds())
    source = draw(st.sampled_from(sorted(world.nodes)))
    return world, source


# =============================================================================
# PROPERTY TESTS
# =============================================================================

@given(world_with_source(), deltas())
def test_clamp_invariant(world_source, delta):
    """Every bounded dimension lies in [0, 1]; casualties are non-negative integers."""
    world, source = world_source
    out = propagate(world, source, delta)
    for event in out.nodes.values():
        for dimension in BOUNDED_DIMENSIONS:
            value = event.state.get(dimension)
            if value is not None:
                assert 0.0 <= value <= 1.0, f"{event.event_id}.{dimension} = {value}"
        casualties = event.state.casualties_expected
        if casualties is not None:
            assert casualties >= 0
            assert casualties == int(casualties)


@given(world_with_source())
def test_empty_delta_is_noop(world_source):
    """propagate(world, id, {}) leaves every state unchanged."""
    world, source = world_source
    out = propagate(world, source, Delta())
    for event_id, event in world.nodes.items():
        assert out.nodes[event_id].state == event.state


@given(
    st.floats(min_value=0.0, max_value=50.0),
    st.floats(min_value=0.01, max_value=50.0),
)
def test_decay_strictly_decreasing(y1, gap):
    assert decay(y1) > decay(y1 + gap)


@given(world_with_source(), deltas())
def test_forward_only_effect(world_source, delta):
    """Events dated strictly before the source never change."""
    world, source = world_source
    out = propagate(world, source, delta)
    source_date = world.nodes[source].date
    for event_id, event in world.nodes.items():
        if event.date < source_date:
            assert out.nodes[event_id].state == event.state


@given(world_with_source(), deltas())
def test_input_never_mutated(world_source, delta):
    world, source = world_source
    before = world.to_dict()
    propagate(world, source, delta)
    assert world.to_dict() == before


@given(world_with_source(), deltas())
def test_deterministic(world_source, delta):
    world, source = world_source
    assert propagate(world, source, delta) == propagate(world, source, delta)


@given(deltas(), st.sampled_from(list(Mechanism)))
def test_mechanism_isolation(delta, mechanism):
    """Listed dimensions use their multiplier; unlisted present ones leak at 0.2; absent stay absent."""
    scaled = scale(mechanism, delta)
    row = MECHANISM_SCALING[mechanism]
    for dimension, value in delta.present().items():
        expected = value * row.get(dimension, RESIDUAL_LEAKAGE)
        assert scaled.get(dimension) == pytest.approx(expected)
    for dimension in set(BOUNDED_DIMENSIONS + (CASUALTIES,)) - set(delta.present()):
        assert scaled.get(dimension) is None


@given(st.floats(min_value=-3.0, max_value=3.0).filter(lambda v: v != 0.0))
def test_economic_edge_does_not_create_mobilization(value):
    scaled = scale(Mechanism.ECONOMIC, Delta(logistics_capacity=value))
    assert scaled.mobilization_level is None
    assert scaled.logistics_capacity == pytest.approx(value)
