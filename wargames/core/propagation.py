"""
Propagation Accumulator
=======================

Single forward pass over the time-ordered event graph.

ALGORITHM:
==========
1. Seed the pending map with {source_id: delta}
2. Walk events in traversal order; for each event with a pending delta:
   a. commit it: merge, clamp, floor casualties
   b. push scale(mechanism, pending) * weight * decay(years) to every
      admissible successor, added (unclamped, unrounded) to its pending
      delta; casualties are rounded only when the successor commits
3. Every event is committed at most once

A contribution that reaches an already-committed event (only a
same-position edge, i.e. a self-loop, can do that) is dropped and
reported in the outcome. This is a single-pass approximation, not a
fixed-point solve.

BOUNDARY ENFORCEMENT:
=====================
- The input World is never mutated; a new World value is returned
- Unknown source ids and dangling edges are ignored, never fatal
- Recursion-free: stack depth does not grow with graph depth
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

from ..contracts.state import Delta, accumulate, commit
from ..contracts.world import Edge, Event, Mechanism, World
from .decay import DECAY_LAMBDA, decay, years_between
from .scaling import MECHANISM_SCALING, RESIDUAL_LEAKAGE, scale
from .topology import TopologyEngine, TopologyMetrics


@dataclass
class PropagationConfig:
    """Tunable constants of the diffusion model."""
    decay_lambda: float = DECAY_LAMBDA
    residual_leakage: float = RESIDUAL_LEAKAGE
    scaling_table: Mapping[Mechanism, Mapping[str, float]] = field(
        default_factory=lambda: MECHANISM_SCALING
    )


@dataclass(frozen=True)
class DroppedContribution:
    """A contribution that arrived after its destination was committed."""
    src: str
    dst: str
    contribution: Delta


@dataclass(frozen=True)
class PropagationOutcome:
    """Result of one propagation pass."""
    world: World
    source_found: bool
    committed: Tuple[str, ...] = field(default_factory=tuple)
    dropped: Tuple[DroppedContribution, ...] = field(default_factory=tuple)
    metrics: Optional[TopologyMetrics] = None


class PropagationEngine:
    """
    Diffuse a Delta from one event to everything downstream of it.

    Deterministic: same World, source and Delta always give the same
    output World.
    """

    def __init__(
        self,
        config: Optional[PropagationConfig] = None,
        topology: Optional[TopologyEngine] = None
    ):
        self._config = config or PropagationConfig()
        self._topology = topology or TopologyEngine()

    def contribution(self, edge: Edge, delta: Delta, src: Event, dst: Event) -> Delta:
        """Share of ``delta`` that crosses ``edge``."""
        factor = edge.weight * decay(
            years_between(src.date, dst.date),
            self._config.decay_lambda
        )
        scaled = scale(
            edge.mechanism,
            delta,
            self._config.scaling_table,
            self._config.residual_leakage
        )
        return scaled.scaled(factor)

    def run(self, world: World, source_id: str, delta: Delta) -> PropagationOutcome:
        order = self._topology.order(world)
        edges = self._topology.admissible_edges(world, order)
        outgoing = self._topology.outgoing(edges)
        metrics = self._topology.compute_metrics(world)

        pending: Dict[str, Delta] = {source_id: delta}
        updated: Dict[str, Event] = {}
        committed: List[str] = []
        done: Set[str] = set()
        dropped: List[DroppedContribution] = []

        for event_id in order:
            local = pending.pop(event_id, None)
            if local is None:
                continue

            event = world.nodes[event_id]
            updated[event_id] = event.with_state(commit(event.state, local))
            done.add(event_id)
            committed.append(event_id)

            for edge in outgoing.get(event_id, ()):
                share = self.contribution(edge, local, event, world.nodes[edge.dst])
                if share.is_empty:
                    continue
                if edge.dst in done:
                    dropped.append(DroppedContribution(src=edge.src, dst=edge.dst, contribution=share))
                    continue
                pending[edge.dst] = accumulate(pending.get(edge.dst, Delta()), share)

        return PropagationOutcome(
            world=world.with_events(updated),
            source_found=source_id in world.nodes,
            committed=tuple(committed),
            dropped=tuple(dropped),
            metrics=metrics,
        )

    def propagate(self, world: World, source_id: str, delta: Delta) -> World:
        return self.run(world, source_id, delta).world


_default_engine = PropagationEngine()


def propagate(world: World, source_id: str, delta: Delta) -> World:
    """Propagate ``delta`` from ``source_id`` with the default model constants."""
    return _default_engine.propagate(world, source_id, delta)
