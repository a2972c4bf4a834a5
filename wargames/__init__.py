"""
War Games Causal State-Propagation Engine

This package implements a layered engine that carries the effect of one
edited historical headline forward through a dated graph of causally
linked events. Each layer communicates only through explicit contracts.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Responsibility: State Vectors, Deltas, Events, Edges, Goals, Worlds,
     errors and audit records
   - Outputs: Frozen dataclasses
   - MUST NOT: Contain engine logic beyond validation and arithmetic

2. CORE ENGINE (core/)
   - Responsibility: Keyword delta extraction, mechanism scaling, temporal
     decay, time-ordered traversal, accumulation and commit
   - Allowed inputs: World, event id, Delta or edited text
   - Outputs: New World values (input never mutated)
   - MUST NOT: Persist data, call models, hold process-wide graph state

3. STORAGE (storage/)
   - Responsibility: Load and save Worlds, keep version history
   - MUST NOT: Interpret or propagate worlds

4. OBSERVABILITY & AUDIT (observability/)
   - Responsibility: Audit entries and metrics for every intervention
   - MUST NOT: Modify system behavior

5. API (api/)
   - Responsibility: HTTP transport around the engine, store and rewriter
   - MUST NOT: Contain engine logic

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: World values are frozen, updates return new Worlds
- Deterministic: Identical inputs always produce identical outputs
- Explicit errors: No silent fallbacks, all error states are queryable
- Forward-only: Effects never reach events dated before their source
"""

from .contracts import (
    Delta,
    Edge,
    Event,
    Goal,
    GoalMetric,
    Mechanism,
    StateVector,
    World,
)
from .core import propagate
from .engine import EngineConfig, InterventionEngine, InterventionOutcome, intervene

__all__ = [
    'Delta',
    'Edge',
    'Event',
    'Goal',
    'GoalMetric',
    'Mechanism',
    'StateVector',
    'World',
    'propagate',
    'EngineConfig',
    'InterventionEngine',
    'InterventionOutcome',
    'intervene',
]
