"""
Core Causal State-Propagation Engine

RESPONSIBILITY: Delta extraction, mechanism scaling, temporal decay,
time-ordered traversal, accumulation and commit of State Vectors
ALLOWED INPUTS: World, event id, Delta or edited headline text
OUTPUTS: New World values and propagation outcomes (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Persist or load worlds (storage layer's job)
- Call any model or network service
- Mutate the World it was given
- Rank events or infer causality beyond the declared edges
"""

from .decay import DECAY_LAMBDA, decay, years_between
from .extraction import (
    ExtractionConfig,
    ExtractionResult,
    HeuristicDeltaExtractor,
    KeywordMatch,
    KeywordRule,
    extract,
)
from .propagation import (
    DroppedContribution,
    PropagationConfig,
    PropagationEngine,
    PropagationOutcome,
    propagate,
)
from .scaling import MECHANISM_SCALING, RESIDUAL_LEAKAGE, scale
from .topology import TopologyEngine, TopologyMetrics, admissible_edges, order

__all__ = [
    'DECAY_LAMBDA', 'decay', 'years_between',
    'ExtractionConfig', 'ExtractionResult', 'HeuristicDeltaExtractor',
    'KeywordMatch', 'KeywordRule', 'extract',
    'DroppedContribution', 'PropagationConfig', 'PropagationEngine',
    'PropagationOutcome', 'propagate',
    'MECHANISM_SCALING', 'RESIDUAL_LEAKAGE', 'scale',
    'TopologyEngine', 'TopologyMetrics', 'admissible_edges', 'order',
]
