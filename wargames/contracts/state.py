"""
State Vector Contracts

The per-event numeric state and the additive Delta applied to it.

SPARSITY:
=========
Every dimension is Optional. ``None`` means "no information", which is
NOT the same as zero. Arithmetic below only ever touches dimensions that
are present on at least one operand, so a dimension nobody mentioned
stays absent through a whole propagation pass.

INVARIANTS:
===========
- Bounded dimensions lie in [0, 1] after ``clamp``
- ``casualties_expected`` is a non-negative integer after ``floor_casualties``
- ``merge`` never clamps; intermediate sums keep their true magnitude
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Dict, Mapping, Optional, Tuple, TypeVar
import math


BOUNDED_DIMENSIONS: Tuple[str, ...] = (
    "war_escalation",
    "mobilization_level",
    "political_stability",
    "intel_leak_risk",
    "logistics_capacity",
    "alliances_cohesion",
    "public_support",
)

CASUALTIES = "casualties_expected"

NUMERIC_DIMENSIONS: Tuple[str, ...] = BOUNDED_DIMENSIONS + (CASUALTIES,)


def round_half_up(value: float) -> int:
    """Round to nearest integer, ties toward positive infinity."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class _Dimensions:
    """Numeric dimensions shared by StateVector and Delta."""
    war_escalation: Optional[float] = None
    mobilization_level: Optional[float] = None
    political_stability: Optional[float] = None
    intel_leak_risk: Optional[float] = None
    logistics_capacity: Optional[float] = None
    alliances_cohesion: Optional[float] = None
    public_support: Optional[float] = None
    casualties_expected: Optional[float] = None

    def __post_init__(self):
        for dimension in NUMERIC_DIMENSIONS:
            value = getattr(self, dimension)
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{dimension} must be numeric, got {type(value).__name__}")
            if not math.isfinite(value):
                raise ValueError(f"{dimension} must be finite")

    def get(self, dimension: str) -> Optional[float]:
        if dimension not in NUMERIC_DIMENSIONS:
            raise KeyError(dimension)
        return getattr(self, dimension)

    def present(self) -> Dict[str, float]:
        """Present numeric dimensions, in canonical order."""
        return {
            dimension: getattr(self, dimension)
            for dimension in NUMERIC_DIMENSIONS
            if getattr(self, dimension) is not None
        }

    @property
    def is_empty(self) -> bool:
        return not self.present()

    def to_dict(self) -> Dict[str, object]:
        return dict(self.present())


V = TypeVar("V", bound=_Dimensions)


@dataclass(frozen=True)
class Delta(_Dimensions):
    """
    Partial additive adjustment to a StateVector.

    Transient: produced and consumed within one propagation pass.
    """

    def scaled(self, factor: float) -> Delta:
        """Multiply every present dimension by ``factor``."""
        return Delta(**{k: v * factor for k, v in self.present().items()})

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> Delta:
        unknown = set(data) - set(NUMERIC_DIMENSIONS)
        if unknown:
            raise ValueError(f"Unknown delta dimensions: {sorted(unknown)}")
        return Delta(**{k: v for k, v in data.items() if v is not None})


@dataclass(frozen=True)
class StateVector(_Dimensions):
    """
    Committed state of one Event.

    ``frontline_position`` is a coarse free-form region tag; it never takes
    part in arithmetic and is carried through merges unchanged.
    """
    frontline_position: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        out: Dict[str, object] = dict(self.present())
        if self.frontline_position is not None:
            out["frontline_position"] = self.frontline_position
        return out

    @staticmethod
    def from_dict(data: Optional[Mapping[str, object]]) -> StateVector:
        if data is None:
            return StateVector()
        require_mapping(data, "state")
        allowed = set(NUMERIC_DIMENSIONS) | {"frontline_position"}
        unknown = set(data) - allowed
        if unknown:
            raise ValueError(f"Unknown state dimensions: {sorted(unknown)}")
        return StateVector(**{k: v for k, v in data.items() if v is not None})


def require_mapping(data: object, what: str) -> None:
    """Wire-format objects must be JSON objects; anything else is malformed."""
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be an object, got {type(data).__name__}")


# =============================================================================
# OPERATIONS (Pure)
# =============================================================================

def merge(base: V, delta: _Dimensions) -> V:
    """
    Sum ``delta`` into ``base`` dimension by dimension.

    Absent values contribute 0; a dimension absent on both stays absent.
    ``casualties_expected`` is rounded. The result is NOT clamped.
    """
    updates: Dict[str, float] = {}
    for dimension in NUMERIC_DIMENSIONS:
        a = base.get(dimension)
        b = delta.get(dimension)
        if a is None and b is None:
            continue
        total = (a or 0.0) + (b or 0.0)
        if dimension == CASUALTIES:
            total = round_half_up(total)
        updates[dimension] = total
    if not updates:
        return base
    return replace(base, **updates)


def accumulate(pending: Delta, share: _Dimensions) -> Delta:
    """
    Add a contribution to a pending delta without any rounding.

    Pending casualties stay fractional until ``commit`` rounds them, so
    several small shares reaching one event are not each rounded away.
    """
    updates: Dict[str, float] = {}
    for dimension, value in share.present().items():
        updates[dimension] = (pending.get(dimension) or 0.0) + value
    if not updates:
        return pending
    return replace(pending, **updates)


def clamp(state: V) -> V:
    """Clip every present bounded dimension to [0, 1]."""
    updates = {
        dimension: min(1.0, max(0.0, value))
        for dimension, value in state.present().items()
        if dimension in BOUNDED_DIMENSIONS
    }
    if not updates:
        return state
    return replace(state, **updates)


def floor_casualties(state: V) -> V:
    """Round ``casualties_expected`` and floor it at 0 when present."""
    value = state.casualties_expected
    if value is None:
        return state
    return replace(state, casualties_expected=max(0, round_half_up(value)))


def commit(state: StateVector, delta: _Dimensions) -> StateVector:
    """Apply a pending delta to committed state: merge, clamp, floor."""
    return floor_casualties(clamp(merge(state, delta)))
