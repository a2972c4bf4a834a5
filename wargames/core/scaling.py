"""
Mechanism Scaling Table
=======================

Static lookup translating a generic Delta into the share of it that
actually crosses an edge of a given mechanism.

Dimensions present in the delta but not listed for the mechanism leak
through at ``RESIDUAL_LEAKAGE``. Dimensions absent from the delta are
never introduced.
"""

from __future__ import annotations
from types import MappingProxyType
from typing import Mapping, Optional

from ..contracts.state import Delta
from ..contracts.world import Mechanism


RESIDUAL_LEAKAGE = 0.2

MECHANISM_SCALING: Mapping[Mechanism, Mapping[str, float]] = MappingProxyType({
    Mechanism.INFORMATIONAL: MappingProxyType({
        "public_support": 1.0,
        "war_escalation": 0.4,
        "political_stability": 0.3,
    }),
    Mechanism.DIPLOMATIC: MappingProxyType({
        "alliances_cohesion": 1.0,
        "political_stability": 0.6,
        "war_escalation": 0.2,
    }),
    Mechanism.MILITARY: MappingProxyType({
        "mobilization_level": 1.0,
        "casualties_expected": 1.0,
        "war_escalation": 0.7,
        "logistics_capacity": 0.3,
    }),
    Mechanism.ECONOMIC: MappingProxyType({
        "logistics_capacity": 1.0,
        "public_support": 0.3,
        "political_stability": 0.2,
    }),
    Mechanism.TECHNOLOGICAL: MappingProxyType({
        "logistics_capacity": 0.8,
    }),
})


def multiplier(
    mechanism: Mechanism,
    dimension: str,
    table: Optional[Mapping[Mechanism, Mapping[str, float]]] = None,
    residual: float = RESIDUAL_LEAKAGE,
) -> float:
    """Multiplier applied to ``dimension`` on a ``mechanism`` edge."""
    table = MECHANISM_SCALING if table is None else table
    return table.get(mechanism, {}).get(dimension, residual)


def scale(
    mechanism: Mechanism,
    delta: Delta,
    table: Optional[Mapping[Mechanism, Mapping[str, float]]] = None,
    residual: float = RESIDUAL_LEAKAGE,
) -> Delta:
    """Per-dimension mechanism scaling of ``delta``."""
    return Delta(**{
        dimension: value * multiplier(mechanism, dimension, table, residual)
        for dimension, value in delta.present().items()
    })
