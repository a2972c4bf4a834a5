"""
Temporal Decay
==============

Attenuation of an effect as a function of the time between cause and
effect: ``exp(-lambda * years)``.
"""

from __future__ import annotations
from datetime import date
import math


DECAY_LAMBDA = 0.25
DAYS_PER_YEAR = 365


def years_between(start: date, end: date) -> float:
    """Fractional years from ``start`` to ``end``, floored at 0."""
    return max(0.0, (end - start).days / DAYS_PER_YEAR)


def decay(years: float, decay_lambda: float = DECAY_LAMBDA) -> float:
    """Multiplicative attenuation factor; ``decay(0) == 1``."""
    return math.exp(-decay_lambda * max(0.0, years))
