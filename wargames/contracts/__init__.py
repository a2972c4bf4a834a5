"""
Contracts Module

This module defines the explicit interfaces and data transfer objects
that form the contracts between layers. All inter-layer communication
MUST use these contracts. No layer may import implementation details
from another layer.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Absent state dimensions are None, never an implicit zero
3. Errors are data (Error, ErrorCode), recorded rather than raised
4. Audit timestamps use UTC and are never mutated
5. Hash-based identity for persisted world versions
"""

from .base import (
    AuditEventType,
    AuditLogEntry,
    Error,
    ErrorCode,
    MetricPoint,
    Result,
    Timestamp,
    VersionId,
)
from .state import (
    BOUNDED_DIMENSIONS,
    CASUALTIES,
    NUMERIC_DIMENSIONS,
    Delta,
    StateVector,
    accumulate,
    clamp,
    commit,
    floor_casualties,
    merge,
)
from .world import (
    Edge,
    Event,
    Goal,
    GoalDirection,
    GoalMetric,
    Mechanism,
    World,
    parse_date,
)

__all__ = [
    'AuditEventType', 'AuditLogEntry', 'Error', 'ErrorCode', 'MetricPoint',
    'Result', 'Timestamp', 'VersionId',
    'BOUNDED_DIMENSIONS', 'CASUALTIES', 'NUMERIC_DIMENSIONS',
    'Delta', 'StateVector', 'accumulate', 'clamp', 'commit', 'floor_casualties', 'merge',
    'Edge', 'Event', 'Goal', 'GoalDirection', 'GoalMetric', 'Mechanism',
    'World', 'parse_date',
]
