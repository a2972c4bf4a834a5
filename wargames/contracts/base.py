"""
Shared Contract Types

Errors, results, audit records and version ids used by every layer of
the engine. Pure frozen data; nothing here touches a World.

BOUNDARY ENFORCEMENT:
=====================
- Failures that callers must handle travel as Error values inside a
  Result; exceptions are reserved for malformed contract construction
- Audit timestamps are UTC
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple
from enum import Enum, auto
import hashlib


# =============================================================================
# ERRORS
# =============================================================================

class ErrorCode(Enum):
    # Loading a world
    MALFORMED_WORLD = auto()
    WORLD_NOT_FOUND = auto()

    # Intervention and propagation
    EVENT_NOT_FOUND = auto()
    LATE_CONTRIBUTION = auto()

    # Persistence
    VERSION_NOT_FOUND = auto()
    WRITE_FAILED = auto()


@dataclass(frozen=True)
class Error:
    """An error recorded as a value, with optional key/value context."""
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str) -> Error:
        return Error(code=code, message=message, timestamp=datetime.now(timezone.utc))

    def with_context(self, key: str, value: str) -> Error:
        return Error(self.code, self.message, self.timestamp, self.context + ((key, value),))


@dataclass(frozen=True)
class Result:
    """Holds a value on success or an Error on failure."""
    value: Optional[object] = None
    error: Optional[Error] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    @staticmethod
    def success(value: object) -> Result:
        return Result(value=value)

    @staticmethod
    def failure(error: Error) -> Result:
        return Result(error=error)


# =============================================================================
# TIME AND VERSIONS
# =============================================================================

@dataclass(frozen=True)
class Timestamp:
    """
    UTC wall-clock instant for audit records and saved versions.

    Event dates are calendar dates and live on the Event contract.
    """
    value: datetime

    def __post_init__(self):
        if self.value.tzinfo is None:
            object.__setattr__(self, 'value', self.value.replace(tzinfo=timezone.utc))

    @staticmethod
    def now() -> Timestamp:
        return Timestamp(value=datetime.now(timezone.utc))

    def to_iso(self) -> str:
        return self.value.isoformat()


@dataclass(frozen=True)
class VersionId:
    """Identifier of one saved World, chained to the version before it."""
    value: str
    sequence: int
    parent_version: Optional[str] = None

    @staticmethod
    def generate(content_hash: str, sequence: int, parent: Optional[str] = None) -> VersionId:
        seed = f"{content_hash}|{sequence}|{parent or 'root'}"
        digest = hashlib.sha256(seed.encode('utf-8')).hexdigest()[:12]
        return VersionId(value=f"v_{digest}", sequence=sequence, parent_version=parent)


# =============================================================================
# AUDIT
# =============================================================================

class AuditEventType(Enum):
    EXTRACTION = "extraction"
    PROPAGATION = "propagation"
    STATE_CHANGE = "state_change"
    STORAGE = "storage"
    ERROR = "error"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    entry_id: str
    event_type: AuditEventType
    timestamp: Timestamp
    layer: str
    action: str
    entity_id: Optional[str] = None
    entity_type: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    parent_entry_id: Optional[str] = None


@dataclass(frozen=True)
class MetricPoint:
    metric_name: str
    value: float
    timestamp: Timestamp
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
