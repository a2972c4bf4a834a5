"""
Rewriter Contracts

Typed request/response schemas for engine ↔ headline-rewriter traffic.

BOUNDARY ENFORCEMENT:
=====================
- All types are FROZEN (immutable)
- Rewriter output is ADVISORY: it proposes new headlines for OTHER
  events, it never touches State Vectors
- The core engine does not import this package
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple
import hashlib
import json
import math


# =============================================================================
# INPUT CONTRACTS (Engine → Rewriter)
# =============================================================================

@dataclass(frozen=True)
class TimelineEntry:
    """One event as the rewriter sees it."""
    event_id: str
    year: int
    text: str
    influences: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.event_id,
            "year": self.year,
            "text": self.text,
            "influences": list(self.influences),
        }

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> TimelineEntry:
        return TimelineEntry(
            event_id=str(data["id"]),
            year=int(data["year"]),
            text=str(data.get("text", "")),
            influences=tuple(str(i) for i in data.get("influences") or ()),
        )


@dataclass(frozen=True)
class RewriteRequest:
    """
    A changed event plus the timeline it lives in.

    ``new_text`` may be None when the caller only wants downstream
    consequences of a change already applied to ``timeline``.
    """
    changed_id: str
    timeline: Tuple[TimelineEntry, ...]
    new_text: Optional[str] = None

    def __post_init__(self):
        if not self.changed_id:
            raise ValueError("changed_id must be non-empty")
        if not self.timeline:
            raise ValueError("timeline must be non-empty")

    def to_payload(self) -> Dict[str, Any]:
        return {
            "changedId": self.changed_id,
            "newText": self.new_text,
            "timeline": [entry.to_dict() for entry in self.timeline],
        }

    def content_hash(self) -> str:
        payload = json.dumps(self.to_payload(), sort_keys=True)
        return hashlib.sha256(payload.encode()).hexdigest()


# =============================================================================
# OUTPUT CONTRACTS (Rewriter → Engine)
# =============================================================================

class Severity(Enum):
    MAJOR = "major"
    MINOR = "minor"


@dataclass(frozen=True)
class HeadlineUpdate:
    """A proposed new headline for one event."""
    event_id: str
    new_text: str
    confidence: Optional[float] = None
    reason: Optional[str] = None
    severity: Optional[Severity] = None

    def __post_init__(self):
        if not self.event_id:
            raise ValueError("Update id must be non-empty")
        if self.confidence is not None and not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Confidence must be between 0 and 1")

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.event_id, "newText": self.new_text}
        if self.confidence is not None:
            out["confidence"] = self.confidence
        if self.reason is not None:
            out["reason"] = self.reason
        if self.severity is not None:
            out["severity"] = self.severity.value
        return out

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> HeadlineUpdate:
        """
        Build an update from model output.

        ``id`` and ``newText`` are required. The optional fields are
        advisory: confidence is clipped to [0, 1], and a non-numeric
        confidence, an unknown severity or a non-string reason is dropped.
        """
        if "id" not in data or "newText" not in data:
            raise ValueError("Update requires 'id' and 'newText'")
        reason = data.get("reason")
        return HeadlineUpdate(
            event_id=str(data["id"]),
            new_text=str(data["newText"]),
            confidence=_advisory_confidence(data.get("confidence")),
            reason=reason if isinstance(reason, str) else None,
            severity=_advisory_severity(data.get("severity")),
        )


def _advisory_confidence(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value):
        return None
    return min(1.0, max(0.0, float(value)))


def _advisory_severity(value: Any) -> Optional[Severity]:
    try:
        return Severity(value)
    except ValueError:
        return None


class RewriteErrorCode(Enum):
    """
    Explicit error codes for rewriter failures.

    No silent fallbacks - every failure mode is queryable.
    """
    PROVIDER_FAILED = "provider_failed"
    NON_JSON_RESPONSE = "non_json_response"
    INVALID_SHAPE = "invalid_shape"


@dataclass(frozen=True)
class RewriteError:
    error_code: RewriteErrorCode
    message: str
    raw: Optional[str] = None


@dataclass(frozen=True)
class RewriteResponse:
    """
    Either updates (success) or an error, plus the raw model text.
    """
    success: bool
    updates: Tuple[HeadlineUpdate, ...] = field(default_factory=tuple)
    raw: Optional[str] = None
    error: Optional[RewriteError] = None
    request_hash: Optional[str] = None

    @staticmethod
    def failure(
        code: RewriteErrorCode,
        message: str,
        raw: Optional[str] = None,
        request_hash: Optional[str] = None
    ) -> RewriteResponse:
        return RewriteResponse(
            success=False,
            raw=raw,
            error=RewriteError(error_code=code, message=message, raw=raw),
            request_hash=request_hash,
        )

    def updates_by_id(self) -> Dict[str, HeadlineUpdate]:
        return {u.event_id: u for u in self.updates}
