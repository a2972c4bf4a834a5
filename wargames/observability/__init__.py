"""
Observability & Audit Layer

RESPONSIBILITY: Record what each intervention did, per layer, plus timing
and size metrics
ALLOWED INPUTS: Audit entries and metric samples from other layers
OUTPUTS: AuditLogEntry lists, MetricPoint series, audit reports

WHAT THIS LAYER MUST NOT DO:
============================
- Change a World or an intervention outcome
- Decide anything from what it has recorded

BOUNDARY ENFORCEMENT:
=====================
- Entries and samples are appended, never edited
- Nothing recorded here feeds back into propagation
"""

from __future__ import annotations
from dataclasses import dataclass, field
from collections import deque
from enum import Enum
from typing import Deque, Dict, List, Optional, Tuple
import hashlib

import numpy as np

# ONLY import from contracts - never from other layers' implementations
from ..contracts.base import (
    AuditEventType, AuditLogEntry, MetricPoint, Timestamp
)


# =============================================================================
# AUDIT LOG
# =============================================================================

class LogCollector:
    """
    Append-only audit log owned by one layer.

    With ``max_entries`` only the newest entries are kept; ``entry_count``
    still counts everything ever logged.
    """

    def __init__(self, layer_name: str, max_entries: Optional[int] = None):
        self._layer_name = layer_name
        self._entries: Deque[AuditLogEntry] = deque(maxlen=max_entries)
        self._logged = 0

    def log(
        self,
        event_type: AuditEventType,
        action: str,
        entity_id: Optional[str] = None,
        entity_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        parent_entry_id: Optional[str] = None
    ) -> AuditLogEntry:
        now = Timestamp.now()
        # Sequence keeps ids unique when two entries share a timestamp
        seed = f"{self._layer_name}|{action}|{self._logged}|{now.to_iso()}"
        entry = AuditLogEntry(
            entry_id="audit_" + hashlib.sha256(seed.encode()).hexdigest()[:16],
            event_type=event_type,
            timestamp=now,
            layer=self._layer_name,
            action=action,
            entity_id=entity_id,
            entity_type=entity_type,
            metadata=tuple(sorted((metadata or {}).items())),
            parent_entry_id=parent_entry_id
        )
        self._entries.append(entry)
        self._logged += 1
        return entry

    def get_entries(self, event_type: Optional[AuditEventType] = None) -> List[AuditLogEntry]:
        if event_type is None:
            return list(self._entries)
        return [e for e in self._entries if e.event_type == event_type]

    @property
    def layer_name(self) -> str:
        return self._layer_name

    @property
    def entry_count(self) -> int:
        return self._logged


# =============================================================================
# METRICS
# =============================================================================

class MetricType(Enum):
    COUNTER = "counter"
    GAUGE = "gauge"
    TIMING = "timing"


@dataclass(frozen=True)
class MetricDefinition:
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


INTERVENTION_METRICS = (
    MetricDefinition(
        "interventions_total", MetricType.COUNTER,
        "Interventions processed, by outcome (applied or rejected)", ("outcome",)
    ),
    MetricDefinition(
        "events_committed", MetricType.GAUGE,
        "Events committed by the last propagation pass"
    ),
    MetricDefinition(
        "edges_excluded", MetricType.GAUGE,
        "Edges skipped by the last pass, by reason (dangling or backward)", ("reason",)
    ),
    MetricDefinition(
        "contributions_dropped", MetricType.COUNTER,
        "Contributions addressed to an already committed event"
    ),
    MetricDefinition(
        "intervention_duration_ms", MetricType.TIMING,
        "Wall time of one intervention"
    ),
)


class MetricsCollector:
    """
    Append-only sample series keyed by metric name.

    The intervention metrics are declared up front; recording an
    undeclared name starts a new series. With ``max_points`` each series
    keeps only its newest samples.
    """

    def __init__(
        self,
        definitions: Tuple[MetricDefinition, ...] = INTERVENTION_METRICS,
        max_points: Optional[int] = None
    ):
        self._max_points = max_points
        self._definitions: Dict[str, MetricDefinition] = {d.name: d for d in definitions}
        self._metrics: Dict[str, Deque[MetricPoint]] = {
            d.name: deque(maxlen=max_points) for d in definitions
        }

    def definition(self, metric_name: str) -> Optional[MetricDefinition]:
        return self._definitions.get(metric_name)

    def record(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        if metric_name not in self._metrics:
            self._metrics[metric_name] = deque(maxlen=self._max_points)
        self._metrics[metric_name].append(MetricPoint(
            metric_name=metric_name,
            value=value,
            timestamp=Timestamp.now(),
            labels=tuple(sorted(labels.items())) if labels else ()
        ))

    def get_metric(self, metric_name: str) -> List[MetricPoint]:
        return list(self._metrics.get(metric_name, []))

    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        points = self._metrics.get(metric_name)
        return points[-1] if points else None

    def compute_aggregates(self, metric_name: str) -> Dict[str, float]:
        """count, sum, min, max, avg and p95 of a series; empty if no samples."""
        points = self._metrics.get(metric_name)
        if not points:
            return {}

        values = np.array([p.value for p in points], dtype=float)
        return {
            'count': len(values),
            'sum': float(values.sum()),
            'min': float(values.min()),
            'max': float(values.max()),
            'avg': float(values.mean()),
            'p95': float(np.percentile(values, 95)),
        }


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

@dataclass
class ObservabilityConfig:
    enable_metrics: bool = True
    # None keeps everything; long-running processes should set both
    max_entries_per_layer: Optional[int] = None
    max_points_per_metric: Optional[int] = None


class ObservabilityEngine:
    """Owns one LogCollector per layer and the shared metrics."""

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._collectors: Dict[str, LogCollector] = {}
        self._metrics: Optional[MetricsCollector] = (
            MetricsCollector(max_points=self._config.max_points_per_metric)
            if self._config.enable_metrics else None
        )

    def collector(self, layer: str) -> LogCollector:
        if layer not in self._collectors:
            self._collectors[layer] = LogCollector(layer, self._config.max_entries_per_layer)
        return self._collectors[layer]

    def log_audit(self, layer: str, event_type: AuditEventType, action: str, **kwargs) -> AuditLogEntry:
        return self.collector(layer).log(event_type, action, **kwargs)

    def collect_metric(
        self,
        metric_name: str,
        value: float,
        labels: Optional[Dict[str, str]] = None
    ):
        if self._metrics is not None:
            self._metrics.record(metric_name, value, labels)

    def get_unified_log(self, layers: Optional[List[str]] = None) -> List[AuditLogEntry]:
        """Entries from the selected layers (all by default), oldest first."""
        entries: List[AuditLogEntry] = []
        for name, collector in self._collectors.items():
            if layers is None or name in layers:
                entries.extend(collector.get_entries())
        return sorted(entries, key=lambda e: e.timestamp.value)

    def get_metrics(self) -> Optional[MetricsCollector]:
        return self._metrics

    def generate_audit_report(self) -> Dict:
        entries = self.get_unified_log()
        by_type: Dict[str, int] = {}
        for entry in entries:
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1
        errors = [e for e in entries if e.event_type == AuditEventType.ERROR]

        return {
            'total_entries': len(entries),
            'entries_by_layer': {
                name: c.entry_count for name, c in sorted(self._collectors.items())
            },
            'entries_by_type': by_type,
            'errors': [
                {'layer': e.layer, 'action': e.action, 'entity_id': e.entity_id}
                for e in errors
            ],
        }
