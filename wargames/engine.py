"""
Engine Orchestration Module

Top-level entry point for an intervention: one edited headline in, one
new World out.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. Worlds are values: received, never mutated, returned new
3. All operations are traceable through observability
4. No process-wide graph state; callers own persistence

INTERVENTION FLOW:
==================
1. Capture the edited event's prior war_escalation
2. Extraction: edited text -> Delta
3. Propagation: Delta -> new World
4. Headline tag: append a trend suffix when war_escalation moved by
   more than the threshold
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple
import time

from .contracts.base import AuditEventType, AuditLogEntry, Error, ErrorCode
from .contracts.state import Delta
from .contracts.world import World
from .core.extraction import ExtractionConfig, ExtractionResult, HeuristicDeltaExtractor
from .core.propagation import PropagationConfig, PropagationEngine, PropagationOutcome
from .core.topology import TopologyEngine
from .observability import MetricsCollector, ObservabilityConfig, ObservabilityEngine


TENSIONS_RISE = " (tensions rise)"
TENSIONS_EASE = " (tensions ease)"
TAG_THRESHOLD = 0.2


@dataclass
class InterventionConfig:
    tag_threshold: float = TAG_THRESHOLD
    rise_suffix: str = TENSIONS_RISE
    ease_suffix: str = TENSIONS_EASE


@dataclass
class EngineConfig:
    """Unified configuration for the whole engine."""
    extraction: ExtractionConfig = None
    propagation: PropagationConfig = None
    intervention: InterventionConfig = None
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.extraction = self.extraction or ExtractionConfig()
        self.propagation = self.propagation or PropagationConfig()
        self.intervention = self.intervention or InterventionConfig()
        self.observability = self.observability or ObservabilityConfig()


@dataclass(frozen=True)
class InterventionOutcome:
    """Everything one intervention produced."""
    world: World
    event_id: str
    applied: bool
    escalation_change: float = 0.0
    tag: Optional[str] = None
    extraction: Optional[ExtractionResult] = None
    propagation: Optional[PropagationOutcome] = None
    error: Optional[Error] = None


def tag_headline(
    edited_text: str,
    escalation_change: float,
    config: Optional[InterventionConfig] = None
) -> Tuple[str, Optional[str]]:
    """
    Display title for an edited event, and the suffix used if any.

    A suffix already present at the end of the text is not repeated.
    """
    config = config or InterventionConfig()
    if abs(escalation_change) <= config.tag_threshold:
        return edited_text, None
    tag = config.ease_suffix if escalation_change < 0 else config.rise_suffix
    if edited_text.endswith(tag):
        return edited_text, tag
    return edited_text + tag, tag


class InterventionEngine:
    """
    Orchestrates extraction, propagation and headline tagging.

    This is the only place titles are changed. Rewriting the headlines
    of OTHER events is the cascade rewriter's job (see ``rewriter``),
    which this engine never calls.
    """

    LAYER = "engine"

    def __init__(self, config: Optional[EngineConfig] = None):
        self._config = config or EngineConfig()
        self._topology = TopologyEngine()
        self._extractor = HeuristicDeltaExtractor(self._config.extraction)
        self._propagation = PropagationEngine(self._config.propagation, self._topology)
        self._observability = ObservabilityEngine(self._config.observability)

    # =========================================================================
    # ENTRY POINTS
    # =========================================================================

    def intervene(self, world: World, event_id: str, edited_text: str) -> World:
        return self.run(world, event_id, edited_text).world

    def propagate(self, world: World, source_id: str, delta: Delta) -> World:
        outcome = self._propagation.run(world, source_id, delta)
        self._record_propagation(source_id, outcome)
        return outcome.world

    def run(self, world: World, event_id: str, edited_text: str) -> InterventionOutcome:
        started = time.perf_counter()
        source = world.get(event_id)

        if source is None:
            error = Error.create(
                ErrorCode.EVENT_NOT_FOUND,
                f"Intervention targets unknown event {event_id!r}"
            )
            self._observability.log_audit(
                self.LAYER, AuditEventType.ERROR, "intervention_rejected",
                entity_id=event_id, entity_type="event",
                metadata={"error_code": error.code.name}
            )
            self._observability.collect_metric("interventions_total", 1.0, {"outcome": "rejected"})
            return InterventionOutcome(world=world, event_id=event_id, applied=False, error=error)

        prior = source.state.war_escalation or 0.0

        extraction = self._extractor.analyze(edited_text)
        extract_entry = self._observability.log_audit(
            "extraction", AuditEventType.EXTRACTION, "delta_extracted",
            entity_id=event_id, entity_type="event",
            metadata={
                "matches": ",".join(f"{m.rule}:{m.keyword}" for m in extraction.matches),
                "delta": repr(extraction.delta.to_dict()),
                "table_version": extraction.table_version,
            }
        )

        propagation = self._propagation.run(world, event_id, extraction.delta)
        self._record_propagation(event_id, propagation, parent_entry_id=extract_entry.entry_id)

        updated_source = propagation.world.nodes[event_id]
        change = (updated_source.state.war_escalation or 0.0) - prior
        title, tag = tag_headline(edited_text, change, self._config.intervention)

        result = propagation.world.with_events({event_id: updated_source.with_title(title)})

        self._observability.log_audit(
            self.LAYER, AuditEventType.STATE_CHANGE, "title_updated",
            entity_id=event_id, entity_type="event",
            metadata={"escalation_change": f"{change:.6f}", "tag": tag or ""},
            parent_entry_id=extract_entry.entry_id
        )
        self._observability.collect_metric("interventions_total", 1.0, {"outcome": "applied"})
        self._observability.collect_metric(
            "intervention_duration_ms", (time.perf_counter() - started) * 1000.0
        )

        return InterventionOutcome(
            world=result,
            event_id=event_id,
            applied=True,
            escalation_change=change,
            tag=tag,
            extraction=extraction,
            propagation=propagation,
        )

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================

    def _record_propagation(
        self,
        source_id: str,
        outcome: PropagationOutcome,
        parent_entry_id: Optional[str] = None
    ):
        metadata = {
            "source_found": str(outcome.source_found),
            "committed": ",".join(outcome.committed),
            "dropped": str(len(outcome.dropped)),
        }
        if outcome.metrics is not None:
            metadata["dangling_edges"] = str(outcome.metrics.dangling_edge_count)
            metadata["backward_edges"] = str(outcome.metrics.backward_edge_count)
            metadata["acyclic"] = str(outcome.metrics.is_acyclic)

        self._observability.log_audit(
            "propagation", AuditEventType.PROPAGATION, "propagated",
            entity_id=source_id, entity_type="event",
            metadata=metadata, parent_entry_id=parent_entry_id
        )

        if not outcome.source_found:
            self._observability.log_audit(
                "propagation", AuditEventType.ERROR, "source_ignored",
                entity_id=source_id, entity_type="event",
                metadata={"error_code": ErrorCode.EVENT_NOT_FOUND.name}
            )
        for dropped in outcome.dropped:
            self._observability.log_audit(
                "propagation", AuditEventType.ERROR, "contribution_dropped",
                entity_id=dropped.dst, entity_type="event",
                metadata={"error_code": ErrorCode.LATE_CONTRIBUTION.name, "src": dropped.src}
            )

        self._observability.collect_metric("events_committed", float(len(outcome.committed)))
        self._observability.collect_metric("contributions_dropped", float(len(outcome.dropped)))
        if outcome.metrics is not None:
            self._observability.collect_metric(
                "edges_excluded", float(outcome.metrics.dangling_edge_count), {"reason": "dangling"}
            )
            self._observability.collect_metric(
                "edges_excluded", float(outcome.metrics.backward_edge_count), {"reason": "backward"}
            )

    def get_audit_log(self, layers: Optional[List[str]] = None) -> List[AuditLogEntry]:
        return self._observability.get_unified_log(layers)

    def get_audit_report(self):
        return self._observability.generate_audit_report()

    def get_metrics(self) -> Optional[MetricsCollector]:
        return self._observability.get_metrics()

    @property
    def topology(self) -> TopologyEngine:
        return self._topology

    @property
    def extractor(self) -> HeuristicDeltaExtractor:
        return self._extractor


def intervene(world: World, event_id: str, edited_text: str) -> World:
    """Run one intervention with a fresh default engine."""
    return InterventionEngine().intervene(world, event_id, edited_text)
