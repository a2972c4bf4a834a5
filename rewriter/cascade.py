"""
Cascade Headline Rewriter
=========================

Asks a chat provider how an edited headline ripples through the
headlines of downstream events.

BOUNDARY ENFORCEMENT:
- Output is a RewriteResponse; applying it to a World is a separate,
  explicit step (``apply_updates``)
- State Vectors are never touched here
- Provider and parse failures are explicit responses, never exceptions
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import json

from wargames.contracts.base import AuditEventType
from wargames.contracts.world import World
from wargames.core.topology import TopologyEngine
from wargames.observability import LogCollector

from .contracts import (
    HeadlineUpdate,
    RewriteErrorCode,
    RewriteRequest,
    RewriteResponse,
    TimelineEntry,
)
from .prompts import CanonicalPrompt
from .providers.base import InvocationParams, RewriteProvider


class RewriteParseError(ValueError):
    """Model text could not be turned into headline updates."""

    def __init__(self, code: RewriteErrorCode, message: str):
        super().__init__(message)
        self.code = code


def parse_updates(raw: str) -> Tuple[HeadlineUpdate, ...]:
    """
    Parse model text into headline updates.

    Tries the whole text first, then the substring between the first
    ``{`` and the last ``}``. Raises RewriteParseError when neither is
    JSON or the payload is not ``{"updates": [...]}`` with valid items.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        first, last = raw.find("{"), raw.rfind("}")
        if first == -1 or last == -1:
            raise RewriteParseError(RewriteErrorCode.NON_JSON_RESPONSE, "Model returned non-JSON")
        try:
            data = json.loads(raw[first:last + 1])
        except json.JSONDecodeError:
            raise RewriteParseError(RewriteErrorCode.NON_JSON_RESPONSE, "Model returned non-JSON")

    if not isinstance(data, dict) or not isinstance(data.get("updates"), list):
        raise RewriteParseError(RewriteErrorCode.INVALID_SHAPE, "Invalid JSON shape from model")

    updates: List[HeadlineUpdate] = []
    for item in data["updates"]:
        if not isinstance(item, dict):
            raise RewriteParseError(RewriteErrorCode.INVALID_SHAPE, "Invalid JSON shape from model")
        try:
            updates.append(HeadlineUpdate.from_dict(item))
        except (TypeError, ValueError) as e:
            raise RewriteParseError(RewriteErrorCode.INVALID_SHAPE, str(e))
    return tuple(updates)


class CascadeRewriter:
    """
    Provider-backed headline rewriter.

    GUARANTEES:
    - Same request → same prompt_hash
    - Every failure is a RewriteResponse with an error code
    """

    def __init__(
        self,
        provider: RewriteProvider,
        params: Optional[InvocationParams] = None,
        topology: Optional[TopologyEngine] = None,
        max_audit_entries: Optional[int] = None
    ):
        self._provider = provider
        self._params = params or InvocationParams()
        self._topology = topology or TopologyEngine()
        self._log = LogCollector("rewriter", max_audit_entries)

    @property
    def provider(self) -> RewriteProvider:
        return self._provider

    def build_timeline(
        self,
        world: World,
        only: Optional[set] = None
    ) -> Tuple[TimelineEntry, ...]:
        """
        Timeline entries in traversal order.

        ``influences`` lists the destinations of each event's non-dangling
        edges. When ``only`` is given, events and influences outside it are
        left out.
        """
        influences: Dict[str, List[str]] = {}
        for edge in world.edges:
            if edge.src in world.nodes and edge.dst in world.nodes:
                if only is None or edge.dst in only:
                    influences.setdefault(edge.src, []).append(edge.dst)

        entries = []
        for event_id in self._topology.order(world):
            if only is not None and event_id not in only:
                continue
            event = world.nodes[event_id]
            entries.append(TimelineEntry(
                event_id=event_id,
                year=event.date.year,
                text=event.title,
                influences=tuple(influences.get(event_id, ())),
            ))
        return tuple(entries)

    def rewrite(self, request: RewriteRequest) -> RewriteResponse:
        prompt = CanonicalPrompt.create(request)
        entry = self._log.log(
            AuditEventType.SYSTEM,
            "rewrite_requested",
            entity_id=request.changed_id,
            entity_type="event",
            metadata={
                "provider": self._provider.provider_id,
                "prompt_hash": prompt.prompt_hash,
                "timeline_size": str(len(request.timeline)),
            },
        )

        response = self._provider.invoke(
            system=prompt.system_text,
            prompt=prompt.user_text,
            params=self._params
        )

        if not response.success:
            code = response.error_code.value if response.error_code else "unknown"
            self._log.log(
                AuditEventType.ERROR,
                "provider_failed",
                entity_id=request.changed_id,
                metadata={"error_code": code},
                parent_entry_id=entry.entry_id,
            )
            return RewriteResponse.failure(
                RewriteErrorCode.PROVIDER_FAILED,
                response.error_message or f"Provider error: {code}",
                request_hash=prompt.request_hash,
            )

        raw = response.content or ""
        try:
            updates = parse_updates(raw)
        except RewriteParseError as e:
            self._log.log(
                AuditEventType.ERROR,
                "parse_failed",
                entity_id=request.changed_id,
                metadata={"error_code": e.code.value, "message": str(e)},
                parent_entry_id=entry.entry_id,
            )
            return RewriteResponse.failure(e.code, str(e), raw=raw, request_hash=prompt.request_hash)

        self._log.log(
            AuditEventType.SYSTEM,
            "rewrite_completed",
            entity_id=request.changed_id,
            metadata={"updates": str(len(updates))},
            parent_entry_id=entry.entry_id,
        )
        return RewriteResponse(
            success=True,
            updates=updates,
            raw=raw,
            request_hash=prompt.request_hash,
        )

    def rewrite_world(
        self,
        world: World,
        changed_id: str,
        new_text: Optional[str] = None,
        subtree_only: bool = False
    ) -> RewriteResponse:
        """
        Build the timeline from ``world`` and rewrite.

        With ``subtree_only`` the timeline holds only the changed event and
        its descendants over admissible edges.
        """
        only = None
        if subtree_only:
            only = self._topology.descendants(world, changed_id) | {changed_id}
        return self.rewrite(RewriteRequest(
            changed_id=changed_id,
            timeline=self.build_timeline(world, only),
            new_text=new_text,
        ))

    def get_audit_log(self):
        return self._log.get_entries()


def apply_updates(world: World, response: RewriteResponse) -> World:
    """Replace titles of known events with their proposed headlines."""
    if not response.success:
        return world
    replacements: Dict[str, Any] = {}
    for update in response.updates:
        event = world.get(update.event_id)
        if event is not None:
            replacements[update.event_id] = event.with_title(update.new_text)
    return world.with_events(replacements) if replacements else world
