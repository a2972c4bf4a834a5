"""
Offline rewrite provider.

Reads the timeline back out of the user message and answers with a
fixed-shape rewrite, so the whole cascade path runs without a network.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
import json

from .base import (
    InvocationParams,
    ModelVersion,
    ProviderErrorCode,
    ProviderResponse,
    RewriteProvider,
    utc_now,
)

MOCK_VERSION = ModelVersion(provider_id="mock", model_id="mock-cascade-v1", api_version="1")


class MockProvider(RewriteProvider):
    """
    The changed event comes back first with its new text, then each event
    it directly influences comes back as a minor rewrite.

    ``content`` replaces the generated answer verbatim; ``failure_mode``
    makes every call fail with that code. Calls are recorded in ``calls``.
    """

    def __init__(
        self,
        content: Optional[str] = None,
        failure_mode: Optional[ProviderErrorCode] = None
    ):
        self._content = content
        self._failure_mode = failure_mode
        self.calls: List[Dict[str, str]] = []

    def get_version(self) -> ModelVersion:
        return MOCK_VERSION

    def invoke(self, system: str, prompt: str, params: InvocationParams) -> ProviderResponse:
        self.calls.append({"system": system, "prompt": prompt})

        if self._failure_mode is not None:
            return ProviderResponse.failed(
                self._failure_mode,
                f"mock failure: {self._failure_mode.value}",
                MOCK_VERSION,
                utc_now(),
            )

        content = self._content if self._content is not None else self._answer(prompt)
        return ProviderResponse.ok(content, MOCK_VERSION, utc_now())

    def _answer(self, prompt: str) -> str:
        first, last = prompt.find("{"), prompt.rfind("}")
        if first == -1 or last == -1:
            return json.dumps({"updates": []})
        data: Dict[str, Any] = json.loads(prompt[first:last + 1])

        timeline = {str(e["id"]): e for e in data.get("timeline", [])}
        changed_id = data.get("changedId")
        changed = timeline.get(changed_id)
        if changed is None:
            return json.dumps({"updates": []})

        new_text = data.get("newText") or changed.get("text", "")
        updates = [{
            "id": changed_id,
            "newText": new_text,
            "confidence": 1.0,
            "reason": "Edited by the user.",
            "severity": "major",
        }]
        for child_id in changed.get("influences", []):
            child = timeline.get(str(child_id))
            if child is None:
                continue
            updates.append({
                "id": str(child_id),
                "newText": f"{child.get('text', '')} (in the wake of: {new_text})",
                "confidence": 0.5,
                "reason": "Directly influenced by the changed event.",
                "severity": "minor",
            })
        return json.dumps({"updates": updates}, sort_keys=True)
