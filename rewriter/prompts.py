"""
Canonical Prompt Generation
===========================

Pure functions for generating rewrite prompts from a RewriteRequest.

INVARIANT: Same request → same prompt_hash
"""

from __future__ import annotations
from dataclasses import dataclass
import hashlib
import json

from .contracts import RewriteRequest


SYSTEM_PROMPT = """
You are a counterfactual historian assistant with an expert level knowledge of history, the infinite web of reverberating causes and consequences. The user will give you:
- a single node id that was changed in a historical timeline (changedId),
- the newText if provided, and
- the timeline as an array of events (each event has id, year, text, influences[]).

Task: produce a JSON array called "updates" describing the rewritten headlines for nodes that should be changed because of the input change. Provide only valid JSON. DO NOT include additional human text. Each update must be an object with fields:
- id (string)
- newText (string)
- confidence (number between 0 and 1, optional)
- reason (short string, optional)
- severity ("major" or "minor", optional)

Guidelines:
- Include the changed node itself as the first element with the newText.
- For descendants (nodes reachable via influences from changedId) decide whether they should be rewritten, postponed, or left unchanged.
- Use historical knowledge conservatively: if an outcome depends on many constraints, describe less radical rewrites; if the instruction clearly removes a causal prerequisite, make more radical rewrites.
- Keep reasons short (one sentence).
- Return only JSON, with property: {"updates": [...]}
"""


@dataclass(frozen=True)
class CanonicalPrompt:
    """
    Frozen prompt with hash for deterministic tracking.

    INVARIANT: Same request payload → same prompt_hash
    """
    system_text: str
    user_text: str
    request_hash: str
    prompt_hash: str

    @staticmethod
    def create(request: RewriteRequest) -> CanonicalPrompt:
        """
        Factory method for creating canonical prompts.

        This is the ONLY way to create prompts.
        """
        user_text = render_user_message(request)
        prompt_hash = hashlib.sha256(
            (SYSTEM_PROMPT + "\n" + user_text).encode()
        ).hexdigest()

        return CanonicalPrompt(
            system_text=SYSTEM_PROMPT,
            user_text=user_text,
            request_hash=request.content_hash(),
            prompt_hash=prompt_hash
        )


def render_user_message(request: RewriteRequest) -> str:
    data = json.dumps(request.to_payload())
    return f"Data:\n{data}\n\nRespond with JSON."
