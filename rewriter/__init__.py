"""
Headline Rewriter Adapter

RESPONSIBILITY: Propose rewritten headlines for events downstream of an edit
ALLOWED INPUTS: RewriteRequest (changed id, new text, timeline) or a World
OUTPUTS: RewriteResponse with HeadlineUpdate records

WHAT THIS LAYER MUST NOT DO:
============================
- Modify State Vectors
- Be called by the propagation engine
- Raise on provider or parse failures

BOUNDARY ENFORCEMENT:
=====================
- Reads World values, never writes to a store
- All outputs are advisory until applied with ``apply_updates``
"""

from .contracts import (
    TimelineEntry,
    RewriteRequest,
    Severity,
    HeadlineUpdate,
    RewriteErrorCode,
    RewriteError,
    RewriteResponse,
)
from .prompts import CanonicalPrompt, SYSTEM_PROMPT
from .cascade import CascadeRewriter, RewriteParseError, parse_updates, apply_updates

__all__ = [
    'TimelineEntry',
    'RewriteRequest',
    'Severity',
    'HeadlineUpdate',
    'RewriteErrorCode',
    'RewriteError',
    'RewriteResponse',
    'CanonicalPrompt',
    'SYSTEM_PROMPT',
    'CascadeRewriter',
    'RewriteParseError',
    'parse_updates',
    'apply_updates',
]
