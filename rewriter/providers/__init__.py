"""
Rewrite providers.

- MockProvider: offline, deterministic
- OpenAIChatProvider: OpenAI chat completions, in ``openai_chat``
"""

from .base import (
    InvocationParams,
    ModelVersion,
    ProviderErrorCode,
    ProviderResponse,
    RewriteProvider,
)
from .mock import MockProvider

__all__ = [
    'InvocationParams',
    'ModelVersion',
    'ProviderErrorCode',
    'ProviderResponse',
    'RewriteProvider',
    'MockProvider',
]

# OpenAIChatProvider is imported from rewriter.providers.openai_chat so the
# mock path does not load the openai client.
