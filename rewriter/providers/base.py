"""
Rewrite Provider Interface
==========================

A provider turns one (system, user) message pair into raw model text.
It knows nothing about events, timelines or JSON; the cascade rewriter
builds the prompt and parses the answer.

BOUNDARY ENFORCEMENT:
- ``invoke`` never raises; failures come back as ProviderResponse.failed
- Providers hold no conversation state between invocations
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
import time


class ProviderErrorCode(Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    INVALID_RESPONSE = "invalid_response"
    API_ERROR = "api_error"
    NETWORK_ERROR = "network_error"
    NOT_CONFIGURED = "not_configured"


@dataclass(frozen=True)
class ModelVersion:
    """Which model answered, for the rewrite audit trail."""
    provider_id: str
    model_id: str
    api_version: str


@dataclass(frozen=True)
class InvocationParams:
    temperature: float = 0.6
    max_tokens: int = 1200
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class ProviderResponse:
    """
    Raw model output or an explicit failure.

    Exactly one of ``content`` (on success) or ``error_code`` (on failure)
    is set.
    """
    success: bool
    content: Optional[str] = None
    error_code: Optional[ProviderErrorCode] = None
    error_message: Optional[str] = None
    model_version: Optional[ModelVersion] = None
    invoked_at: Optional[datetime] = None
    latency_ms: float = 0.0

    def __post_init__(self):
        if self.success and self.content is None:
            raise ValueError("Successful response must have content")
        if not self.success and self.error_code is None:
            raise ValueError("Failed response must have error_code")

    @staticmethod
    def ok(
        content: str,
        version: ModelVersion,
        invoked_at: datetime,
        started: Optional[float] = None
    ) -> ProviderResponse:
        return ProviderResponse(
            success=True,
            content=content,
            model_version=version,
            invoked_at=invoked_at,
            latency_ms=elapsed_ms(started),
        )

    @staticmethod
    def failed(
        code: ProviderErrorCode,
        message: str,
        version: ModelVersion,
        invoked_at: datetime,
        started: Optional[float] = None
    ) -> ProviderResponse:
        return ProviderResponse(
            success=False,
            error_code=code,
            error_message=message,
            model_version=version,
            invoked_at=invoked_at,
            latency_ms=elapsed_ms(started),
        )


def elapsed_ms(started: Optional[float]) -> float:
    """Milliseconds since a ``time.perf_counter()`` reading, 0 if none."""
    if started is None:
        return 0.0
    return (time.perf_counter() - started) * 1000.0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RewriteProvider(ABC):
    """Chat-completion backend used by the cascade rewriter."""

    @abstractmethod
    def invoke(self, system: str, prompt: str, params: InvocationParams) -> ProviderResponse:
        """Send one system + user message pair and return the raw answer."""

    @abstractmethod
    def get_version(self) -> ModelVersion:
        ...

    @property
    def provider_id(self) -> str:
        return self.get_version().provider_id
