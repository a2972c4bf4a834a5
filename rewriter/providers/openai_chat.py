"""
OpenAI Chat Provider
====================

Chat-completion provider backed by the ``openai`` client.

Network-bound and non-deterministic. Used only by the cascade rewriter,
never by the propagation engine.
"""

from __future__ import annotations
from typing import Optional
import os
import time

import openai
from openai import OpenAI

from .base import (
    InvocationParams,
    ModelVersion,
    ProviderErrorCode,
    ProviderResponse,
    RewriteProvider,
    utc_now,
)


DEFAULT_MODEL = "gpt-4o-mini"

# Checked in order; subclasses before APIError.
_ERROR_CODES = (
    (openai.APITimeoutError, ProviderErrorCode.TIMEOUT),
    (openai.RateLimitError, ProviderErrorCode.RATE_LIMITED),
    (openai.APIConnectionError, ProviderErrorCode.NETWORK_ERROR),
    (openai.APIError, ProviderErrorCode.API_ERROR),
)


class OpenAIChatProvider(RewriteProvider):

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        client: Optional[OpenAI] = None
    ):
        self._model = model
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        self._client = client
        self._version = ModelVersion(
            provider_id="openai",
            model_id=model,
            api_version=openai.__version__
        )

    def get_version(self) -> ModelVersion:
        return self._version

    def _get_client(self) -> Optional[OpenAI]:
        if self._client is None and self._api_key:
            self._client = OpenAI(api_key=self._api_key)
        return self._client

    def invoke(self, system: str, prompt: str, params: InvocationParams) -> ProviderResponse:
        invoked_at = utc_now()
        started = time.perf_counter()

        client = self._get_client()
        if client is None:
            return ProviderResponse.failed(
                ProviderErrorCode.NOT_CONFIGURED, "OPENAI_API_KEY is not set",
                self._version, invoked_at, started
            )

        try:
            completion = client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                temperature=params.temperature,
                max_tokens=params.max_tokens,
                timeout=params.timeout_seconds,
            )
        except openai.APIError as e:
            code = next(c for kind, c in _ERROR_CODES if isinstance(e, kind))
            return ProviderResponse.failed(code, str(e), self._version, invoked_at, started)

        content = completion.choices[0].message.content if completion.choices else None
        if content is None:
            return ProviderResponse.failed(
                ProviderErrorCode.INVALID_RESPONSE, "Completion has no content",
                self._version, invoked_at, started
            )

        return ProviderResponse.ok(content, self._version, invoked_at, started)
