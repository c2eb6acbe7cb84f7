# src/mend_safety/infrastructure/external_apis/narrative/client.py
# Copyright (c) Mend.
# SPDX-License-Identifier: MIT
"""Narrative generator backed by an OpenAI-compatible chat completions API.

This transport provides:

* Async HTTP (httpx) with a per-attempt timeout.
* Bounded jittered retries for transport errors, 429 and 5xx.
* A circuit breaker in front of the endpoint.

Caller-facing failures are always ``UpstreamUnavailable``; httpx types never
cross the boundary.
"""

from __future__ import annotations

from typing import Any, Final

import httpx

from mend_safety.config.settings import Settings
from mend_safety.domain.entities.report import NarrativeRequest
from mend_safety.domain.exceptions.safety import UpstreamUnavailable
from mend_safety.infrastructure.external_apis.narrative.prompt import (
    SYSTEM_PROMPT,
    parse_completion,
    render_prompt,
)
from mend_safety.infrastructure.logging.logger import get_json_logger, get_request_id
from mend_safety.infrastructure.resilience.circuit_breaker import CircuitBreaker
from mend_safety.infrastructure.resilience.retry import RetryPolicy, call_upstream

logger = get_json_logger(__name__)

_RETRYABLE_STATUS: Final[frozenset[int]] = frozenset({429, 500, 502, 503, 504})
_TEMPERATURE: Final[float] = 0.3


class _RetryableStatus(Exception):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"narrative endpoint returned {status_code}")
        self.status_code = status_code


def _retryable(exc: Exception) -> bool:
    return isinstance(exc, httpx.TransportError | _RetryableStatus)


class HttpNarrativeGenerator:
    """NarrativeGenerator calling a remote chat completions endpoint."""

    def __init__(
        self,
        *,
        url: str,
        model: str,
        http: httpx.AsyncClient,
        api_key: str | None = None,
        policy: RetryPolicy,
        timeout_s: float,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self._url = url
        self._model = model
        self._http = http
        self._api_key = api_key
        self._policy = policy
        self._timeout_s = timeout_s
        self._breaker = breaker or CircuitBreaker()

    @classmethod
    def from_settings(
        cls, settings: Settings, http: httpx.AsyncClient, *, breaker: CircuitBreaker | None = None
    ) -> HttpNarrativeGenerator:
        if not settings.narrative_api_url:
            raise ValueError("NARRATIVE_API_URL is not configured")
        key = settings.narrative_api_key
        return cls(
            url=settings.narrative_api_url,
            model=settings.narrative_model,
            http=http,
            api_key=key.get_secret_value() if key is not None else None,
            policy=RetryPolicy.from_settings(settings),
            timeout_s=settings.narrative_timeout_s,
            breaker=breaker,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        rid = get_request_id()
        if rid:
            headers["X-Request-ID"] = rid
        return headers

    def _body(self, request: NarrativeRequest) -> dict[str, Any]:
        return {
            "model": self._model,
            "temperature": _TEMPERATURE,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": render_prompt(request)},
            ],
        }

    async def _post_once(self, body: dict[str, Any]) -> str:
        resp = await self._http.post(self._url, json=body, headers=self._headers())
        if resp.status_code in _RETRYABLE_STATUS:
            raise _RetryableStatus(resp.status_code)
        if resp.status_code >= 400:
            raise UpstreamUnavailable(
                "narrative endpoint rejected the request",
                details={"status": resp.status_code},
            )
        try:
            payload = resp.json()
            content = payload["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise UpstreamUnavailable("malformed narrative response") from exc
        if not isinstance(content, str):
            raise UpstreamUnavailable("malformed narrative response")
        return content

    async def generate(self, request: NarrativeRequest) -> str:
        """Generate narrative text for ``request``.

        Raises:
            UpstreamUnavailable: On exhausted retries, an open circuit, a
                rejected request, or an empty or malformed reply.
        """
        body = self._body(request)
        async with self._breaker.guard("narrative"):
            content = await call_upstream(
                lambda: self._post_once(body),
                policy=self._policy,
                timeout_s=self._timeout_s,
                operation="narrative.generate",
                retry_on=_retryable,
            )
        try:
            text = parse_completion(content)
        except ValueError as exc:
            raise UpstreamUnavailable("narrative generator returned an empty reply") from exc

        logger.info(
            "narrative.generated",
            extra={
                "extra": {
                    "employer_id": request.employer_id,
                    "month": str(request.month),
                    "chars": len(text),
                }
            },
        )
        return text
