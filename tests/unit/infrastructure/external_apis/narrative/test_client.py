# tests/unit/infrastructure/external_apis/narrative/test_client.py
from __future__ import annotations

import json

import httpx
import pytest
import respx

from mend_safety.domain.exceptions.safety import UpstreamUnavailable
from mend_safety.infrastructure.external_apis.narrative.client import HttpNarrativeGenerator
from mend_safety.infrastructure.resilience.circuit_breaker import BreakerState, CircuitBreaker
from mend_safety.infrastructure.resilience.retry import RetryPolicy
from testkit.safety import narrative_request

URL = "https://llm.example.test/v1/chat/completions"
FAST = RetryPolicy(attempts=3, base_s=0.0, cap_s=0.0, jitter=False)


def _completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def _generator(http: httpx.AsyncClient, **kwargs) -> HttpNarrativeGenerator:
    return HttpNarrativeGenerator(
        url=URL,
        model="test-model",
        http=http,
        api_key="sk-test",
        policy=FAST,
        timeout_s=1.0,
        **kwargs,
    )


@pytest.mark.asyncio
@respx.mock
async def test_generate_posts_prompt_and_formats_reply() -> None:
    route = respx.post(URL).mock(
        return_value=_completion(
            json.dumps({"summary": "Rates are high.", "recommendations": ["Audit sites"]})
        )
    )

    async with httpx.AsyncClient() as http:
        text = await _generator(http).generate(narrative_request())

    assert text == "Rates are high.\n\nRecommendations:\n- Audit sites"
    sent = route.calls.last.request
    assert sent.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(sent.content)
    assert body["model"] == "test-model"
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert "REPORT PERIOD: March 2025" in body["messages"][1]["content"]


@pytest.mark.asyncio
@respx.mock
async def test_transient_status_is_retried() -> None:
    route = respx.post(URL).mock(
        side_effect=[httpx.Response(503), httpx.Response(429), _completion("Recovered.")]
    )

    async with httpx.AsyncClient() as http:
        text = await _generator(http).generate(narrative_request())

    assert text == "Recovered."
    assert route.call_count == 3


@pytest.mark.asyncio
@respx.mock
async def test_exhausted_retries_raise_upstream_unavailable() -> None:
    route = respx.post(URL).mock(return_value=httpx.Response(503))

    async with httpx.AsyncClient() as http:
        with pytest.raises(UpstreamUnavailable):
            await _generator(http).generate(narrative_request())

    assert route.call_count == 3


@pytest.mark.asyncio
@respx.mock
async def test_transport_errors_are_retried_then_mapped() -> None:
    route = respx.post(URL).mock(side_effect=httpx.ConnectError("refused"))

    async with httpx.AsyncClient() as http:
        with pytest.raises(UpstreamUnavailable):
            await _generator(http).generate(narrative_request())

    assert route.call_count == 3


@pytest.mark.asyncio
@respx.mock
async def test_client_errors_are_not_retried() -> None:
    route = respx.post(URL).mock(return_value=httpx.Response(400, json={"error": "bad"}))

    async with httpx.AsyncClient() as http:
        with pytest.raises(UpstreamUnavailable) as exc:
            await _generator(http).generate(narrative_request())

    assert exc.value.details == {"status": 400}
    assert route.call_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"choices": []}),
        httpx.Response(200, text="not json"),
        _completion("   "),
    ],
)
async def test_malformed_or_empty_reply_is_upstream_unavailable(response: httpx.Response) -> None:
    with respx.mock:
        respx.post(URL).mock(return_value=response)
        async with httpx.AsyncClient() as http:
            with pytest.raises(UpstreamUnavailable):
                await _generator(http).generate(narrative_request())


@pytest.mark.asyncio
@respx.mock
async def test_open_breaker_fails_fast() -> None:
    route = respx.post(URL).mock(return_value=httpx.Response(500))
    breaker = CircuitBreaker(failure_threshold=1, recovery_timeout_s=60.0)

    async with httpx.AsyncClient() as http:
        generator = _generator(http, breaker=breaker)
        with pytest.raises(UpstreamUnavailable):
            await generator.generate(narrative_request())
        assert breaker.state is BreakerState.OPEN
        with pytest.raises(UpstreamUnavailable, match="circuit open"):
            await generator.generate(narrative_request())

    assert route.call_count == 3
