"""Resilient Gemini Client - retry, backoff and error mapping.

Tests cover:
    - Transient errors retried, then the stream opens
    - Retries exhausted -> GeminiAPIError with upstream status
    - Client errors (4xx) fail immediately
    - Mid-stream API errors mapped on the way out of stream_message
    - Backoff stays within ±25% jitter and the max delay
"""

import pytest
from google.api_core import exceptions as google_exceptions

from assistant0.core.errors import GeminiAPIError
from assistant0.infrastructure.gemini_client import ResilientGeminiClient, backoff_ms


class FakeModel:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def generate_content_async(self, contents, stream, request_options):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class ChunkResponse:
    def __init__(self, chunks):
        self.chunks = chunks

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk


class FailingResponse:
    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        yield "chunk"
        raise google_exceptions.InternalServerError("backend reset")


def _client(model, max_retries=2):
    client = ResilientGeminiClient(
        api_key="test-key", max_retries=max_retries, base_delay_ms=0, max_delay_ms=0,
    )
    client._build_model = lambda system, tools: model
    return client


async def _consume(client):
    chunks = []
    async with client.stream_message(system="s", tools=[], contents=[]) as stream:
        async for chunk in stream:
            chunks.append(chunk)
    return chunks


async def test_transient_error_retried():
    model = FakeModel([
        google_exceptions.ServiceUnavailable("down"), ChunkResponse(["a", "b"]),
    ])
    assert await _consume(_client(model)) == ["a", "b"]
    assert model.calls == 2


async def test_rate_limit_exhausts_retries():
    model = FakeModel([google_exceptions.ResourceExhausted("quota")] * 3)
    with pytest.raises(GeminiAPIError) as exc:
        await _consume(_client(model, max_retries=2))
    assert model.calls == 3
    assert exc.value.http_status == 429
    assert exc.value.api_error_type == "rate_limit"


async def test_client_error_not_retried():
    model = FakeModel([google_exceptions.InvalidArgument("bad request")])
    with pytest.raises(GeminiAPIError) as exc:
        await _consume(_client(model))
    assert model.calls == 1
    assert exc.value.http_status == 400


async def test_mid_stream_error_mapped():
    model = FakeModel([FailingResponse()])
    with pytest.raises(GeminiAPIError) as exc:
        await _consume(_client(model))
    assert exc.value.api_error_type == "stream_error"
    assert model.calls == 1


def test_backoff_bounds():
    for attempt in range(6):
        delay = backoff_ms(attempt, 1000, 4000)
        expected = min(4000, (2 ** attempt) * 1000)
        assert expected * 0.75 <= delay <= expected * 1.25
