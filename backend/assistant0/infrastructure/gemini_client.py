"""Resilient Gemini Client - google-generativeai streaming with retry and error mapping.

Invariants:
    - Retries happen only while opening the stream, never after a chunk was handed out
    - 429 and transient 5xx / deadline errors: up to max_retries retries, backoff with jitter
    - Other API errors fail on the first attempt
    - Every SDK failure leaves this module as GeminiAPIError with an HTTP status

Design Decisions:
    - generate_content_async(stream=True) resolves the first chunk before returning,
      so auth and quota failures land inside the retry loop
    - stream_message is an async context manager: errors raised while the caller
      iterates come back through the yield and get mapped in one place
"""

import asyncio
import logging
import random
from contextlib import asynccontextmanager

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from google.generativeai.types import BlockedPromptException, StopCandidateException

from assistant0.core.errors import ErrorContext, GeminiAPIError

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    google_exceptions.ResourceExhausted,
    google_exceptions.ServiceUnavailable,
    google_exceptions.InternalServerError,
    google_exceptions.DeadlineExceeded,
)
SAFETY_ERRORS = (BlockedPromptException, StopCandidateException)


def backoff_ms(attempt: int, base_ms: int, cap_ms: int) -> int:
    """base * 2^attempt, capped, then scaled by a random factor in [0.75, 1.25]."""
    ceiling = min(cap_ms, base_ms * (2 ** attempt))
    return int(ceiling * random.uniform(0.75, 1.25))  # nosec B311


def _http_status(error: google_exceptions.GoogleAPICallError) -> int:
    code = getattr(error, "code", None)
    if isinstance(code, int) and code >= 400:
        return code
    return 503


class ResilientGeminiClient:

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.0,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 120,
    ):
        genai.configure(api_key=api_key)
        self.model_name = model
        self.temperature = temperature
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.timeout_seconds = timeout_seconds

    @asynccontextmanager
    async def stream_message(
        self, *, system: str, tools: list[dict], contents: list[dict],
        context: ErrorContext | None = None,
    ):
        model = self._build_model(system, tools)
        response = await self._open_with_retry(model, contents, context)
        try:
            yield response
        except google_exceptions.GoogleAPICallError as e:
            raise GeminiAPIError(
                f"Stream interrupted: {e}", "stream_error",
                http_status=_http_status(e), context=context,
            ) from e
        except SAFETY_ERRORS as e:
            raise GeminiAPIError(
                str(e) or "Response blocked by safety filters", "blocked",
                http_status=400, context=context,
            ) from e

    def _build_model(self, system: str, tools: list[dict]):
        try:
            return genai.GenerativeModel(
                model_name=self.model_name,
                system_instruction=system,
                tools=[{"function_declarations": tools}] if tools else None,
                generation_config=genai.GenerationConfig(temperature=self.temperature),
            )
        except (TypeError, ValueError, KeyError) as e:
            raise GeminiAPIError(
                f"Invalid model configuration: {e}", "invalid_request", http_status=500,
            ) from e

    async def _open_with_retry(self, model, contents, context):
        attempt = 0
        while True:
            try:
                response = await model.generate_content_async(
                    contents, stream=True,
                    request_options={"timeout": self.timeout_seconds},
                )
            except TRANSIENT_ERRORS as e:
                if attempt >= self.max_retries:
                    raise self._exhausted(e, context) from e
                delay = backoff_ms(attempt, self.base_delay_ms, self.max_delay_ms)
                logger.warning(
                    "Gemini %s, retrying in %dms", type(e).__name__, delay,
                    extra={"attempt": attempt + 1},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue
            except google_exceptions.GoogleAPICallError as e:
                raise GeminiAPIError(
                    str(e), "client_error", http_status=_http_status(e), context=context,
                ) from e
            except SAFETY_ERRORS as e:
                raise GeminiAPIError(
                    str(e) or "Prompt blocked by safety filters", "blocked",
                    http_status=400, context=context,
                ) from e
            logger.info("Gemini stream opened", extra={"attempt": attempt + 1})
            return response

    def _exhausted(self, error, context) -> GeminiAPIError:
        rate_limited = isinstance(error, google_exceptions.ResourceExhausted)
        return GeminiAPIError(
            f"giving up after {self.max_retries} retries: {error}",
            "rate_limit" if rate_limited else "connection_error",
            http_status=_http_status(error), context=context,
        )
