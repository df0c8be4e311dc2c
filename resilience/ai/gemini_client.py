"""
Gemini REST API client for structured extraction.

Thin async httpx wrapper around generateContent that always asks for
JSON output. Calls the REST API directly rather than through an SDK.

Features:
- Low default temperature (0.1) for reproducible extraction
- Response cache keyed on (prompt, temperature, max output tokens)
- Never raises: every failure comes back as text=None plus an error
  message and an error kind
- No retries; a failed call is final for that request
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx
from django.conf import settings

from resilience.ai.response_cache import (
    DEFAULT_CACHE_TTL_SECONDS,
    ResponseCache,
    build_cache_key,
    get_configured_cache,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_OUTPUT_TOKENS = 4096

RATE_LIMIT_MESSAGE = "Rate limit exceeded — try again in a few minutes"


class GeminiErrorKind(Enum):
    """Why a Gemini call produced no text."""

    NOT_CONFIGURED = "not_configured"
    RATE_LIMITED = "rate_limited"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"
    EMPTY_OUTPUT = "empty_output"


@dataclass
class GeminiRequest:
    """Request parameters for GeminiClient.generate()."""

    prompt: str
    temperature: float = DEFAULT_TEMPERATURE
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS


@dataclass
class GeminiResponse:
    """
    Result of a Gemini call.

    text is the raw JSON text from the model, or None if the call failed;
    error and error_kind then say why. duration_ms is the wall-clock time
    of the HTTP call (0 for cache hits and calls that never went out).
    """

    text: Optional[str]
    duration_ms: int = 0
    error: Optional[str] = None
    error_kind: Optional[GeminiErrorKind] = None

    @property
    def success(self) -> bool:
        return self.text is not None


class GeminiClient:
    """
    Async client for the Gemini generateContent endpoint.

    The API key is read from settings.GEMINI_API_KEY at call time when
    not given explicitly, so availability follows configuration changes.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        cache: Optional[ResponseCache] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Gemini API key (defaults to settings.GEMINI_API_KEY)
            model: Model name (defaults to settings.GEMINI_MODEL)
            base_url: API base URL (defaults to settings.GEMINI_BASE_URL)
            cache: Response cache (defaults to the configured backend)
            timeout: Request timeout in seconds
        """
        self._api_key = api_key
        self.model = model or getattr(settings, "GEMINI_MODEL", DEFAULT_MODEL)
        self.base_url = (
            base_url or getattr(settings, "GEMINI_BASE_URL", DEFAULT_BASE_URL)
        ).rstrip("/")
        self.cache = cache if cache is not None else get_configured_cache()
        self.timeout = timeout or getattr(settings, "GEMINI_REQUEST_TIMEOUT", 60.0)

    @property
    def api_key(self) -> str:
        if self._api_key is not None:
            return self._api_key
        return getattr(settings, "GEMINI_API_KEY", "") or ""

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _build_payload(self, request: GeminiRequest) -> Dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": request.prompt}]}],
            "generationConfig": {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_output_tokens,
                "responseMimeType": "application/json",
            },
        }

    async def generate(
        self,
        request: GeminiRequest,
        cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
    ) -> GeminiResponse:
        """
        Call Gemini for structured text extraction.

        Args:
            request: Prompt and generation settings
            cache_ttl: Cache lifetime in seconds; 0 skips the cache

        Returns:
            GeminiResponse with text, or text=None and an error
        """
        api_key = self.api_key
        if not api_key:
            return GeminiResponse(
                text=None,
                error="GEMINI_API_KEY not configured",
                error_kind=GeminiErrorKind.NOT_CONFIGURED,
            )

        cache_key = build_cache_key(
            request.prompt, request.temperature, request.max_output_tokens
        )
        if cache_ttl > 0:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Gemini cache hit ({len(request.prompt)} char prompt)")
                return GeminiResponse(text=cached, duration_ms=0)

        url = f"{self.base_url}/models/{self.model}:generateContent"
        start = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    url,
                    params={"key": api_key},
                    json=self._build_payload(request),
                    headers={"Content-Type": "application/json"},
                )
        except Exception as e:
            duration_ms = _elapsed_ms(start)
            logger.warning(f"Gemini request failed after {duration_ms}ms: {e}")
            return GeminiResponse(
                text=None,
                error=f"Gemini request failed: {e}",
                duration_ms=duration_ms,
                error_kind=GeminiErrorKind.TRANSPORT_ERROR,
            )

        duration_ms = _elapsed_ms(start)
        result = self._parse_response(response, duration_ms)

        if result.success and cache_ttl > 0:
            self.cache.set(cache_key, result.text, cache_ttl)

        return result

    def _parse_response(self, response: httpx.Response, duration_ms: int) -> GeminiResponse:
        """
        Turn an HTTP response into a GeminiResponse.

        Args:
            response: httpx Response object
            duration_ms: Time the call took

        Returns:
            GeminiResponse with the first candidate's text or an error
        """
        if response.status_code == 429:
            logger.warning("Gemini rate limit hit")
            return GeminiResponse(
                text=None,
                error=RATE_LIMIT_MESSAGE,
                duration_ms=duration_ms,
                error_kind=GeminiErrorKind.RATE_LIMITED,
            )

        if not response.is_success:
            error_msg = f"Gemini API {response.status_code}: {response.text[:200]}"
            logger.warning(error_msg)
            return GeminiResponse(
                text=None,
                error=error_msg,
                duration_ms=duration_ms,
                error_kind=GeminiErrorKind.HTTP_ERROR,
            )

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError):
            text = None

        if not text:
            return GeminiResponse(
                text=None,
                error="Gemini returned empty response",
                duration_ms=duration_ms,
                error_kind=GeminiErrorKind.EMPTY_OUTPUT,
            )

        logger.debug(f"Gemini call succeeded in {duration_ms}ms")
        return GeminiResponse(text=text, duration_ms=duration_ms)


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


# Process-wide client, created on first use
_default_client: Optional[GeminiClient] = None


def get_gemini_client() -> GeminiClient:
    """
    Get the shared Gemini client configured from Django settings.

    Returns:
        GeminiClient instance
    """
    global _default_client

    if _default_client is None:
        _default_client = GeminiClient()

    return _default_client


async def call_gemini(
    request: GeminiRequest,
    cache_ttl: float = DEFAULT_CACHE_TTL_SECONDS,
) -> GeminiResponse:
    """Call Gemini with the shared client."""
    return await get_gemini_client().generate(request, cache_ttl=cache_ttl)


def clear_gemini_cache() -> None:
    """Clear the shared client's response cache."""
    get_gemini_client().cache.clear()
