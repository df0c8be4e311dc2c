"""
AI services for the resilience pipeline.

Gemini-backed extraction used to recover events that deterministic
adapter parsers could not handle.
"""

from resilience.ai.gemini_client import (
    GeminiClient,
    GeminiErrorKind,
    GeminiRequest,
    GeminiResponse,
    call_gemini,
    clear_gemini_cache,
    get_gemini_client,
)
from resilience.ai.parse_recovery import attempt_ai_recovery, is_ai_recovery_available

__all__ = [
    "GeminiClient",
    "GeminiErrorKind",
    "GeminiRequest",
    "GeminiResponse",
    "call_gemini",
    "clear_gemini_cache",
    "get_gemini_client",
    "attempt_ai_recovery",
    "is_ai_recovery_available",
]
