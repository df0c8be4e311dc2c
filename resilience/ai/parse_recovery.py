"""
AI parse recovery for event listings.

When a deterministic adapter parser fails on a row (a new date format,
a rearranged post), the raw text is sent to Gemini and the extracted
fields are merged with whatever the parser already salvaged.

Rules:
- Deterministic parsers always run first; AI is a fallback only
- Only parse errors carrying raw_text are attempted
- Skipped entirely when no Gemini key is configured
- Partial data from the parser always wins over model output
- Items are processed one at a time; a failed item never aborts the batch
"""

import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from resilience.ai.extraction_prompts import build_extraction_prompt
from resilience.ai.gemini_client import GeminiClient, GeminiRequest, get_gemini_client
from resilience.types import (
    AiRecoverySummary,
    Confidence,
    ParseError,
    RawEventData,
    RecoveryResult,
)

logger = logging.getLogger(__name__)

DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_RE = re.compile(r"[0-9]{2}:[0-9]{2}")


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _matches(pattern):
    return lambda value: _is_text(value) and bool(pattern.fullmatch(value))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# (attribute, response key, validator) for each field the model may fill,
# in response-schema order
EXTRACTED_FIELDS = [
    ("date", "date", _matches(DATE_RE)),
    ("title", "title", _is_text),
    ("hares", "hares", _is_text),
    ("location", "location", _is_text),
    ("start_time", "startTime", _matches(TIME_RE)),
    ("run_number", "runNumber", _is_number),
    ("description", "description", _is_text),
]


@dataclass
class ExtractedEvent:
    """Validated model output for one parse error."""

    fields: Dict[str, Any]
    confidence: Confidence
    fields_recovered: List[str] = field(default_factory=list)


def is_ai_recovery_available() -> bool:
    """True if a Gemini API key is configured."""
    return get_gemini_client().is_configured


def parse_extraction_response(text: str) -> Optional[ExtractedEvent]:
    """
    Validate the model's JSON output.

    Values that are missing, of the wrong type, or fail their format
    check are dropped. Returns None for non-JSON or non-object output,
    or when no field survives validation.
    """
    try:
        parsed = json.loads(text)
    except (TypeError, ValueError):
        return None

    if not isinstance(parsed, dict):
        return None

    fields: Dict[str, Any] = {}
    recovered: List[str] = []

    for attr, key, is_valid in EXTRACTED_FIELDS:
        value = parsed.get(key)
        if is_valid(value):
            fields[attr] = value
            recovered.append(key)

    if not recovered:
        return None

    try:
        confidence = Confidence(parsed.get("confidence"))
    except (TypeError, ValueError):
        confidence = Confidence.LOW

    return ExtractedEvent(fields=fields, confidence=confidence, fields_recovered=recovered)


def merge_recovered_event(
    partial: Optional[RawEventData],
    extracted: ExtractedEvent,
    kennel_tag: str,
) -> RawEventData:
    """
    Merge parser output with model output, parser first.

    source_url and location_url only ever come from the parser.
    """
    partial = partial or RawEventData()

    def pick(attr: str):
        value = getattr(partial, attr)
        if value is not None:
            return value
        return extracted.fields.get(attr)

    return RawEventData(
        kennel_tag=kennel_tag,
        date=pick("date") or "",
        title=pick("title"),
        hares=pick("hares"),
        location=pick("location"),
        start_time=pick("start_time"),
        run_number=pick("run_number"),
        description=pick("description"),
        source_url=partial.source_url,
        location_url=partial.location_url,
    )


async def _recover_single_error(
    client: GeminiClient,
    parse_error: ParseError,
    kennel_tag: str,
) -> Optional[RecoveryResult]:
    prompt = build_extraction_prompt(parse_error)
    response = await client.generate(GeminiRequest(prompt=prompt))

    if not response.success:
        logger.debug(f"AI recovery failed for row {parse_error.row}: {response.error}")
        return None

    extracted = parse_extraction_response(response.text)
    if extracted is None:
        logger.debug(f"AI recovery returned no usable fields for row {parse_error.row}")
        return None

    merged = merge_recovered_event(parse_error.partial_data, extracted, kennel_tag)
    if not merged.date:
        logger.debug(f"AI recovery produced no date for row {parse_error.row}")
        return None

    return RecoveryResult(
        parse_error=parse_error,
        recovered=merged,
        confidence=extracted.confidence,
        fields_recovered=extracted.fields_recovered,
    )


async def attempt_ai_recovery(
    parse_errors: Sequence[ParseError],
    kennel_tag: str,
    client: Optional[GeminiClient] = None,
) -> AiRecoverySummary:
    """
    Attempt AI recovery for parse errors that carry raw text.

    Args:
        parse_errors: Errors reported by an adapter
        kennel_tag: Kennel the recovered events belong to
        client: Gemini client (defaults to the shared client)

    Returns:
        AiRecoverySummary with counts and the recovered events
    """
    client = client or get_gemini_client()
    recoverable = [e for e in parse_errors if e.is_recoverable]

    if not recoverable or not client.is_configured:
        return AiRecoverySummary()

    start = time.monotonic()
    summary = AiRecoverySummary(attempted=len(recoverable))

    for parse_error in recoverable:
        result = await _recover_single_error(client, parse_error, kennel_tag)
        if result is not None:
            summary.results.append(result)
            summary.succeeded += 1
        else:
            summary.failed += 1

    summary.duration_ms = int((time.monotonic() - start) * 1000)

    logger.info(
        f"AI recovery for {kennel_tag}: {summary.attempted} attempted, "
        f"{summary.succeeded} recovered, {summary.failed} failed in {summary.duration_ms}ms"
    )
    return summary
