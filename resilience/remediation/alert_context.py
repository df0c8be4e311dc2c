"""
Typed views of Alert.context.

The health analyzer stores a different JSON shape per alert type. The
payload is decoded once, here, into one dataclass per type; everything
downstream works with attributes instead of dict lookups. Values of the
wrong type are treated as missing.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from resilience.models import AlertType


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


@dataclass
class AiRecoveryCounts:
    """AI recovery outcome recorded by the scrape that raised the alert."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> Optional["AiRecoveryCounts"]:
        if not isinstance(data, dict):
            return None
        return cls(
            attempted=int(_number(data.get("attempted")) or 0),
            succeeded=int(_number(data.get("succeeded")) or 0),
            failed=int(_number(data.get("failed")) or 0),
        )


@dataclass
class AlertContext:
    """
    Base for all context variants.

    raw keeps the stored payload untouched for the machine-readable
    block of the issue body.
    """

    raw: Dict[str, Any] = field(default_factory=dict)
    ai_recovery: Optional[AiRecoveryCounts] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "AlertContext":
        return cls(raw=raw, ai_recovery=AiRecoveryCounts.from_dict(raw.get("aiRecovery")))


@dataclass
class TagListContext(AlertContext):
    """UNMATCHED_TAGS and SOURCE_KENNEL_MISMATCH."""

    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "TagListContext":
        base = AlertContext.from_raw(raw)
        return cls(raw=raw, ai_recovery=base.ai_recovery, tags=_string_list(raw.get("tags")))


@dataclass
class EventCountAnomalyContext(AlertContext):
    baseline_avg: Optional[float] = None
    baseline_window: Optional[float] = None
    current_count: Optional[float] = None
    drop_percent: Optional[float] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "EventCountAnomalyContext":
        base = AlertContext.from_raw(raw)
        return cls(
            raw=raw,
            ai_recovery=base.ai_recovery,
            baseline_avg=_number(raw.get("baselineAvg")),
            baseline_window=_number(raw.get("baselineWindow")),
            current_count=_number(raw.get("currentCount")),
            drop_percent=_number(raw.get("dropPercent")),
        )


@dataclass
class FieldFillDropContext(AlertContext):
    field_name: Optional[str] = None
    baseline_avg: Optional[float] = None
    current_rate: Optional[float] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "FieldFillDropContext":
        base = AlertContext.from_raw(raw)
        return cls(
            raw=raw,
            ai_recovery=base.ai_recovery,
            field_name=_string(raw.get("field")),
            baseline_avg=_number(raw.get("baselineAvg")),
            current_rate=_number(raw.get("currentRate")),
        )

    @property
    def drop(self) -> Optional[float]:
        """Fill-rate drop in percentage points."""
        if self.baseline_avg is None or self.current_rate is None:
            return None
        return self.baseline_avg - self.current_rate


@dataclass
class StructureChangeContext(AlertContext):
    previous_hash: Optional[str] = None
    current_hash: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "StructureChangeContext":
        base = AlertContext.from_raw(raw)
        return cls(
            raw=raw,
            ai_recovery=base.ai_recovery,
            previous_hash=_string(raw.get("previousHash")),
            current_hash=_string(raw.get("currentHash")),
        )


@dataclass
class ScrapeFailureContext(AlertContext):
    """SCRAPE_FAILURE and CONSECUTIVE_FAILURES."""

    error_messages: List[str] = field(default_factory=list)
    consecutive_count: Optional[float] = None

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "ScrapeFailureContext":
        base = AlertContext.from_raw(raw)
        return cls(
            raw=raw,
            ai_recovery=base.ai_recovery,
            error_messages=_string_list(raw.get("errorMessages")),
            consecutive_count=_number(raw.get("consecutiveCount")),
        )


CONTEXT_TYPES: Dict[str, Type[AlertContext]] = {
    AlertType.UNMATCHED_TAGS: TagListContext,
    AlertType.SOURCE_KENNEL_MISMATCH: TagListContext,
    AlertType.EVENT_COUNT_ANOMALY: EventCountAnomalyContext,
    AlertType.FIELD_FILL_DROP: FieldFillDropContext,
    AlertType.STRUCTURE_CHANGE: StructureChangeContext,
    AlertType.SCRAPE_FAILURE: ScrapeFailureContext,
    AlertType.CONSECUTIVE_FAILURES: ScrapeFailureContext,
}


def decode_alert_context(alert_type: str, raw: Any) -> Optional[AlertContext]:
    """
    Decode a stored context payload for the given alert type.

    Returns None when there is no payload (or it is not a JSON object);
    unknown alert types decode to the plain AlertContext.
    """
    if not isinstance(raw, dict):
        return None
    context_cls = CONTEXT_TYPES.get(alert_type, AlertContext)
    return context_cls.from_raw(raw)
