"""
Shared data types for the resilience pipeline.

Adapters hand parse failures over as ParseError objects (or their JSON
form); AI recovery hands salvaged events back as RecoveryResult objects.
Wire forms use the camelCase keys the scrape pipeline stores.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Confidence(Enum):
    """Model-reported confidence for a recovered event."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# (attribute name, wire key) for every RawEventData field
RAW_EVENT_FIELDS = [
    ("kennel_tag", "kennelTag"),
    ("date", "date"),
    ("title", "title"),
    ("hares", "hares"),
    ("location", "location"),
    ("start_time", "startTime"),
    ("run_number", "runNumber"),
    ("description", "description"),
    ("source_url", "sourceUrl"),
    ("location_url", "locationUrl"),
]


@dataclass
class RawEventData:
    """
    Adapter-normalized event fields prior to persistence.

    Used both for complete events and for the partial data a deterministic
    parser salvaged before failing, so every field may be missing.
    """

    kennel_tag: Optional[str] = None
    date: Optional[str] = None
    title: Optional[str] = None
    hares: Optional[str] = None
    location: Optional[str] = None
    start_time: Optional[str] = None
    run_number: Optional[int] = None
    description: Optional[str] = None
    source_url: Optional[str] = None
    location_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RawEventData":
        """Build from a wire dict, accepting camelCase or snake_case keys."""
        if not data:
            return cls()
        values = {}
        for attr, wire_key in RAW_EVENT_FIELDS:
            if wire_key in data:
                values[attr] = data[wire_key]
            elif attr in data:
                values[attr] = data[attr]
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Wire form with camelCase keys, omitting missing fields."""
        return {
            wire_key: getattr(self, attr)
            for attr, wire_key in RAW_EVENT_FIELDS
            if getattr(self, attr) is not None
        }


@dataclass
class ParseError:
    """
    One failed extraction attempt reported by an adapter.

    Attributes:
        row: Row (or post) index in the source data that failed
        error: Parser error message
        section: Table or section the row came from (e.g. "past_hashes")
        field: Field the parser failed on (e.g. "date")
        raw_text: Unparsed source snippet; required for AI recovery
        partial_data: Fields the deterministic parser did extract
    """

    row: int
    error: str
    section: Optional[str] = None
    field: Optional[str] = None
    raw_text: Optional[str] = None
    partial_data: Optional[RawEventData] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParseError":
        partial = data.get("partialData", data.get("partial_data"))
        return cls(
            row=int(data.get("row", 0)),
            error=str(data.get("error", "")),
            section=data.get("section"),
            field=data.get("field"),
            raw_text=data.get("rawText", data.get("raw_text")),
            partial_data=RawEventData.from_dict(partial) if partial else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"row": self.row, "error": self.error}
        if self.section is not None:
            data["section"] = self.section
        if self.field is not None:
            data["field"] = self.field
        if self.raw_text is not None:
            data["rawText"] = self.raw_text
        if self.partial_data is not None:
            data["partialData"] = self.partial_data.to_dict()
        return data

    @property
    def is_recoverable(self) -> bool:
        """True if there is raw text to send to the model."""
        return bool(self.raw_text and self.raw_text.strip())


@dataclass
class RecoveryResult:
    """An event recovered by AI from a parse error, merged with partial data."""

    parse_error: ParseError
    recovered: RawEventData
    confidence: Confidence
    fields_recovered: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parseError": self.parse_error.to_dict(),
            "recovered": self.recovered.to_dict(),
            "confidence": self.confidence.value,
            "fieldsRecovered": list(self.fields_recovered),
        }


@dataclass
class AiRecoverySummary:
    """Aggregate outcome of one AI recovery batch."""

    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    duration_ms: int = 0
    results: List[RecoveryResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """
        Summary counts in the shape stored on alert context as "aiRecovery".
        """
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "durationMs": self.duration_ms,
        }
