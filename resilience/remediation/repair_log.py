"""
Alert repair log.

Alert.repair_log is an append-only JSON list recording what was done
about an alert. Entries are never rewritten or removed; appends happen
under a row lock so concurrent writers cannot drop each other's entries.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Iterable, Optional

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from resilience.models import Alert

logger = logging.getLogger(__name__)

ACTION_AUTO_FILE_ISSUE = "auto_file_issue"
ACTION_CREATE_ISSUE = "create_issue"

SYSTEM_ACTOR = "system"
RESULT_SUCCESS = "success"


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix."""
    value = value.astimezone(dt_timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an entry timestamp; naive values are taken as UTC."""
    if not isinstance(value, str):
        return None
    try:
        parsed = parse_datetime(value)
    except ValueError:
        return None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


@dataclass
class RepairLogEntry:
    """One remediation action recorded against an alert."""

    action: str
    timestamp: str
    admin_id: str = SYSTEM_ACTOR
    details: Dict[str, Any] = field(default_factory=dict)
    result: str = RESULT_SUCCESS
    result_message: Optional[str] = None

    @classmethod
    def issue_filed(
        cls,
        action: str,
        issue_url: str,
        issue_number: int,
        admin_id: str = SYSTEM_ACTOR,
        now: Optional[datetime] = None,
    ) -> "RepairLogEntry":
        return cls(
            action=action,
            timestamp=format_timestamp(now or timezone.now()),
            admin_id=admin_id,
            details={"issueUrl": issue_url, "issueNumber": issue_number},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "action": self.action,
            "timestamp": self.timestamp,
            "adminId": self.admin_id,
            "details": dict(self.details),
            "result": self.result,
        }
        if self.result_message is not None:
            data["resultMessage"] = self.result_message
        return data


def iter_entries(repair_log: Any) -> Iterable[Dict[str, Any]]:
    """Entries of a stored repair log, skipping anything malformed."""
    if not isinstance(repair_log, list):
        return []
    return [entry for entry in repair_log if isinstance(entry, dict)]


def append_repair_log_entry(alert_id, entry: RepairLogEntry) -> None:
    """
    Append an entry to an alert's repair log.

    The log is re-read under select_for_update inside the transaction,
    so entries written since the alert was loaded are preserved.

    Raises:
        Alert.DoesNotExist: If the alert was deleted
    """
    with transaction.atomic():
        alert = Alert.objects.select_for_update().get(pk=alert_id)
        log = list(alert.repair_log) if isinstance(alert.repair_log, list) else []
        log.append(entry.to_dict())
        alert.repair_log = log
        alert.save(update_fields=["repair_log", "updated_at"])

    logger.debug(f"Appended {entry.action} entry to repair log of alert {alert_id}")
