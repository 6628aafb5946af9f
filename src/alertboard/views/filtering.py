"""Search and sort applied before grouping."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Literal, Sequence

from ..models import Alert

SortDirection = Literal["asc", "desc"]

SORT_FIELDS = ("alertName", "status", "tag", "summary", "startsAt", "type")
DEFAULT_SORT: tuple[str, SortDirection] = ("startsAt", "desc")

# Epoch values beyond this are milliseconds
_MILLIS_THRESHOLD = 1e11


def filter_alerts(alerts: Sequence[Alert], search_term: str) -> Sequence[Alert]:
    """Alerts whose name, status, tag, summary or type contain *search_term*.

    Case-insensitive. A blank term returns *alerts* itself (same object),
    so downstream identity caches stay warm.
    """
    if not search_term.strip():
        return alerts
    needle = search_term.lower()
    return [alert for alert in alerts if _matches(alert, needle)]


def _matches(alert: Alert, needle: str) -> bool:
    haystacks = (alert.name, alert.status, alert.tag, alert.summary or "", alert.type)
    return any(needle in str(text).lower() for text in haystacks)


def parse_timestamp(value: Any) -> float:
    """Epoch seconds for an ISO-8601 or numeric epoch timestamp.

    Numbers above ``1e11`` are read as milliseconds. Unparseable values give 0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return _epoch_seconds(float(value))
    if not isinstance(value, str) or not value.strip():
        return 0.0
    text = value.strip()
    try:
        return _epoch_seconds(float(text))
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _epoch_seconds(number: float) -> float:
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number / 1000.0 if abs(number) > _MILLIS_THRESHOLD else number


def _status_key(alert: Alert) -> str:
    return "dismissed" if alert.is_dismissed else str(alert.status).lower()


_SORT_KEYS: dict[str, Callable[[Alert], Any]] = {
    "alertName": lambda a: str(a.name).lower(),
    "status": _status_key,
    "tag": lambda a: str(a.tag).lower(),
    "summary": lambda a: str(a.summary or "").lower(),
    "startsAt": lambda a: parse_timestamp(a.starts_at),
    "type": lambda a: str(a.type).lower(),
}


def sort_alerts(alerts: Sequence[Alert], field: str, direction: SortDirection = "asc") -> list[Alert]:
    """Stable sort by one of :data:`SORT_FIELDS`.

    Ties keep their input order in both directions. Unknown fields return
    the input order unchanged.
    """
    key = _SORT_KEYS.get(field)
    if key is None:
        return list(alerts)
    return sorted(alerts, key=key, reverse=direction == "desc")


def next_sort(current_field: str, current_direction: SortDirection, field: str) -> tuple[str, SortDirection]:
    """Sort state after clicking the *field* column header."""
    if field == current_field:
        return field, "desc" if current_direction == "asc" else "asc"
    return field, "desc" if field == "startsAt" else "asc"
