"""Decode alert payloads as served by the alerts API."""

from __future__ import annotations

from typing import Any, Mapping

from ..exceptions import FeedError, SourceFormatError
from ..models import Alert


def parse_alert_payload(payload: Any, source: str) -> list[Alert]:
    """Accept a bare alert list or the ``{"success", "data": {"alerts"}}`` envelope.

    Raises:
        FeedError: The envelope reports ``success: false``
        SourceFormatError: Anything that is not an alert list
    """
    if isinstance(payload, Mapping):
        if payload.get("success") is False:
            raise FeedError(source, str(payload.get("error") or "Failed to fetch alerts"))
        data = payload.get("data", payload)
        items = data.get("alerts") if isinstance(data, Mapping) else None
        if items is None:
            raise SourceFormatError(source, "missing 'alerts' list")
    else:
        items = payload

    if not isinstance(items, list):
        raise SourceFormatError(source, f"expected a list of alerts, got {type(items).__name__}")

    alerts: list[Alert] = []
    for position, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise SourceFormatError(source, f"alert #{position} is not an object")
        alerts.append(Alert.from_dict(item))
    return alerts
