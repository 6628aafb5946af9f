"""Alert records from the alerts REST API."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from ..exceptions import FeedError, SourceFormatError
from ..models import Alert
from .payload import parse_alert_payload

logger = logging.getLogger(__name__)

ALERTS_PATH = "/api/v1/alerts"


class HttpAlertSource:
    """Callable source fetching ``GET /api/v1/alerts``.

    One ``httpx.Client`` is kept for connection reuse; call :meth:`close`
    (or use as a context manager) when done.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout, headers=headers)

    @property
    def name(self) -> str:
        return f"{self.base_url}{ALERTS_PATH}"

    def __call__(self) -> list[Alert]:
        try:
            response = self._client.get(ALERTS_PATH)
        except httpx.HTTPError as e:
            raise FeedError(self.name, f"{type(e).__name__}: {e}")

        if response.status_code >= 400:
            raise FeedError(self.name, response.reason_phrase or "HTTP error", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise SourceFormatError(self.name, f"invalid JSON: {e}")

        alerts = parse_alert_payload(payload, self.name)
        logger.debug("Fetched %d alerts from %s", len(alerts), self.name)
        return alerts

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HttpAlertSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
