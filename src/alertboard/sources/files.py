"""Alert records from a JSON file on disk."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Union

from ..exceptions import FeedError, SourceFormatError
from ..models import Alert
from .payload import parse_alert_payload

logger = logging.getLogger(__name__)


def load_alerts(path: Union[str, Path]) -> list[Alert]:
    """Read alerts from *path* (bare list or API envelope).

    Raises:
        FeedError: The file can't be read
        SourceFormatError: The file isn't valid JSON or not an alert list
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FeedError(str(path), e.strerror or str(e))

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise SourceFormatError(str(path), f"invalid JSON: {e}")

    alerts = parse_alert_payload(payload, str(path))
    logger.debug("Loaded %d alerts from %s", len(alerts), path)
    return alerts


class FileAlertSource:
    """Callable source re-reading a JSON file on every fetch."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    @property
    def name(self) -> str:
        return str(self.path)

    def __call__(self) -> list[Alert]:
        return load_alerts(self.path)
