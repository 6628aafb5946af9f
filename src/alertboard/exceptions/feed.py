"""Record-source exceptions: fetch failures and malformed payloads."""

from typing import Any, Dict, Optional

from .base import AlertboardError


class FeedError(AlertboardError):
    """Raised when the alert record set cannot be fetched.

    Feed errors are retryable by default: the next scheduled or manual
    refresh may succeed, and the previously applied snapshot stays in place.
    """

    retryable = True

    def __init__(self, source: str, reason: str, status_code: Optional[int] = None):
        details = {"source": source, "reason": reason}
        if status_code is not None:
            details["status_code"] = str(status_code)
        super().__init__(f"Failed to fetch alerts from {source}", details=details)
        self.source = source
        self.reason = reason
        self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["retryable"] = self.retryable
        return data


class SourceFormatError(FeedError):
    """Raised when a source returns a payload that is not an alert list."""

    retryable = False

    def __init__(self, source: str, reason: str):
        super().__init__(source, reason)
        self.message = f"Malformed alert payload from {source}"
