"""Base exception for Alertboard."""

from typing import Any, Dict, Optional


class AlertboardError(Exception):
    """Base exception for all Alertboard errors.

    ``details`` are short string facts (source, key, reason) shown after the
    message; ``exit_code`` is what the CLI exits with when the error ends a
    command.
    """

    exit_code = 1

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return "{} ({})".format(self.message, ", ".join(f"{k}={v}" for k, v in self.details.items()))

    def to_dict(self) -> Dict[str, Any]:
        """JSON body for API error responses."""
        return {"error": self.message, "details": dict(self.details)}
