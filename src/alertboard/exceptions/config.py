"""Configuration exceptions: TOML files, environment and flag values."""

from pathlib import Path
from typing import Any

from .base import AlertboardError


class ConfigurationError(AlertboardError):
    """Configuration could not be assembled; CLI usage error."""

    exit_code = 2


class ConfigFileError(ConfigurationError):
    """A config file is missing or is not valid TOML."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot use config file {path}", details={"reason": reason})
        self.path = path
        self.reason = reason


class InvalidConfigError(ConfigurationError):
    """A setting has a value outside its allowed range or type.

    ``key`` is dotted for section settings, e.g. ``treemap.header_height``.
    """

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(f"Bad value for {key}: {value!r}", details={"reason": reason})
        self.key = key
        self.value = value
        self.reason = reason
