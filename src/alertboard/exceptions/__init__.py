"""Exception hierarchy for Alertboard."""

from .base import AlertboardError
from .config import ConfigFileError, ConfigurationError, InvalidConfigError
from .feed import FeedError, SourceFormatError

__all__ = [
    "AlertboardError",
    "ConfigurationError",
    "ConfigFileError",
    "InvalidConfigError",
    "FeedError",
    "SourceFormatError",
]
