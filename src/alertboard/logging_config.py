"""
Logging configuration for Alertboard.

Rich-formatted log records on stderr, so ``--json`` output on stdout stays
machine-readable.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}

# Per-request and per-event chatter from the refresh and serve stack
NOISY_LOGGERS = ("httpx", "httpcore", "watchfiles", "uvicorn.access")


def setup_logging(verbosity: str = "normal", log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``alertboard`` logger for a verbosity level.

    Args:
        verbosity: ``quiet`` (errors only), ``normal`` or ``verbose`` (debug)
        log_file: Optional file that also receives every record

    Returns:
        The configured ``alertboard`` logger
    """
    level = LEVELS.get(verbosity, logging.WARNING)
    verbose = level == logging.DEBUG

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            tracebacks_show_locals=verbose,
            markup=False,
            show_time=True,
            show_path=verbose,
        )
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if verbose else max(level, logging.WARNING))

    logger = logging.getLogger("alertboard")
    logger.setLevel(level)
    return logger
