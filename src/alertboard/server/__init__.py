"""Live dashboard API server for Alertboard.

Requires optional ``[serve]`` dependencies::

    pip install alertboard[serve]
"""

from __future__ import annotations

import importlib

_SERVE_MODULES = ("starlette", "uvicorn", "watchfiles")


def _check_deps() -> None:
    """Raise a clear error if [serve] dependencies are missing."""
    missing = []
    for module in _SERVE_MODULES:
        try:
            importlib.import_module(module)
        except ImportError:
            missing.append(module)

    if missing:
        raise ImportError(
            f"Missing serve dependencies: {', '.join(missing)}. Install with: pip install alertboard[serve]"
        )
