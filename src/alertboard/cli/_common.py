"""Shared CLI helpers."""

from pathlib import Path
from typing import Callable, List, Optional, Tuple

import typer
from rich.console import Console

from ..config import DashboardConfig, load_config
from ..exceptions import AlertboardError
from ..feed import AlertFeed
from ..models import Alert
from ..sources import FileAlertSource, HttpAlertSource, generate_mock_alerts

console = Console()


def resolve_config(
    config: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    unknown_label: Optional[str] = None,
    expanded: Optional[bool] = None,
) -> DashboardConfig:
    """Build config from CLI options."""
    overrides = {}
    if verbose:
        overrides["verbose"] = True
    if quiet:
        overrides["quiet"] = True
    if unknown_label is not None:
        overrides["unknown_label"] = unknown_label
    if expanded is not None:
        overrides["default_expanded"] = "expanded" if expanded else "collapsed"
    try:
        return load_config(config_file=config, **overrides)
    except AlertboardError as e:
        console.print(f"[red]Config error:[/red] {e}")
        raise typer.Exit(e.exit_code)


class Source:
    """A record source picked from the CLI flags, with its cleanup."""

    def __init__(self, fetch: Callable[[], List[Alert]], name: str, path: Optional[Path] = None) -> None:
        self.fetch = fetch
        self.name = name
        self.path = path

    def feed(self) -> AlertFeed:
        return AlertFeed(self.fetch, source_name=self.name)

    def close(self) -> None:
        close = getattr(self.fetch, "close", None)
        if close is not None:
            close()


def resolve_source(
    path: Optional[Path],
    url: Optional[str],
    token: Optional[str],
    mock: Optional[int],
    seed: int,
    config: DashboardConfig,
) -> Source:
    """Exactly one of a JSON file, ``--url`` or ``--mock``."""
    chosen = [flag for flag, value in (("PATH", path), ("--url", url), ("--mock", mock)) if value is not None]
    if len(chosen) != 1:
        console.print("[red]Give exactly one alert source:[/red] a JSON file, --url or --mock N")
        raise typer.Exit(2)

    if path is not None:
        return Source(FileAlertSource(path), str(path), path=path)
    if url is not None:
        http = HttpAlertSource(url, token=token, timeout=config.refresh.request_timeout_seconds)
        return Source(http, http.name)

    assert mock is not None
    alerts = generate_mock_alerts(count=mock, seed=seed)
    return Source(lambda: alerts, f"mock({mock}, seed={seed})")


def initial_load(source: Source) -> Tuple[AlertFeed, List[Alert]]:
    """Create the feed and run the first fetch, exiting on failure."""
    feed = source.feed()
    try:
        feed.refresh()
    except AlertboardError as e:
        console.print(f"[red]Could not load alerts:[/red] {e}")
        source.close()
        raise typer.Exit(e.exit_code)
    return feed, list(feed.alerts)


def split_fields(values: Optional[List[str]]) -> List[str]:
    """``-g status -g tag:env`` and ``-g status,tag:env`` are equivalent."""
    fields: List[str] = []
    for value in values or []:
        fields.extend(part.strip() for part in value.split(",") if part.strip())
    return fields
