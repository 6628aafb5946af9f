"""``alertboard serve`` - live dashboard API with auto-refresh."""

import logging
from pathlib import Path
from typing import List, Optional

import typer

from . import app
from ._common import console, initial_load, resolve_source, split_fields

logger = logging.getLogger(__name__)


@app.command()
def serve(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="JSON file of alerts", exists=True, dir_okay=False),
    url: Optional[str] = typer.Option(None, "--url", help="Alerts API base URL"),
    token: Optional[str] = typer.Option(None, "--token", envvar="ALERTBOARD_TOKEN", help="API bearer token"),
    mock: Optional[int] = typer.Option(None, "--mock", min=0, help="Generate N mock alerts"),
    seed: int = typer.Option(12345, "--seed", help="Mock data seed"),
    group_by: Optional[List[str]] = typer.Option(None, "-g", "--group-by", help="Table grouping field"),
    port: int = typer.Option(8765, help="Port to listen on"),
    host: str = typer.Option("127.0.0.1", help="Host to bind to"),
    interval: Optional[float] = typer.Option(None, "--interval", min=0.1, help="Auto-refresh seconds"),
    no_refresh: bool = typer.Option(False, "--no-refresh", help="Disable auto-refresh"),
):
    """Serve the table and heatmap API, refreshing alerts in the background."""
    try:
        from ..server import _check_deps

        _check_deps()
    except ImportError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    import uvicorn

    from ..context import DashboardContext
    from ..server.app import create_app
    from ..server.state import ServerState
    from ..server.watcher import FileWatcher

    config = ctx.obj["config"]
    source = resolve_source(path, url, token, mock, seed, config)

    console.print(f"[bold]Loading[/bold] {source.name}")
    with console.status("[cyan]Fetching alerts..."):
        feed, alerts = initial_load(source)
    console.print(f"[green]Ready[/green] - {len(alerts)} alert(s)")

    context = DashboardContext(config)
    state = ServerState(context, feed, group_by=split_fields(group_by))
    state.publish()

    watcher = None
    if source.path is not None:
        # File sources reload on change instead of polling
        watcher = FileWatcher(source.path, feed)
        watcher.start()
    elif not no_refresh and mock is None:
        context.auto_refresher(feed, interval).start()

    url_shown = f"http://{host}:{port}"
    console.print(f"[bold]API[/bold] → [link={url_shown}/api/state]{url_shown}/api/state[/link]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    asgi_app = create_app(state)
    verbose = config.verbosity == "verbose"
    try:
        uvicorn.run(asgi_app, host=host, port=port, log_level="info" if verbose else "warning")
    except KeyboardInterrupt:
        pass
    finally:
        if watcher is not None:
            watcher.stop()
        state.close()
        context.close()
        source.close()
        console.print("\n[dim]Stopped.[/dim]")
