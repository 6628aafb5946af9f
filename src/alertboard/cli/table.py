"""``alertboard table`` - render one window of the grouped alert table."""

import dataclasses
import json
from pathlib import Path
from typing import List, Optional

import click
import typer
from rich.table import Table
from rich.text import Text

from ..context import DashboardContext
from ..models import GroupRow, LeafRow
from ..server.serializers import serialize_window
from ..views import SORT_FIELDS, AlertTableView
from . import app
from ._common import console, initial_load, resolve_source, split_fields

_STATUS_STYLES = {"firing": "red", "pending": "yellow", "resolved": "green", "dismissed": "dim"}


@app.command()
def table(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="JSON file of alerts", exists=True, dir_okay=False),
    url: Optional[str] = typer.Option(None, "--url", help="Alerts API base URL"),
    token: Optional[str] = typer.Option(None, "--token", envvar="ALERTBOARD_TOKEN", help="API bearer token"),
    mock: Optional[int] = typer.Option(None, "--mock", min=0, help="Generate N mock alerts"),
    seed: int = typer.Option(12345, "--seed", help="Mock data seed"),
    group_by: Optional[List[str]] = typer.Option(None, "-g", "--group-by", help="Grouping field (repeatable)"),
    expand: bool = typer.Option(False, "--expand", help="Start with every group expanded"),
    search: str = typer.Option("", "--search", "-s", help="Case-insensitive search term"),
    sort: str = typer.Option(
        "startsAt", "--sort", help="Sort field", click_type=click.Choice(list(SORT_FIELDS))
    ),
    ascending: bool = typer.Option(False, "--asc", help="Sort ascending (default descending)"),
    scroll: float = typer.Option(0.0, "--scroll", min=0, help="Scroll offset (px)"),
    height: float = typer.Option(800.0, "--height", min=0, help="Viewport height (px)"),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """
    Show the rows a viewport would render, with its sticky group headers.

    [bold cyan]Examples:[/bold cyan]

      alertboard table alerts.json -g status

      alertboard table --mock 10000 -g status,tag:env --expand --scroll 4000
    """
    config = ctx.obj["config"]
    if expand:
        config = dataclasses.replace(config, default_expanded="expanded")

    source = resolve_source(path, url, token, mock, seed, config)
    try:
        _feed, alerts = initial_load(source)
    finally:
        source.close()

    with DashboardContext(config) as context:
        view = AlertTableView(context, alerts, group_by=split_fields(group_by))
        view.set_search(search)
        view.set_sort(sort, "asc" if ascending else "desc")
        window = view.window(scroll, height)

        if json_output:
            print(json.dumps(serialize_window(window), indent=2))
            return

        _render(context, view, window)


def _render(context: DashboardContext, view: AlertTableView, window) -> None:
    fields = view.group_by
    console.print()
    title = f"[bold cyan]ALERTS[/bold cyan] -- {len(view.visible_alerts())} of {len(view.alerts)}"
    if fields:
        title += " grouped by " + " > ".join(context.label(f) for f in fields)
    console.print(title)

    if window.sticky_headers:
        crumbs = " > ".join(f"{context.label(h.field)}: {h.value} ({h.count})" for h in window.sticky_headers)
        console.print(f"[dim]pinned:[/dim] {crumbs}")
    console.print()

    grid = Table(show_header=True, show_lines=False, pad_edge=True)
    grid.add_column("#", justify="right", style="dim")
    grid.add_column("Alert / Group", min_width=32)
    grid.add_column("Status")
    grid.add_column("Started At")

    for entry in window.rows:
        row = entry.row
        indent = "  " * row.level
        if isinstance(row, GroupRow):
            marker = "v" if row.is_expanded else ">"
            label = Text(f"{indent}{marker} {context.label(row.field)}: {row.value}", style="bold")
            grid.add_row(str(entry.item.index), label, f"{row.count}", "")
        elif isinstance(row, LeafRow):
            alert = row.record
            status = "dismissed" if alert.is_dismissed else alert.status
            grid.add_row(
                str(entry.item.index),
                Text(f"{indent}{alert.name}"),
                Text(status, style=_STATUS_STYLES.get(status.lower(), "")),
                alert.starts_at,
            )

    if window.rows:
        console.print(grid)
    else:
        console.print("[yellow]Nothing to show.[/yellow]")
    console.print(
        f"[dim]rows {len(window.rows)} rendered of {window.row_count}, "
        f"extent {window.total_size:.0f}px, scroll {window.scroll_offset:.0f}px[/dim]"
    )
    console.print()
