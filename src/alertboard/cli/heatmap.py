"""``alertboard heatmap`` - lay out the alert treemap for a viewport."""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table
from rich.text import Text

from ..context import DashboardContext
from ..server.serializers import serialize_layout
from ..treemap import EMPTY, UNMEASURED
from ..views import HeatmapView
from . import app
from ._common import console, initial_load, resolve_source, split_fields

_KIND_STYLES = {"group": "bold cyan", "alert": "", "overflow": "magenta"}


@app.command()
def heatmap(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="JSON file of alerts", exists=True, dir_okay=False),
    url: Optional[str] = typer.Option(None, "--url", help="Alerts API base URL"),
    token: Optional[str] = typer.Option(None, "--token", envvar="ALERTBOARD_TOKEN", help="API bearer token"),
    mock: Optional[int] = typer.Option(None, "--mock", min=0, help="Generate N mock alerts"),
    seed: int = typer.Option(12345, "--seed", help="Mock data seed"),
    group_by: Optional[List[str]] = typer.Option(None, "-g", "--group-by", help="Grouping field (repeatable)"),
    width: float = typer.Option(1200.0, "--width", help="Viewport width (px)"),
    height: float = typer.Option(800.0, "--height", help="Viewport height (px)"),
    zoom: Optional[List[str]] = typer.Option(
        None, "--zoom", "-z", help="Group key to zoom into (repeat for deeper levels)"
    ),
    depth: Optional[int] = typer.Option(None, "--depth", min=1, help="Only list rectangles down to this depth"),
    json_output: bool = typer.Option(False, "--json", help="Output in machine-readable JSON format"),
):
    """
    List the positioned treemap rectangles for a viewport and zoom path.

    [bold cyan]Examples:[/bold cyan]

      alertboard heatmap alerts.json -g status -g tag:env

      alertboard heatmap --mock 5000 -g status -g type --zoom firing
    """
    config = ctx.obj["config"]
    source = resolve_source(path, url, token, mock, seed, config)
    try:
        _feed, alerts = initial_load(source)
    finally:
        source.close()

    with DashboardContext(config) as context:
        view = HeatmapView(context, alerts, group_by=split_fields(group_by), width=width, height=height)
        if zoom:
            view.zoom_to_path(zoom)
            if list(view.zoom_path) != list(zoom) and not json_output:
                console.print(f"[yellow]Zoom path resolved only as far as:[/yellow] {list(view.zoom_path) or 'root'}")
        layout = view.layout()

        if json_output:
            print(json.dumps(serialize_layout(layout, view.breadcrumbs, view.share_of_root()), indent=2))
            return

        console.print()
        crumbs = " / ".join(["All"] + [crumb.name for crumb in view.breadcrumbs])
        console.print(
            f"[bold cyan]HEATMAP[/bold cyan] -- {crumbs} "
            f"[dim]({view.share_of_root():.1f}% of {len(alerts)} alerts)[/dim]"
        )
        console.print()

        if layout.status == EMPTY:
            console.print("[yellow]No alerts to lay out.[/yellow]")
            return
        if layout.status == UNMEASURED:
            console.print("[yellow]Viewport has no size; nothing laid out.[/yellow]")
            return

        grid = Table(show_header=True, show_lines=False, pad_edge=True)
        grid.add_column("#", justify="right", style="dim")
        grid.add_column("Name", min_width=24)
        grid.add_column("Kind")
        grid.add_column("Count", justify="right")
        grid.add_column("%", justify="right")
        grid.add_column("Rect (x, y, w, h)")

        for rect in layout.nodes:
            if depth is not None and rect.depth > depth:
                continue
            style = _KIND_STYLES.get(rect.kind, "")
            name = ("  " * (rect.depth - 1)) + rect.name
            grid.add_row(
                str(rect.index),
                Text(name, style=style),
                rect.kind,
                str(rect.node.count),
                f"{rect.percentage:.1f}" if rect.labels.percentage or rect.kind == "group" else "",
                f"{rect.x:.0f}, {rect.y:.0f}, {rect.width:.0f}, {rect.height:.0f}",
            )
        console.print(grid)
        console.print(f"[dim]{len(layout.nodes)} rectangles in {width:.0f}x{height:.0f}[/dim]")
        console.print()
