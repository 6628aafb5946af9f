"""Top-level options shared by every subcommand."""

from pathlib import Path
from typing import Optional

import typer

from ..logging_config import setup_logging
from . import app
from ._common import console, resolve_config


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Errors only"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
):
    """
    Group, window and map operations alerts.

    [bold cyan]Examples:[/bold cyan]

      alertboard table alerts.json -g status -g tag:env --expand

      alertboard heatmap --mock 5000 -g type --width 1200 --height 800

      alertboard serve --url https://alerts.example.com --token $TOKEN
    """
    if version:
        from .. import __version__

        console.print(f"[bold cyan]Alertboard[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit(0)

    ctx.ensure_object(dict)
    ctx.obj["config"] = resolve_config(config=config, verbose=verbose, quiet=quiet)
    # Flags win over config files and ALERTBOARD_VERBOSITY
    setup_logging(ctx.obj["config"].verbosity)
