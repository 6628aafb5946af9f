"""CLI entry point - registers all subcommands."""

import typer

app = typer.Typer(
    name="alertboard",
    help="Alertboard - grouped alert tables and zoomable alert heatmaps",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .root import main  # noqa: F401, E402
from .table import table as _table  # noqa: F401, E402
from .heatmap import heatmap as _heatmap  # noqa: F401, E402
from .serve import serve as _serve  # noqa: F401, E402
