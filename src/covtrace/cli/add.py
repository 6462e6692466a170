"""Add CLI command -- combine tracefiles into one."""

from pathlib import Path
from typing import List

import typer

from ..trace import combine_all
from . import app
from ._common import emit_trace, get_config, handle_errors, load_traces


@app.command()
def add(
    ctx: typer.Context,
    tracefiles: List[Path] = typer.Argument(
        ...,
        help="Tracefiles to combine",
        exists=True,
        dir_okay=False,
    ),
    output: Path = typer.Option(
        Path("-"),
        "--output",
        "-o",
        help="Output tracefile ('-' for stdout)",
    ),
):
    """
    Combine tracefiles; counts of the same line, function or branch are summed.

    [bold cyan]Examples:[/bold cyan]

      covtrace add unit.info integration.info -o total.info
    """
    config = get_config(ctx)
    with handle_errors("add"):
        combined = combine_all(load_traces(tracefiles, config))
        emit_trace(combined, output, config)
