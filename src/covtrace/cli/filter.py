"""Extract/remove CLI commands -- select files of a tracefile by pattern."""

from pathlib import Path
from typing import List

import typer

from ..trace import extract as extract_files
from ..trace import read_trace_file
from ..trace import remove as remove_files
from . import app
from ._common import emit_trace, get_config, handle_errors


@app.command()
def extract(
    ctx: typer.Context,
    tracefile: Path = typer.Argument(..., help="Input tracefile", exists=True, dir_okay=False),
    patterns: List[str] = typer.Argument(..., help="Shell wildcard patterns"),
    output: Path = typer.Option(Path("-"), "--output", "-o", help="Output tracefile"),
):
    """
    Keep only files whose path matches one of PATTERNS.

    [bold cyan]Examples:[/bold cyan]

      covtrace extract total.info '*/src/*' -o src.info
    """
    config = get_config(ctx)
    with handle_errors("extract"):
        selected = extract_files(read_trace_file(tracefile, config), patterns)
        emit_trace(selected, output, config)


@app.command()
def remove(
    ctx: typer.Context,
    tracefile: Path = typer.Argument(..., help="Input tracefile", exists=True, dir_okay=False),
    patterns: List[str] = typer.Argument(..., help="Shell wildcard patterns"),
    output: Path = typer.Option(Path("-"), "--output", "-o", help="Output tracefile"),
):
    """
    Drop files whose path matches one of PATTERNS.

    [bold cyan]Examples:[/bold cyan]

      covtrace remove total.info '/usr/*' '*/tests/*' -o filtered.info
    """
    config = get_config(ctx)
    with handle_errors("remove"):
        kept = remove_files(read_trace_file(tracefile, config), patterns)
        emit_trace(kept, output, config)
