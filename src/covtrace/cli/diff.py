"""Diff CLI command -- move coverage data across a source edit."""

from pathlib import Path
from typing import Optional

import typer

from ..diff import apply_diff, read_diff_file
from ..trace import read_trace_file
from . import app
from ._common import emit_trace, get_config, handle_errors


@app.command()
def diff(
    ctx: typer.Context,
    tracefile: Path = typer.Argument(..., help="Tracefile to convert", exists=True, dir_okay=False),
    patch: Path = typer.Argument(..., help="Unified diff old -> new", exists=True, dir_okay=False),
    output: Path = typer.Option(
        Path("-"),
        "--output",
        "-o",
        help="Output tracefile ('-' for stdout)",
    ),
    strip: Optional[int] = typer.Option(
        None,
        "--strip",
        "-p",
        min=0,
        help="Leading path components to remove from diff paths",
    ),
    base_path: Optional[str] = typer.Option(
        None,
        "--path",
        help="Directory the diff paths are relative to",
    ),
    convert_filenames: Optional[bool] = typer.Option(
        None,
        "--convert-filenames/--keep-filenames",
        help="Rename files per the renames recorded in the diff",
    ),
):
    """
    Convert line numbers of a tracefile from the old to the new source version.

    Data of lines removed by the diff is dropped and test names get a
    ",diff" suffix.

    [bold cyan]Examples:[/bold cyan]

      covtrace diff old.info change.patch -o new.info

      covtrace diff old.info change.patch -p 1 --path /src/project
    """
    config = get_config(ctx)
    with handle_errors("diff"):
        model = read_trace_file(tracefile, config)
        diff_data = read_diff_file(patch, strip=config.diff_strip if strip is None else strip)
        converted = apply_diff(
            model,
            diff_data,
            base_path=base_path if base_path is not None else config.diff_path,
            convert_filenames=(
                config.convert_filenames if convert_filenames is None else convert_filenames
            ),
        )
        emit_trace(converted, output, config)
