"""CLI entry point -- registers all subcommands."""

from pathlib import Path
from typing import List, Optional

import typer

from .. import __version__
from ..logging_config import setup_logging
from ._common import console, handle_errors, resolve_config

app = typer.Typer(
    name="covtrace",
    help="covtrace - combine, filter and remap compiler coverage data",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"covtrace {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug diagnostics"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only show errors"),
    function_coverage: Optional[bool] = typer.Option(
        None,
        "--function-coverage/--no-function-coverage",
        help="Read and write function records",
    ),
    branch_coverage: Optional[bool] = typer.Option(
        None,
        "--branch-coverage/--no-branch-coverage",
        help="Read and write branch records",
    ),
    checksum: Optional[bool] = typer.Option(
        None,
        "--checksum/--no-checksum",
        help="Write per-line checksums",
    ),
    ignore_errors: Optional[List[str]] = typer.Option(
        None,
        "--ignore-errors",
        help="Downgrade format errors of a category (graph, source, gcov) to warnings",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Combine, filter and remap compiler coverage data.

    [bold cyan]Examples:[/bold cyan]

      covtrace add base.info test.info -o total.info

      covtrace diff total.info change.patch -o moved.info

      covtrace --branch-coverage summary total.info
    """
    setup_logging(verbose=verbose, quiet=quiet)
    with handle_errors("configuration"):
        resolved = resolve_config(
            config=config,
            verbose=verbose,
            quiet=quiet,
            function_coverage=function_coverage,
            branch_coverage=branch_coverage,
            checksum=checksum,
            ignore_errors=ignore_errors,
        )
    ctx.ensure_object(dict)
    ctx.obj["config"] = resolved


def main() -> None:
    app()


# Import subcommands to register them
from .add import add as _add  # noqa: F401, E402
from .diff import diff as _diff  # noqa: F401, E402
from .filter import extract as _extract, remove as _remove  # noqa: F401, E402
from .graph import capture as _capture, graph as _graph  # noqa: F401, E402
from .report import list_files as _list_files, summary as _summary  # noqa: F401, E402
