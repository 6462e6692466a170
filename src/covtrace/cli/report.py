"""Summary/list CLI commands -- coverage rates of a tracefile."""

from pathlib import Path
from typing import List

import typer
from rich.table import Table

from ..trace import TraceTotals, combine_all
from . import app
from ._common import get_config, handle_errors, load_traces, out


def _rate(hit: int, found: int) -> str:
    if not found:
        return "-"
    return f"{hit * 100.0 / found:.1f}%"


def _totals_row(totals: TraceTotals) -> List[str]:
    return [
        _rate(totals.lines_hit, totals.lines_found),
        str(totals.lines_found),
        _rate(totals.functions_hit, totals.functions_found),
        str(totals.functions_found),
        _rate(totals.branches_hit, totals.branches_found),
        str(totals.branches_found),
    ]


@app.command()
def summary(
    ctx: typer.Context,
    tracefiles: List[Path] = typer.Argument(
        ..., help="Tracefiles to summarize", exists=True, dir_okay=False
    ),
):
    """
    Print overall line, function and branch rates.

    Several tracefiles are combined before summarizing.

    [bold cyan]Examples:[/bold cyan]

      covtrace summary total.info

      covtrace --branch-coverage summary unit.info integration.info
    """
    config = get_config(ctx)
    with handle_errors("summary"):
        totals = combine_all(load_traces(tracefiles, config)).totals

    out.print("Summary coverage rate:")
    out.print(
        f"  lines......: {_rate(totals.lines_hit, totals.lines_found)} "
        f"({totals.lines_hit} of {totals.lines_found} lines)"
    )
    if config.function_coverage:
        out.print(
            f"  functions..: {_rate(totals.functions_hit, totals.functions_found)} "
            f"({totals.functions_hit} of {totals.functions_found} functions)"
        )
    if config.branch_coverage:
        out.print(
            f"  branches...: {_rate(totals.branches_hit, totals.branches_found)} "
            f"({totals.branches_hit} of {totals.branches_found} branches)"
        )


@app.command(name="list")
def list_files(
    ctx: typer.Context,
    tracefile: Path = typer.Argument(..., help="Tracefile to list", exists=True, dir_okay=False),
):
    """
    List every file of a tracefile with its coverage rates.

    [bold cyan]Examples:[/bold cyan]

      covtrace list total.info
    """
    config = get_config(ctx)
    with handle_errors("list"):
        model = load_traces([tracefile], config)[0]

    table = Table(title=str(tracefile), show_lines=False)
    table.add_column("File", style="cyan", no_wrap=True)
    for heading in ("Lines", "Found", "Functions", "Found", "Branches", "Found"):
        table.add_column(heading, justify="right")

    for path in model:
        table.add_row(path, *_totals_row(model[path].totals))
    table.add_row("[bold]Total[/bold]", *_totals_row(model.totals), end_section=True)
    out.print(table)
