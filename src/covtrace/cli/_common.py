"""Shared CLI helpers."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console

from ..config import TraceConfig, load_config
from ..exceptions import CovtraceError
from ..logging_config import get_logger
from ..trace import TraceModel, read_trace_file, write_trace_file

# Diagnostics go to stderr; stdout is reserved for tracefile and report output.
console = Console(stderr=True)
out = Console()
logger = get_logger("cli")


def get_config(ctx: typer.Context) -> TraceConfig:
    return ctx.obj["config"]


def resolve_config(
    config: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    function_coverage: Optional[bool] = None,
    branch_coverage: Optional[bool] = None,
    checksum: Optional[bool] = None,
    ignore_errors: Optional[List[str]] = None,
) -> TraceConfig:
    """Build configuration from CLI options."""
    return load_config(
        config_file=config,
        verbose=verbose,
        quiet=quiet,
        function_coverage=function_coverage,
        branch_coverage=branch_coverage,
        checksum=checksum,
        ignore_errors=ignore_errors or None,
    )


def load_traces(paths: List[Path], config: TraceConfig) -> List[TraceModel]:
    return [read_trace_file(path, config) for path in paths]


def emit_trace(model: TraceModel, output: Path, config: TraceConfig) -> None:
    """Write ``model`` to ``output`` (``-`` = stdout) and report the totals."""
    write_trace_file(model, output, checksum=config.checksum)
    if str(output) != "-":
        totals = model.totals
        console.print(
            f"Wrote [blue]{output}[/blue]: {len(model)} file(s), "
            f"{totals.lines_hit}/{totals.lines_found} lines hit"
        )


@contextmanager
def handle_errors(command: str) -> Iterator[None]:
    """Turn library errors into a red message and exit status 1."""
    try:
        yield
    except typer.Exit:
        raise
    except CovtraceError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        logger.exception("Unexpected error in %s", command)
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
