"""Graph/capture CLI commands -- decode graph files and build tracefiles."""

import json
from pathlib import Path
from typing import Dict, List, Optional

import typer

from ..config import TraceConfig
from ..exceptions import FormatError
from ..graph import GraphFormat, read_graph_file
from ..trace import GcovFile, assemble_trace, read_gcov_file
from . import app
from ._common import console, emit_trace, get_config, handle_errors, logger, out


def _parse_format(value: Optional[str]) -> Optional[GraphFormat]:
    if value is None:
        return None
    try:
        return GraphFormat(value.lower())
    except ValueError:
        raise typer.BadParameter(f"expected one of {', '.join(f.value for f in GraphFormat)}")


def _read_sources(gcov_files: List[Path], config: TraceConfig) -> Dict[str, GcovFile]:
    """Key each .gcov file by its "Source:" header, honouring the ignore-policy."""
    sources: Dict[str, GcovFile] = {}
    for path in gcov_files:
        try:
            parsed = read_gcov_file(path)
            if parsed.source is None:
                raise FormatError(str(path), "no 'Source:' header line", category="source")
        except FormatError as e:
            if not config.ignores(e.category):
                raise
            logger.warning("%s (skipped)", e)
            continue
        sources[parsed.source] = parsed
    return sources


@app.command()
def graph(
    ctx: typer.Context,
    graph_file: Path = typer.Argument(
        ..., help="Graph file (.bb, .bbg or .gcno)", exists=True, dir_okay=False
    ),
    fmt: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Graph format (bb, bbg, gcno); guessed from the extension by default",
    ),
):
    """
    Decode a graph file and print its line/function map as JSON.

    [bold cyan]Examples:[/bold cyan]

      covtrace graph build/foo.gcno
    """
    config = get_config(ctx)
    with handle_errors("graph"):
        decoded = read_graph_file(graph_file, _parse_format(fmt), config)
    if decoded is None:
        raise typer.Exit(0)

    instr, functions = decoded
    payload = {
        path: {"lines": instr[path], "functions": functions.get(path, {})}
        for path in sorted(instr)
    }
    out.print_json(json.dumps(payload))


@app.command()
def capture(
    ctx: typer.Context,
    graph_file: Path = typer.Argument(
        ..., help="Graph file of one compilation unit", exists=True, dir_okay=False
    ),
    gcov_files: List[Path] = typer.Argument(
        ..., help="Counting tool output (.gcov) for the unit's sources", exists=True, dir_okay=False
    ),
    test_name: str = typer.Option("", "--test-name", "-t", help="Name of the test run"),
    fmt: Optional[str] = typer.Option(None, "--format", "-f", help="Graph format (bb, bbg, gcno)"),
    output: Path = typer.Option(Path("-"), "--output", "-o", help="Output tracefile"),
):
    """
    Build a tracefile from a graph file and the matching .gcov outputs.

    Each .gcov file is attributed to the source path in its "Source:"
    header line. A file without one fails with error category "source".

    [bold cyan]Examples:[/bold cyan]

      covtrace capture foo.gcno foo.c.gcov foo.h.gcov -t unit -o foo.info
    """
    config = get_config(ctx)
    with handle_errors("capture"):
        decoded = read_graph_file(graph_file, _parse_format(fmt), config)
        if decoded is None:
            console.print(f"[yellow]Skipped[/yellow] {graph_file}")
            raise typer.Exit(0)
        instr, functions = decoded

        sources = _read_sources(gcov_files, config)
        model = assemble_trace(functions, instr, sources, test_name, config)
        emit_trace(model, output, config)
