"""Assemble a TraceModel from a decoded graph and per-line counts.

The graph says which lines carry code and which function owns them; the
counting tool's output (one ``GcovFile`` per source path) supplies the
execution counts. Paths must already be canonical on both sides.
"""

import base64
import hashlib
import logging
from typing import Dict, Mapping

from ..config import DEFAULT_CONFIG, TraceConfig
from ..exceptions import DataAbsentError
from ..graph import Graph, InstrumentedLines
from .gcov import GcovFile
from .models import TestedFile, TraceModel, sanitize_test_name

logger = logging.getLogger(__name__)


def line_checksum(text: str) -> str:
    """Base64 md5 of one source line, without padding."""
    digest = hashlib.md5(text.encode("utf-8", errors="surrogateescape")).digest()
    return base64.b64encode(digest).decode("ascii").rstrip("=")


def _assemble_file(
    path: str,
    instrumented: list,
    functions: Dict[str, list],
    source: GcovFile,
    test_name: str,
    config: TraceConfig,
) -> TestedFile:
    counts = source.counts()
    lines = {number: counts.get(number, 0) for number in instrumented}
    for number, count in counts.items():
        lines.setdefault(number, count)

    tested = TestedFile(path=path)
    tested.test_lines[test_name] = dict(sorted(lines.items()))

    if config.function_coverage and functions:
        function_counts = {}
        for name, function_lines in functions.items():
            start = function_lines[0]
            tested.function_lines[name] = start
            function_counts[name] = lines.get(start, 0)
        tested.test_functions[test_name] = function_counts

    if config.branch_coverage and source.branches:
        tested.test_branches[test_name] = source.branches.copy()

    if config.checksum:
        text = source.text()
        tested.checksums = {
            number: line_checksum(text[number]) for number in lines if number in text
        }

    tested.recompute_aggregates()
    return tested


def assemble_trace(
    graph: Graph,
    instr: InstrumentedLines,
    sources: Mapping[str, GcovFile],
    test_name: str = "",
    config: TraceConfig = DEFAULT_CONFIG,
) -> TraceModel:
    """Build a single-test TraceModel.

    Lines the graph knows but the counting tool does not report count as 0.
    A function's count is the count of its first line.

    Raises:
        DataAbsentError: If no source file yields any line
    """
    test_name = sanitize_test_name(test_name)
    model = TraceModel()

    for path in sorted(set(instr) | set(sources)):
        source = sources.get(path)
        if source is None:
            logger.debug("No counts for %s, skipped", path)
            continue
        tested = _assemble_file(
            path, instr.get(path, []), graph.get(path, {}), source, test_name, config
        )
        if not tested.lines:
            logger.debug("No instrumented lines in %s, skipped", path)
            continue
        model.add(tested)

    if not model:
        raise DataAbsentError("no instrumented lines found")
    return model
