"""Graph decoder entry points.

``decode_graph`` turns the bytes of one graph file into
``(InstrumentedLines, Graph)``. ``read_graph_file`` adds file access, format
guessing and the caller's ignore-policy on top.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple, Union

from ..config import DEFAULT_CONFIG, TraceConfig
from ..exceptions import FormatError, InputError
from .bb import decode_bb
from .bbg import decode_bbg
from .gcno import decode_gcno
from .models import Graph, GraphBuilder, GraphFormat, InstrumentedLines
from .reader import DecodeSession

logger = logging.getLogger(__name__)


def decode_graph(
    data: bytes,
    fmt: GraphFormat,
    filename: str = "<memory>",
    split_checksum: Optional[bool] = None,
) -> Tuple[InstrumentedLines, Graph]:
    """Decode one graph file.

    Args:
        data: Complete file contents
        fmt: Which graph generation ``data`` belongs to
        filename: Name used in diagnostics
        split_checksum: gcno checksum layout override (None = auto-detect)

    Raises:
        FormatError: On bad magic, truncation or unresolvable framing
    """
    builder = GraphBuilder()

    if fmt is GraphFormat.BB:
        decode_bb(data, filename, builder)
    elif fmt is GraphFormat.BBG:
        decode_bbg(data, filename, builder)
    elif fmt is GraphFormat.GCNO:
        session = DecodeSession(filename=filename, split_checksum_override=split_checksum)
        decode_gcno(data, session, builder)
    else:
        raise ValueError(f"unsupported graph format: {fmt!r}")

    instr, graph = builder.build()
    logger.debug(
        "%s: %d source file(s), %d function(s)",
        filename,
        len(instr),
        sum(len(functions) for functions in graph.values()),
    )
    return instr, graph


def read_graph_file(
    path: Union[str, Path],
    fmt: Optional[GraphFormat] = None,
    config: TraceConfig = DEFAULT_CONFIG,
) -> Optional[Tuple[InstrumentedLines, Graph]]:
    """Read and decode a graph file, honouring the ``graph`` ignore-policy.

    Returns None when the file is malformed and the policy downgrades the
    error to a warning.

    Raises:
        InputError: If the file cannot be read or its format is unknown
        FormatError: If the file is malformed and errors are not ignored
    """
    path = Path(path)
    if fmt is None:
        fmt = GraphFormat.from_path(path)
        if fmt is None:
            raise InputError(str(path), "cannot determine graph format from file name")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise InputError(str(path), e.strerror or str(e))

    try:
        return decode_graph(data, fmt, str(path), config.split_checksum)
    except FormatError as e:
        if config.ignores(e.category):
            logger.warning("%s (skipped)", e)
            return None
        raise
