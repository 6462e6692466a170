"""
covtrace - coverage data toolkit for compiler-instrumented programs

Decodes the graph files a compiler emits for instrumented code, reads and
writes the line-oriented tracefile format, and combines, filters and
remaps coverage data across source edits.
"""

__version__ = "0.1.0"
__author__ = "Naman Agarwal"

from .config import TraceConfig, load_config
from .diff import apply_diff, read_diff, read_diff_file
from .graph import GraphFormat, decode_graph, read_graph_file
from .trace import (
    TestedFile,
    TraceModel,
    TraceTotals,
    assemble_trace,
    combine,
    combine_all,
    extract,
    parse_trace,
    read_trace_file,
    remove,
    serialize_trace,
    write_trace_file,
)

__all__ = [
    "TraceConfig",
    "load_config",
    "GraphFormat",
    "decode_graph",  # Graph files -> line/function maps
    "read_graph_file",
    "TraceModel",  # Coverage database
    "TestedFile",
    "TraceTotals",
    "parse_trace",
    "read_trace_file",
    "serialize_trace",
    "write_trace_file",
    "combine",
    "combine_all",
    "extract",
    "remove",
    "assemble_trace",
    "read_diff",
    "read_diff_file",
    "apply_diff",
]
