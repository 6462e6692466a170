"""Graph layer -- decoding compiler-emitted graph files into line/function maps."""

from .decoder import decode_graph, read_graph_file
from .gcno import convert_gcc_version
from .models import Graph, GraphBuilder, GraphFormat, InstrumentedLines, RecordTag

__all__ = [
    "Graph",
    "GraphBuilder",
    "GraphFormat",
    "InstrumentedLines",
    "RecordTag",
    "convert_gcc_version",
    "decode_graph",
    "read_graph_file",
]
