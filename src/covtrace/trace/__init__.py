"""Trace layer -- the coverage database, its text format and merge rules."""

from .assemble import assemble_trace, line_checksum
from .codec import RecordTag, parse_trace, read_trace_file, serialize_trace, write_trace_file
from .filter import extract, remove
from .gcov import GcovFile, GcovLine, read_gcov, read_gcov_file
from .merge import combine, combine_all, combine_files
from .models import (
    UNNAMED_BLOCK,
    BranchRecord,
    BranchVector,
    TestedFile,
    TraceModel,
    TraceTotals,
    sanitize_test_name,
)

__all__ = [
    "UNNAMED_BLOCK",
    "BranchRecord",
    "BranchVector",
    "GcovFile",
    "GcovLine",
    "RecordTag",
    "TestedFile",
    "TraceModel",
    "TraceTotals",
    "assemble_trace",
    "combine",
    "combine_all",
    "combine_files",
    "extract",
    "line_checksum",
    "parse_trace",
    "read_gcov",
    "read_gcov_file",
    "read_trace_file",
    "remove",
    "sanitize_test_name",
    "serialize_trace",
    "write_trace_file",
]
