"""Diff layer -- moving coverage data across source edits."""

from .engine import DIFF_TEST_SUFFIX, apply_diff, convert_path, find_section, remap_file
from .models import DiffData, LineMap
from .parser import build_line_map, read_diff, read_diff_file

__all__ = [
    "DIFF_TEST_SUFFIX",
    "DiffData",
    "LineMap",
    "apply_diff",
    "build_line_map",
    "convert_path",
    "find_section",
    "read_diff",
    "read_diff_file",
    "remap_file",
]
