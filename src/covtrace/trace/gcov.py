"""Reader for the counting tool's annotated source output (``*.gcov``).

Each source row has the form ``<count>:<line>:<text>``; ``-`` marks a line
without code, ``#####`` and ``=====`` an instrumented line never executed, and
a trailing ``*`` a line with unexecuted blocks. Branch rows follow the source
row they belong to::

        3:   12:    if (x)
    branch  0 taken 2
    branch  1 taken 1
    branch  0 never executed

A branch number repeating within one source line starts a new block.
Percentage branch rows (written without ``-c``) are ignored.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..exceptions import FormatError, InputError
from .models import BranchRecord, BranchVector

logger = logging.getLogger(__name__)

_SOURCE_ROW = re.compile(r"^\s*([^:]+):\s*(\d+):(.*)$")
_BRANCH_TAKEN = re.compile(r"^branch\s+(\d+)\s+taken\s+(\d+)\b(?!%)")
_BRANCH_NEVER = re.compile(r"^branch\s+(\d+)\s+never\s+executed")


@dataclass
class GcovLine:
    number: int
    instrumented: bool
    count: int
    text: str


@dataclass
class GcovFile:
    """Per-line counts of one source file as reported by the counting tool."""

    source: Optional[str] = None
    lines: List[GcovLine] = field(default_factory=list)
    branches: BranchVector = field(default_factory=BranchVector)

    def counts(self) -> Dict[int, int]:
        """Counts of instrumented lines, keyed by line number."""
        return {line.number: line.count for line in self.lines if line.instrumented}

    def text(self) -> Dict[int, str]:
        return {line.number: line.text for line in self.lines}


def _parse_count(value: str, name: str, number: int) -> Optional[int]:
    value = value.strip().rstrip("*")
    if value == "-":
        return None
    if value in ("#####", "====="):
        return 0
    try:
        return int(value)
    except ValueError:
        raise FormatError(name, f"unparseable count '{value}' at line {number}", category="gcov")


def read_gcov(text: str, name: str = "<memory>") -> GcovFile:
    """Parse gcov text output.

    Raises:
        FormatError: (category ``gcov``) on an unparseable count field
    """
    result = GcovFile()
    last_line = 0
    block = -1
    seen: set = set()

    for raw in text.splitlines():
        match = _SOURCE_ROW.match(raw)
        if match is not None:
            number = int(match.group(2))
            body = match.group(3)
            if number == 0:
                key, _, value = body.partition(":")
                if key == "Source":
                    result.source = value
                continue
            count = _parse_count(match.group(1), name, number)
            result.lines.append(
                GcovLine(number, count is not None, count if count is not None else 0, body)
            )
            last_line = number
            block = -1
            seen = set()
            continue

        taken: Optional[int]
        match = _BRANCH_TAKEN.match(raw)
        if match is not None:
            taken = int(match.group(2))
        else:
            match = _BRANCH_NEVER.match(raw)
            if match is None:
                continue
            taken = None
        if last_line == 0:
            continue

        branch = int(match.group(1))
        if block < 0 or branch in seen:
            block += 1
            seen = set()
        seen.add(branch)
        result.branches.add(BranchRecord(last_line, block, branch, taken))

    return result


def read_gcov_file(path: Union[str, Path]) -> GcovFile:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise InputError(str(path), e.strerror or str(e))
    return read_gcov(text, str(path))
