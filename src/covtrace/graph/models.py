"""Data models for decoded graph files.

A graph file maps basic blocks to source lines. Decoding yields two views:

  Graph:             source path -> function name -> ascending line numbers
  InstrumentedLines: source path -> ascending line numbers

Functions are attributed to a single file (see ``GraphBuilder.build``), while
InstrumentedLines keeps every file's lines regardless of attribution.
"""

import logging
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

logger = logging.getLogger(__name__)

Graph = Dict[str, Dict[str, List[int]]]
InstrumentedLines = Dict[str, List[int]]


class GraphFormat(Enum):
    """Graph file generations, oldest first."""

    BB = "bb"
    BBG = "bbg"
    GCNO = "gcno"

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> Optional["GraphFormat"]:
        """Guess the format from a file suffix, or None when unknown."""
        suffix = Path(path).suffix.lstrip(".").lower()
        for member in cls:
            if member.value == suffix:
                return member
        return None


class RecordTag(Enum):
    """Record tags of the tagged (bbg/gcno) formats."""

    FUNCTION = 0x01000000
    LINES = 0x01450000
    OTHER = -1

    @classmethod
    def classify(cls, word: int) -> "RecordTag":
        if word == cls.FUNCTION.value:
            return cls.FUNCTION
        if word == cls.LINES.value:
            return cls.LINES
        return cls.OTHER


class GraphBuilder:
    """Collects per-function line contributions while a graph file is read.

    ``blocks[function][filename]`` holds the lines ``filename`` contributes to
    ``function``; the dict order of the inner map is the order in which files
    first contributed a line.
    """

    def __init__(self) -> None:
        self.blocks: Dict[str, Dict[str, List[int]]] = {}
        self.artificial: Set[str] = set()

    def add_line(self, function: str, filename: str, line: int) -> None:
        self.blocks.setdefault(function, {}).setdefault(filename, []).append(line)

    def mark_artificial(self, function: str) -> None:
        self.artificial.add(function)

    def find_base_file(self) -> Optional[str]:
        """Return the file contributing to the most functions.

        The file that contains code for the most functions is likely the
        compilation unit itself. A tie means there is no base file.
        """
        counts: Counter = Counter()
        for files in self.blocks.values():
            counts.update(name for name, lines in files.items() if lines)
        if not counts:
            return None
        ranked = counts.most_common(2)
        if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
            return None
        return ranked[0][0]

    def build(self) -> Tuple[InstrumentedLines, Graph]:
        """Attribute functions to files and return ``(instr, graph)``.

        The base file is chosen over all functions, artificial ones included;
        artificial functions are dropped afterwards.
        """
        basefile = self.find_base_file()
        graph: Graph = {}
        instr: Dict[str, Set[int]] = {}

        for function, files in self.blocks.items():
            if function in self.artificial:
                logger.debug("Dropping compiler-generated function %s", function)
                continue
            files = {name: lines for name, lines in files.items() if lines}
            if not files:
                continue

            if basefile is not None and basefile in files:
                owner = basefile
            else:
                owner = next(iter(files))
            graph.setdefault(owner, {})[function] = sorted(set(files[owner]))

            for name, lines in files.items():
                instr.setdefault(name, set()).update(lines)

        return {name: sorted(lines) for name, lines in instr.items()}, graph
