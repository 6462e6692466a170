"""Tracefile reader and writer.

The tracefile is line oriented; each statement starts with a tag::

    TN:<test name>
    SF:<absolute path of the source file>
    FN:<line>,<function>          FNDA:<count>,<function>
    FNF:<found>                   FNH:<hit>
    BRDA:<line>,<block>,<branch>,<taken or ->
    BRF:<found>                   BRH:<hit>
    DA:<line>,<count>[,<checksum>]
    LF:<found>                    LH:<hit>
    end_of_record

Reading is a single forward pass. Found/hit statements are not trusted; they
are recomputed from the counters once the pass is over.
"""

import gzip
import logging
import re
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional, TextIO, Union

from ..config import DEFAULT_CONFIG, TraceConfig
from ..exceptions import DataAbsentError, InputError, IntegrityError
from .models import (
    UNNAMED_BLOCK,
    BranchRecord,
    BranchVector,
    TestedFile,
    TraceModel,
    TraceTotals,
    add_counts,
    sanitize_test_name,
)

logger = logging.getLogger(__name__)


class RecordTag(Enum):
    """Statement kinds of the tracefile format."""

    TEST_NAME = "TN"
    SOURCE_FILE = "SF"
    FUNCTION = "FN"
    FUNCTION_DATA = "FNDA"
    FUNCTIONS_FOUND = "FNF"
    FUNCTIONS_HIT = "FNH"
    BRANCH_DATA = "BRDA"
    BRANCHES_FOUND = "BRF"
    BRANCHES_HIT = "BRH"
    LINE_DATA = "DA"
    LINES_FOUND = "LF"
    LINES_HIT = "LH"
    END_OF_RECORD = "end_of_record"

    @classmethod
    def classify(cls, line: str) -> Optional["RecordTag"]:
        """Return the tag of a statement, or None for unrecognized lines."""
        if line == cls.END_OF_RECORD.value:
            return cls.END_OF_RECORD
        head, sep, _ = line.partition(":")
        if not sep:
            return None
        try:
            tag = cls(head)
        except ValueError:
            return None
        return None if tag is cls.END_OF_RECORD else tag


_FIELDS = {
    RecordTag.TEST_NAME: re.compile(r"^(.*)$"),
    RecordTag.SOURCE_FILE: re.compile(r"^(.+)$"),
    RecordTag.FUNCTION: re.compile(r"^(\d+),([^,]+)"),
    RecordTag.FUNCTION_DATA: re.compile(r"^(-?\d+),([^,]+)"),
    RecordTag.BRANCH_DATA: re.compile(r"^(\d+),(-?\d+),(\d+),(\d+|-)"),
    RecordTag.LINE_DATA: re.compile(r"^(\d+),(-?\d+)(?:,([^,\s]+))?"),
}

_UNSIGNED_UNNAMED_BLOCK = 0xFFFFFFFF


def _block_number(text: str) -> int:
    block = int(text)
    if block < 0 or block == _UNSIGNED_UNNAMED_BLOCK:
        return UNNAMED_BLOCK
    return block


class _TraceReader:
    """State of one tracefile parse."""

    def __init__(self, name: str, config: TraceConfig) -> None:
        self.name = name
        self.config = config
        self.model = TraceModel()
        self.test_name = ""
        self.current: Optional[TestedFile] = None
        self.lines: Dict[int, int] = {}
        self.functions: Dict[str, int] = {}
        self.branches = BranchVector()
        self.negative = False
        self.renamed_test = False

        self.handlers: Dict[RecordTag, Callable] = {
            RecordTag.TEST_NAME: self.on_test_name,
            RecordTag.SOURCE_FILE: self.on_source_file,
            RecordTag.FUNCTION: self.on_function,
            RecordTag.FUNCTION_DATA: self.on_function_data,
            RecordTag.BRANCH_DATA: self.on_branch_data,
            RecordTag.LINE_DATA: self.on_line_data,
            RecordTag.END_OF_RECORD: self.on_end_of_record,
        }

    def feed(self, raw: str) -> None:
        line = raw.strip()
        tag = RecordTag.classify(line)
        if tag is None:
            return
        handler = self.handlers.get(tag)
        if handler is None:
            return
        if tag is RecordTag.END_OF_RECORD:
            handler()
            return
        match = _FIELDS[tag].match(line[len(tag.value) + 1 :])
        if match is None:
            logger.debug("%s: malformed statement ignored: %s", self.name, line)
            return
        handler(*match.groups())

    def _clamp(self, count: int) -> int:
        if count < 0:
            self.negative = True
            return 0
        return count

    def on_test_name(self, name: str) -> None:
        sanitized = sanitize_test_name(name)
        if sanitized != name:
            self.renamed_test = True
        self.test_name = sanitized

    def on_source_file(self, path: str) -> None:
        self.current = self.model.get(path)
        if self.current is None:
            self.current = TestedFile(path=path)
            self.model.add(self.current)
        self.lines = {}
        self.functions = {}
        self.branches = BranchVector()

    def on_line_data(self, line: str, count: str, checksum: Optional[str]) -> None:
        if self.current is None:
            return
        number = int(line)
        self.lines[number] = self.lines.get(number, 0) + self._clamp(int(count))
        if checksum is not None:
            known = self.current.checksums.get(number)
            if known is not None and known != checksum:
                raise IntegrityError(self.current.path, "checksum mismatch", line=number)
            self.current.checksums[number] = checksum

    def on_function(self, line: str, name: str) -> None:
        if self.current is None or not self.config.function_coverage:
            return
        self.current.function_lines[name] = int(line)
        self.functions.setdefault(name, 0)

    def on_function_data(self, count: str, name: str) -> None:
        if self.current is None or not self.config.function_coverage:
            return
        self.functions[name] = self.functions.get(name, 0) + self._clamp(int(count))

    def on_branch_data(self, line: str, block: str, branch: str, taken: str) -> None:
        if self.current is None or not self.config.branch_coverage:
            return
        self.branches.add(
            BranchRecord(
                line=int(line),
                block=_block_number(block),
                branch=int(branch),
                taken=None if taken == "-" else int(taken),
            )
        )

    def on_end_of_record(self) -> None:
        if self.current is None:
            return
        tested = self.current
        add_counts(tested.test_lines.setdefault(self.test_name, {}), self.lines)
        if self.functions:
            add_counts(tested.test_functions.setdefault(self.test_name, {}), self.functions)
        if self.branches:
            tested.test_branches.setdefault(self.test_name, BranchVector()).update(self.branches)
        self.current = None

    def finish(self) -> TraceModel:
        for path in list(self.model.files):
            tested = self.model[path]
            tested.prune_empty_tests()
            tested.recompute_aggregates()
            if not tested.lines:
                logger.debug("%s: no line data for %s, dropped", self.name, path)
                self.model.pop(path)

        if not self.model:
            raise DataAbsentError("no valid records found in tracefile", filename=self.name)
        if self.negative:
            logger.warning("negative counts found in tracefile %s", self.name)
        if self.renamed_test:
            logger.warning("invalid characters removed from testname in tracefile %s", self.name)
        return self.model


def parse_trace(text: str, name: str = "<memory>", config: TraceConfig = DEFAULT_CONFIG) -> TraceModel:
    """Parse tracefile text into a TraceModel.

    Raises:
        IntegrityError: If the same line carries two different checksums
        DataAbsentError: If no file with line data remains
    """
    reader = _TraceReader(name, config)
    for raw in text.splitlines():
        reader.feed(raw)
    return reader.finish()


def read_trace_file(path: Union[str, Path], config: TraceConfig = DEFAULT_CONFIG) -> TraceModel:
    """Read a tracefile from disk; gzip-compressed files are detected by magic."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise InputError(str(path), e.strerror or str(e))

    if data[:2] == b"\x1f\x8b":
        try:
            data = gzip.decompress(data)
        except (OSError, EOFError) as e:
            raise InputError(str(path), f"corrupt gzip data: {e}")

    return parse_trace(data.decode("utf-8", errors="replace"), str(path), config)


def serialize_trace(
    model: TraceModel,
    stream: TextIO,
    checksum: bool = False,
) -> TraceTotals:
    """Write ``model`` as tracefile text.

    One record per (file, test) pair, both sorted by name. Returns the grand
    totals of the records written.
    """
    totals = TraceTotals()

    for path in model:
        tested = model[path]
        declared = sorted(tested.function_lines.items(), key=lambda item: (item[1], item[0]))

        for test_name in sorted(tested.test_lines):
            line_counts = tested.test_lines[test_name]
            function_counts = tested.test_functions.get(test_name, {})
            branches = tested.test_branches.get(test_name, BranchVector())

            stream.write(f"TN:{test_name}\n")
            stream.write(f"SF:{path}\n")

            for name, start in declared:
                stream.write(f"FN:{start},{name}\n")
            for name, _ in declared:
                if name in function_counts:
                    stream.write(f"FNDA:{function_counts[name]},{name}\n")
            for name in sorted(set(function_counts) - set(tested.function_lines)):
                stream.write(f"FNDA:{function_counts[name]},{name}\n")
            fn_found = len(function_counts)
            fn_hit = sum(1 for count in function_counts.values() if count > 0)
            stream.write(f"FNF:{fn_found}\n")
            stream.write(f"FNH:{fn_hit}\n")

            for record in branches:
                taken = "-" if record.taken is None else record.taken
                stream.write(f"BRDA:{record.line},{record.block},{record.branch},{taken}\n")
            if branches.found:
                stream.write(f"BRF:{branches.found}\n")
                stream.write(f"BRH:{branches.hit}\n")

            ln_hit = 0
            for line in sorted(line_counts):
                count = line_counts[line]
                suffix = ""
                if checksum and line in tested.checksums:
                    suffix = f",{tested.checksums[line]}"
                stream.write(f"DA:{line},{count}{suffix}\n")
                if count > 0:
                    ln_hit += 1
            stream.write(f"LF:{len(line_counts)}\n")
            stream.write(f"LH:{ln_hit}\n")
            stream.write("end_of_record\n")

            totals = totals.plus(
                TraceTotals(len(line_counts), ln_hit, fn_found, fn_hit, branches.found, branches.hit)
            )

    return totals


def write_trace_file(
    model: TraceModel,
    path: Union[str, Path],
    checksum: bool = False,
) -> TraceTotals:
    """Write ``model`` to ``path``; ``-`` writes to stdout."""
    if str(path) == "-":
        return serialize_trace(model, sys.stdout, checksum)
    try:
        with open(path, "w", encoding="utf-8") as handle:
            return serialize_trace(model, handle, checksum)
    except OSError as e:
        raise InputError(str(path), e.strerror or str(e))
