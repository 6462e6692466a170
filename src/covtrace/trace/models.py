"""Data models for the coverage database.

Hierarchy:
  TraceModel:  source path -> TestedFile
  TestedFile:  per-test and aggregate counters for lines, functions and
               branches, plus per-line checksums

Aggregates are always derived from the per-test maps
(``TestedFile.recompute_aggregates``) and found/hit totals from the
aggregates, so the three views cannot drift apart.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

# Block number of branches the compiler did not attribute to a named block.
# Written as -1; readers also accept its unsigned 32-bit form, 4294967295.
UNNAMED_BLOCK = -1

BranchKey = Tuple[int, int, int]
LineCounts = Dict[int, int]
FunctionCounts = Dict[str, int]

_NON_WORD = re.compile(r"\W")


def sanitize_test_name(name: str) -> str:
    """Replace characters other than letters, digits and underscore with '_'."""
    return _NON_WORD.sub("_", name)


def add_taken(a: Optional[int], b: Optional[int]) -> Optional[int]:
    """Add two branch taken counts; an unevaluated branch (None) is neutral."""
    if a is None:
        return b
    if b is None:
        return a
    return a + b


def add_counts(target: Dict, source: Dict) -> None:
    """Add every count of ``source`` into ``target`` in place."""
    for key, count in source.items():
        target[key] = target.get(key, 0) + count


def count_hit(counts: Dict) -> int:
    return sum(1 for count in counts.values() if count > 0)


@dataclass(frozen=True)
class BranchRecord:
    """One branch outcome. ``taken`` is None when the branch was never evaluated."""

    line: int
    block: int
    branch: int
    taken: Optional[int] = None

    @property
    def key(self) -> BranchKey:
        return (self.line, self.block, self.branch)

    @property
    def is_unnamed(self) -> bool:
        return self.block == UNNAMED_BLOCK


class BranchVector:
    """Ordered collection of branch records keyed by (line, block, branch).

    Adding a record whose key already exists sums the taken counts.
    Iteration yields records in ascending key order.
    """

    def __init__(self, records: Iterable[BranchRecord] = ()) -> None:
        self._taken: Dict[BranchKey, Optional[int]] = {}
        for record in records:
            self.add(record)

    def add(self, record: BranchRecord) -> None:
        key = record.key
        if key in self._taken:
            self._taken[key] = add_taken(self._taken[key], record.taken)
        else:
            self._taken[key] = record.taken

    def update(self, other: "BranchVector") -> None:
        for record in other:
            self.add(record)

    def get(self, line: int, block: int, branch: int) -> Optional[BranchRecord]:
        key = (line, block, branch)
        if key not in self._taken:
            return None
        return BranchRecord(line, block, branch, self._taken[key])

    def __iter__(self) -> Iterator[BranchRecord]:
        for key in sorted(self._taken):
            yield BranchRecord(*key, taken=self._taken[key])

    def __len__(self) -> int:
        return len(self._taken)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BranchVector):
            return NotImplemented
        return self._taken == other._taken

    def __repr__(self) -> str:
        return f"BranchVector({list(self)!r})"

    @property
    def found(self) -> int:
        return len(self._taken)

    @property
    def hit(self) -> int:
        return sum(1 for taken in self._taken.values() if taken is not None and taken > 0)

    def remap(self, mapper: Callable[[int], Optional[int]]) -> "BranchVector":
        """Return a copy with line numbers passed through ``mapper``.

        Records whose line maps to None are dropped.
        """
        result = BranchVector()
        for record in self:
            line = mapper(record.line)
            if line is not None:
                result.add(BranchRecord(line, record.block, record.branch, record.taken))
        return result

    def copy(self) -> "BranchVector":
        result = BranchVector()
        result._taken = dict(self._taken)
        return result


class TraceTotals(NamedTuple):
    """Found/hit counts for lines, functions and branches."""

    lines_found: int = 0
    lines_hit: int = 0
    functions_found: int = 0
    functions_hit: int = 0
    branches_found: int = 0
    branches_hit: int = 0

    def plus(self, other: "TraceTotals") -> "TraceTotals":
        return TraceTotals(*(a + b for a, b in zip(self, other)))


@dataclass
class TestedFile:
    """Coverage counters of one source file across all tests."""

    __test__ = False  # not a pytest class

    path: str
    test_lines: Dict[str, LineCounts] = field(default_factory=dict)
    lines: LineCounts = field(default_factory=dict)
    function_lines: Dict[str, int] = field(default_factory=dict)
    test_functions: Dict[str, FunctionCounts] = field(default_factory=dict)
    functions: FunctionCounts = field(default_factory=dict)
    checksums: Dict[int, str] = field(default_factory=dict)
    test_branches: Dict[str, BranchVector] = field(default_factory=dict)
    branches: BranchVector = field(default_factory=BranchVector)

    @property
    def tests(self) -> List[str]:
        """Sorted names of every test with data for this file."""
        names = set(self.test_lines) | set(self.test_functions) | set(self.test_branches)
        return sorted(names)

    def recompute_aggregates(self) -> None:
        """Rebuild aggregate counters from the per-test maps."""
        lines: LineCounts = {}
        for counts in self.test_lines.values():
            add_counts(lines, counts)
        self.lines = lines

        functions: FunctionCounts = {name: 0 for name in self.function_lines}
        for counts in self.test_functions.values():
            add_counts(functions, counts)
        self.functions = functions

        branches = BranchVector()
        for vector in self.test_branches.values():
            branches.update(vector)
        self.branches = branches

    def prune_empty_tests(self) -> None:
        """Drop tests that carry no line data, together with their other data."""
        for name in self.tests:
            if not self.test_lines.get(name):
                self.test_lines.pop(name, None)
                self.test_functions.pop(name, None)
                self.test_branches.pop(name, None)

    @property
    def totals(self) -> TraceTotals:
        return TraceTotals(
            lines_found=len(self.lines),
            lines_hit=count_hit(self.lines),
            functions_found=len(self.functions),
            functions_hit=count_hit(self.functions),
            branches_found=self.branches.found,
            branches_hit=self.branches.hit,
        )


class TraceModel:
    """Coverage database: source path -> TestedFile."""

    def __init__(self, files: Optional[Dict[str, TestedFile]] = None) -> None:
        self.files: Dict[str, TestedFile] = dict(files or {})

    def __getitem__(self, path: str) -> TestedFile:
        return self.files[path]

    def __contains__(self, path: object) -> bool:
        return path in self.files

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.files))

    def __len__(self) -> int:
        return len(self.files)

    def __bool__(self) -> bool:
        return bool(self.files)

    def __repr__(self) -> str:
        return f"TraceModel({len(self.files)} file(s))"

    def add(self, tested: TestedFile) -> None:
        self.files[tested.path] = tested

    def get(self, path: str) -> Optional[TestedFile]:
        return self.files.get(path)

    def pop(self, path: str) -> TestedFile:
        return self.files.pop(path)

    @property
    def totals(self) -> TraceTotals:
        result = TraceTotals()
        for tested in self.files.values():
            result = result.plus(tested.totals)
        return result

    def copy(self) -> "TraceModel":
        return copy.deepcopy(self)
