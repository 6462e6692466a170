"""Diff engine -- carries coverage data across a source edit.

The algorithm works in three passes:
  1. Matching: each traced file is paired with the most specific diff
     section whose path is a suffix of the file's path.
  2. Remapping: every line-keyed structure of a matched file moves to its
     new line number; lines that no longer exist are dropped, and tests are
     renamed with a ",diff" suffix.
  3. Renaming (optional): file paths follow the renames recorded in the diff.

Unmatched files pass through unchanged.
"""

import copy
import dataclasses
import logging
import posixpath
from typing import Callable, Dict, Optional

from ..exceptions import DataAbsentError, IntegrityError
from ..trace.merge import combine_files
from ..trace.models import BranchVector, TestedFile, TraceModel, add_counts
from .models import DiffData, LineMap

logger = logging.getLogger(__name__)

DIFF_TEST_SUFFIX = ",diff"


# ── Matching ────────────────────────────────────────────────────────────────

def find_section(path: str, diff: DiffData, base_path: Optional[str] = None) -> Optional[str]:
    """Return the diff section describing ``path``, or None.

    With ``base_path`` a section matches when ``base_path/section`` equals
    ``path``; otherwise when ``path`` ends with the section path. The
    section with the most path components wins.

    Raises:
        IntegrityError: If the most specific match is not unique
    """
    best: Optional[str] = None
    best_depth = -1
    tied = False

    for name in diff.files:
        normalized = posixpath.normpath(name)
        if base_path is not None and not normalized.startswith("/"):
            matched = path == posixpath.join(base_path, normalized)
        else:
            matched = path == normalized or path.endswith("/" + normalized.lstrip("/"))
        if not matched:
            continue

        depth = normalized.strip("/").count("/")
        if depth == best_depth:
            tied = True
        elif depth > best_depth:
            best, best_depth, tied = name, depth, False

    if tied:
        raise IntegrityError(path, "diff file contains ambiguous entries")
    return best


# ── Remapping ───────────────────────────────────────────────────────────────

def _remap_keys(data: Dict[int, object], mapper: Callable[[int], Optional[int]]) -> Dict:
    result = {}
    for line, value in data.items():
        new = mapper(line)
        if new is not None:
            result[new] = value
    return result


def _diff_test_name(name: str) -> str:
    if name.endswith(DIFF_TEST_SUFFIX):
        return name
    return name + DIFF_TEST_SUFFIX


def remap_file(tested: TestedFile, line_map: LineMap) -> Optional[TestedFile]:
    """Move ``tested`` to new line numbers; None if no line survives."""
    mapper = line_map.map_old
    result = TestedFile(path=tested.path)

    result.checksums = _remap_keys(tested.checksums, mapper)
    result.function_lines = {
        name: mapper(line)
        for name, line in tested.function_lines.items()
        if mapper(line) is not None
    }

    for test, counts in tested.test_lines.items():
        remapped = _remap_keys(counts, mapper)
        add_counts(result.test_lines.setdefault(_diff_test_name(test), {}), remapped)

    for test, counts in tested.test_functions.items():
        kept = {name: count for name, count in counts.items() if name in result.function_lines}
        add_counts(result.test_functions.setdefault(_diff_test_name(test), {}), kept)

    for test, vector in tested.test_branches.items():
        remapped = vector.remap(mapper)
        result.test_branches.setdefault(_diff_test_name(test), BranchVector()).update(remapped)

    result.prune_empty_tests()
    result.recompute_aggregates()
    if not result.lines:
        return None
    return result


# ── Renaming ────────────────────────────────────────────────────────────────

def convert_path(path: str, renames: Dict[str, str]) -> str:
    """Apply the longest matching rename to ``path``.

    Renames are relative, so every suffix of ``path`` that starts at a
    component boundary is tried as a prefix match.
    """
    parts = path.split("/")
    best = None
    for i in range(len(parts)):
        relative = "/".join(parts[i:])
        for old, new in renames.items():
            if relative == old or relative.startswith(old + "/"):
                if best is None or len(old) > len(best[1]):
                    best = (i, old, new)

    if best is None:
        return path
    i, old, new = best
    converted = new + "/".join(parts[i:])[len(old) :]
    if i == 0:
        return converted
    return "/".join(parts[:i]) + "/" + converted


def convert_paths(model: TraceModel, renames: Dict[str, str]) -> TraceModel:
    """Rename files per ``renames``; files that end up on one path are combined."""
    result = TraceModel()
    for path in model:
        new_path = convert_path(path, renames)
        tested = model[path]
        if new_path != path:
            logger.debug("Renaming %s to %s", path, new_path)
            tested = dataclasses.replace(tested, path=new_path)
        existing = result.get(new_path)
        result.add(tested if existing is None else combine_files(existing, tested))
    return result


# ── Entry point ─────────────────────────────────────────────────────────────

def apply_diff(
    model: TraceModel,
    diff: DiffData,
    base_path: Optional[str] = None,
    convert_filenames: bool = False,
) -> TraceModel:
    """Return a new model with line numbers moved across ``diff``.

    Raises:
        IntegrityError: If a file matches two diff sections equally well
        DataAbsentError: If no file survives the conversion
    """
    result = TraceModel()
    converted = 0
    dropped = 0

    for path in model:
        tested = model[path]
        section = find_section(path, diff, base_path)
        if section is None:
            result.add(copy.deepcopy(tested))
            continue

        remapped = remap_file(tested, diff.files[section])
        if remapped is None:
            logger.info("No lines of %s survive the diff, removed", path)
            dropped += 1
            continue
        result.add(remapped)
        converted += 1

    if convert_filenames and diff.renames:
        result = convert_paths(result, diff.renames)

    logger.info("%d file(s) converted, %d removed", converted, dropped)
    if not result:
        raise DataAbsentError("no files left after applying diff")
    return result
