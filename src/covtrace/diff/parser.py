"""Unified diff reader -- builds per-file line maps with ``unidiff``.

For each changed file the walk keeps one counter per version:

  - lines before a hunk and context lines map new -> old and advance both,
  - removed lines advance only the old counter,
  - added lines advance only the new counter and get no entry.

After the last hunk the next pair of counters is recorded too, so the final
entry carries the offset of everything below the last change.
"""

import logging
from pathlib import Path
from typing import Dict, Union

from unidiff import PatchedFile, PatchSet
from unidiff.errors import UnidiffParseError

from ..exceptions import DiffError, InputError
from .models import DiffData, LineMap

logger = logging.getLogger(__name__)

DEV_NULL = "/dev/null"


def _clean_paths(source: str, target: str, strip: int) -> tuple:
    if source.startswith("a/") and target.startswith("b/"):
        source, target = source[2:], target[2:]
    if strip:
        source = "/".join(source.split("/")[strip:])
        target = "/".join(target.split("/")[strip:])
    return source, target


def build_line_map(patched_file: PatchedFile) -> LineMap:
    mapping: Dict[int, int] = {}
    num_old = 1
    num_new = 1

    for hunk in patched_file:
        while num_old < hunk.source_start:
            mapping[num_new] = num_old
            num_old += 1
            num_new += 1
        for line in hunk:
            if line.is_context:
                mapping[num_new] = num_old
                num_old += 1
                num_new += 1
            elif line.is_removed:
                num_old += 1
            elif line.is_added:
                num_new += 1

    mapping[num_new] = num_old
    return LineMap(mapping)


def _add_renames(renames: Dict[str, str], old: str, new: str) -> None:
    """Record a file rename plus the directory rename it implies."""
    renames.setdefault(old, new)
    old_parts = old.split("/")
    new_parts = new.split("/")
    while old_parts and new_parts and old_parts[-1] == new_parts[-1]:
        old_parts.pop()
        new_parts.pop()
    if old_parts and new_parts:
        renames.setdefault("/".join(old_parts), "/".join(new_parts))


def read_diff(text: str, name: str = "<memory>", strip: int = 0) -> DiffData:
    """Parse unified diff text.

    Args:
        text: Diff contents
        name: Name used in diagnostics
        strip: Number of leading path components to remove

    Raises:
        DiffError: If the diff is malformed or has no hunks
    """
    try:
        patch = PatchSet(text)
    except UnidiffParseError as e:
        raise DiffError(name, f"malformed diff: {e}")

    result = DiffData()
    for patched_file in patch:
        if patched_file.is_added_file or patched_file.is_removed_file:
            continue
        if not len(patched_file):
            continue
        source, target = _clean_paths(patched_file.source_file, patched_file.target_file, strip)
        if target == DEV_NULL or source == DEV_NULL:
            continue

        result.files[target] = build_line_map(patched_file)
        if source != target:
            logger.debug("Diff renames %s to %s", source, target)
            _add_renames(result.renames, source, target)

    if not result.files:
        raise DiffError(name, "no valid diff data found")
    logger.debug("%s: diff data for %d file(s)", name, len(result.files))
    return result


def read_diff_file(path: Union[str, Path], strip: int = 0) -> DiffData:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise InputError(str(path), e.strerror or str(e))
    return read_diff(text, str(path), strip)
