"""Select or drop source files of a TraceModel by shell-glob patterns."""

import copy
import logging
from fnmatch import fnmatchcase
from typing import Iterable, List

from ..exceptions import DataAbsentError
from .models import TraceModel

logger = logging.getLogger(__name__)


def _matches(path: str, patterns: List[str]) -> bool:
    return any(fnmatchcase(path, pattern) for pattern in patterns)


def _select(model: TraceModel, patterns: Iterable[str], keep_matching: bool) -> TraceModel:
    patterns = list(patterns)
    result = TraceModel()
    removed = 0
    for path in model:
        if _matches(path, patterns) == keep_matching:
            result.add(copy.deepcopy(model[path]))
        else:
            removed += 1

    logger.info("Removed %d file(s)", removed)
    if not result:
        raise DataAbsentError("no files left after filtering")
    return result


def extract(model: TraceModel, patterns: Iterable[str]) -> TraceModel:
    """Keep only files matching at least one pattern."""
    return _select(model, patterns, keep_matching=True)


def remove(model: TraceModel, patterns: Iterable[str]) -> TraceModel:
    """Drop files matching any pattern."""
    return _select(model, patterns, keep_matching=False)
