"""Merge engine -- combines TraceModels while keeping their data consistent.

Rules for a file present on both sides:
  1. Checksums unify by line; two different values for one line are fatal.
  2. Function declarations unify by name; a different start line for the
     same name is reported and the first declaration wins.
  3. Per-test counters are summed when the test exists on both sides and
     copied otherwise. Branches sum by key, unevaluated being neutral.
  4. Aggregates are rebuilt from the merged per-test maps.

Inputs are never modified and the result shares no objects with them.
"""

import copy
import logging
from functools import reduce
from typing import Dict, Iterable

from ..exceptions import DataAbsentError, IntegrityError
from .models import BranchVector, TestedFile, TraceModel, add_counts

logger = logging.getLogger(__name__)


def merge_checksums(first: Dict[int, str], second: Dict[int, str], path: str) -> Dict[int, str]:
    """Union two checksum maps, refusing to pick between conflicting values."""
    result = dict(first)
    for line, value in second.items():
        known = result.get(line)
        if known is not None and value is not None and known != value:
            raise IntegrityError(path, "checksum mismatch", line=line)
        if known is None:
            result[line] = value
    return result


def merge_function_lines(first: Dict[str, int], second: Dict[str, int], path: str) -> Dict[str, int]:
    result = dict(first)
    for name, line in second.items():
        known = result.get(name)
        if known is not None and known != line:
            logger.warning("function data mismatch at %s:%d (%s)", path, line, name)
            continue
        result[name] = line
    return result


def _merge_per_test(first: Dict, second: Dict, add) -> Dict:
    result = {name: copy.deepcopy(data) for name, data in first.items()}
    for name, data in second.items():
        if name in result:
            add(result[name], data)
        else:
            result[name] = copy.deepcopy(data)
    return result


def _add_branches(target: BranchVector, source: BranchVector) -> None:
    target.update(source)


def combine_files(first: TestedFile, second: TestedFile) -> TestedFile:
    """Combine the data two models hold for the same source file."""
    path = first.path
    result = TestedFile(path=path)
    result.checksums = merge_checksums(first.checksums, second.checksums, path)
    result.function_lines = merge_function_lines(first.function_lines, second.function_lines, path)
    result.test_lines = _merge_per_test(first.test_lines, second.test_lines, add_counts)
    result.test_functions = _merge_per_test(first.test_functions, second.test_functions, add_counts)
    result.test_branches = _merge_per_test(first.test_branches, second.test_branches, _add_branches)
    result.recompute_aggregates()
    return result


def combine(first: TraceModel, second: TraceModel) -> TraceModel:
    """Combine two models into a new one.

    Raises:
        IntegrityError: If both models hold different checksums for a line
    """
    result = TraceModel()
    for path in sorted(set(first.files) | set(second.files)):
        a = first.get(path)
        b = second.get(path)
        if a is not None and b is not None:
            result.add(combine_files(a, b))
        else:
            result.add(copy.deepcopy(a if a is not None else b))
    return result


def combine_all(models: Iterable[TraceModel]) -> TraceModel:
    """Fold ``combine`` over ``models`` in order.

    Raises:
        DataAbsentError: If no model is given
    """
    models = list(models)
    if not models:
        raise DataAbsentError("nothing to combine")
    logger.debug("Combining %d trace model(s)", len(models))
    return reduce(combine, models[1:], models[0].copy())
