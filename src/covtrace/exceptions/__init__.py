"""Exception hierarchy for covtrace."""

from .base import CovtraceError
from .config import ConfigurationError, InvalidConfigError
from .data import (
    ERROR_CATEGORIES,
    DataAbsentError,
    DiffError,
    FormatError,
    InputError,
    IntegrityError,
    TraceDataError,
)

__all__ = [
    "CovtraceError",
    "TraceDataError",
    "FormatError",
    "IntegrityError",
    "DataAbsentError",
    "InputError",
    "DiffError",
    "ConfigurationError",
    "InvalidConfigError",
    "ERROR_CATEGORIES",
]
