"""Coverage data exceptions: binary framing, integrity, missing data, input."""

from typing import Dict, Optional

from .base import CovtraceError

# Categories a caller may downgrade from fatal to skip-with-warning.
ERROR_CATEGORIES = ("graph", "source", "gcov")


class TraceDataError(CovtraceError):
    """Base class for errors raised while reading or combining coverage data."""

    pass


class FormatError(TraceDataError):
    """Raised when a file does not follow its wire format.

    Covers bad magic numbers, truncated reads and framing that cannot be
    resolved. ``category`` names the ignore-policy bucket the error belongs to.
    """

    def __init__(self, filename: str, context: str, category: str = "graph"):
        super().__init__(
            f"Invalid {category} file: {filename}",
            details={"filename": str(filename), "context": context},
        )
        self.filename = filename
        self.context = context
        self.category = category


class IntegrityError(TraceDataError):
    """Raised when two sources disagree about the same data point.

    Never downgradable by policy.
    """

    def __init__(self, filename: str, reason: str, line: Optional[int] = None):
        location = f"{filename}:{line}" if line is not None else str(filename)
        details: Dict[str, str] = {"filename": str(filename), "reason": reason}
        if line is not None:
            details["line"] = str(line)
        super().__init__(f"Integrity violation at {location}: {reason}", details=details)
        self.filename = filename
        self.reason = reason
        self.line = line


class DataAbsentError(TraceDataError):
    """Raised when an operation leaves no usable coverage data."""

    def __init__(self, reason: str, filename: Optional[str] = None):
        details: Dict[str, str] = {"reason": reason}
        if filename is not None:
            details["filename"] = str(filename)

        super().__init__(f"No coverage data: {reason}", details=details)
        self.reason = reason
        self.filename = filename


class InputError(TraceDataError):
    """Raised when an input file cannot be read or understood."""

    def __init__(self, filename: str, reason: str):
        super().__init__(
            f"Cannot read input: {filename}",
            details={"filename": str(filename), "reason": reason},
        )
        self.filename = filename
        self.reason = reason


class DiffError(InputError):
    """Raised when a diff file contains no usable hunks."""

    pass
