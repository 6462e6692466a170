"""Base exception for covtrace."""

from typing import Dict, Optional


class CovtraceError(Exception):
    """Base exception for all covtrace errors.

    ``details`` carries machine-readable context (file names, line numbers,
    reasons). ``str()`` appends only the details the message does not
    already spell out.
    """

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def extra_details(self) -> Dict[str, str]:
        return {k: v for k, v in self.details.items() if v and v not in self.message}

    def __str__(self) -> str:
        extra = self.extra_details()
        if not extra:
            return self.message
        return "{} ({})".format(self.message, "; ".join(f"{k}: {v}" for k, v in extra.items()))
