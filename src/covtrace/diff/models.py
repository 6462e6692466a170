"""Data models for diff remapping -- per-file line maps and renames."""

from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass
class LineMap:
    """Correspondence between the new and the old version of one file.

    ``mapping`` holds new line -> old line for every line present in both
    versions up to the end of the last hunk. Old lines past the last entry
    moved by the constant offset of that entry.
    """

    mapping: Dict[int, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._reverse = {old: new for new, old in self.mapping.items()}

    @property
    def last_new(self) -> int:
        return max(self.mapping) if self.mapping else 0

    @property
    def last_old(self) -> int:
        return self.mapping[self.last_new] if self.mapping else 0

    @property
    def offset(self) -> int:
        return self.last_new - self.last_old

    def map_old(self, line: int) -> Optional[int]:
        """Return the new line number of old ``line``, or None if it was deleted."""
        new = self._reverse.get(line)
        if new is not None:
            return new
        if line > self.last_old:
            return line + self.offset
        return None


@dataclass
class DiffData:
    """Everything remapping needs from one unified diff.

    ``files`` is keyed by the new path of each changed file; ``renames`` maps
    old paths (files and directories) to new ones.
    """

    files: Dict[str, LineMap] = field(default_factory=dict)
    renames: Dict[str, str] = field(default_factory=dict)
