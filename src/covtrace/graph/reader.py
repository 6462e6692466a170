"""Word-level access to graph file contents.

``WordReader`` wraps the raw bytes of one file with a fixed byte order and a
cursor. ``DecodeSession`` carries the state a single decode call learns about
its file (compiler version, checksum layout) and is handed to
every record reader; nothing is cached beyond one session.
"""

import struct
from dataclasses import dataclass
from typing import Optional

from ..exceptions import FormatError

WORD_SIZE = 4


class WordReader:
    """Sequential reader of 32-bit words in a fixed byte order."""

    def __init__(self, data: bytes, filename: str, byte_order: str = ">"):
        self.data = data
        self.filename = filename
        self.pos = 0
        self._word = struct.Struct(byte_order + "I")

    def at_end(self) -> bool:
        return self.pos >= len(self.data)

    def read_bytes(self, length: int, what: str) -> bytes:
        if length < 0 or self.pos + length > len(self.data):
            raise FormatError(self.filename, f"reached unexpected end of file reading {what}")
        chunk = self.data[self.pos : self.pos + length]
        self.pos += length
        return chunk

    def read_word(self, what: str) -> int:
        return self._word.unpack(self.read_bytes(WORD_SIZE, what))[0]

    def peek_word(self, what: str) -> int:
        value = self.read_word(what)
        self.pos -= WORD_SIZE
        return value

    def skip(self, length: int, what: str) -> None:
        self.read_bytes(length, what)

    def seek(self, pos: int) -> None:
        self.pos = pos

    def read_padded_string(self, length: int, what: str) -> str:
        """Read ``length`` bytes plus padding to a word boundary, NULs stripped."""
        raw = self.read_bytes(length, what)
        pad = -length % WORD_SIZE
        if pad:
            self.skip(pad, f"{what} padding")
        return raw.replace(b"\0", b"").decode("utf-8", errors="surrogateescape")


@dataclass
class DecodeSession:
    """Per-file decoding context.

    ``split_checksum_override`` comes from configuration; ``split_checksum``
    is filled in lazily the first time a function record needs it.
    """

    filename: str
    version: int = 0
    split_checksum_override: Optional[bool] = None
    split_checksum: Optional[bool] = None
