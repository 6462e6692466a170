"""Decoder for the oldest graph generation: the ``.bb`` word stream.

The file is a flat stream of native-endian 32-bit words. Two sentinel words
announce a string, which runs until the same sentinel repeats:

    0x80000001 <words...> 0x80000001   source file name
    0x80000002 <words...> 0x80000002   function name

Any other positive word is a line number belonging to the current
(function, file) pair; 0 ends a basic block list.
"""

import logging

import numpy as np

from ..exceptions import FormatError
from .models import GraphBuilder

logger = logging.getLogger(__name__)

BB_FILENAME = 0x80000001
BB_FUNCTION = 0x80000002
BB_ENDOFLIST = 0


def _words_to_string(words: np.ndarray) -> str:
    return words.tobytes().replace(b"\0", b"").decode("utf-8", errors="surrogateescape")


def decode_bb(data: bytes, filename: str, builder: GraphBuilder) -> None:
    """Feed the contents of a ``.bb`` file into ``builder``."""
    if len(data) % 4:
        raise FormatError(filename, "reached unexpected end of file reading data word")

    words = np.frombuffer(data, dtype=np.uint32)
    count = len(words)
    function = None
    source = None
    i = 0

    while i < count:
        value = int(words[i])
        i += 1

        if value in (BB_FILENAME, BB_FUNCTION):
            closing = np.flatnonzero(words[i:] == value)
            if not len(closing):
                what = "filename" if value == BB_FILENAME else "function name"
                raise FormatError(filename, f"reached unexpected end of file reading {what}")
            end = i + int(closing[0])
            text = _words_to_string(words[i:end])
            i = end + 1
            if value == BB_FILENAME:
                source = text
            else:
                function = text
        elif value == BB_ENDOFLIST or value & 0x80000000:
            continue
        elif function is not None and source is not None:
            builder.add_line(function, source, value)
        else:
            logger.debug("%s: line %d outside of a function, ignored", filename, value)
