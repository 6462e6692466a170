"""Decoder for the ``.bbg`` graph generation.

Big-endian throughout. After the magic and a version word the file is a
sequence of ``(tag, length)`` records. Only FUNCTION and LINES records are
interpreted; anything else is skipped by its byte length.
"""

import logging
from typing import Optional

from ..exceptions import FormatError
from .models import GraphBuilder, RecordTag
from .reader import WordReader

logger = logging.getLogger(__name__)

BBG_FILE_MAGIC = 0x67626267  # "gbbg"


def _read_string(reader: WordReader) -> str:
    length = reader.read_word("string length")
    if length == 0:
        return ""
    return reader.read_padded_string(length, "string")


def read_lines_record(
    reader: WordReader,
    builder: GraphBuilder,
    function: Optional[str],
    read_string,
) -> None:
    """Read a LINES record body shared by bbg and gcno.

    Layout: block index (discarded), then line numbers interleaved with
    ``0 <filename>`` markers, ended by an empty filename.
    """
    reader.skip(4, "basic block index")
    source = None
    while True:
        line = reader.read_word("line number")
        if line == 0:
            name = read_string(reader)
            if name == "":
                return
            source = name
            continue
        if source is None or function is None:
            logger.warning("%s: unassigned line number %d", reader.filename, line)
            continue
        builder.add_line(function, source, line)


def decode_bbg(data: bytes, filename: str, builder: GraphBuilder) -> None:
    """Feed the contents of a ``.bbg`` file into ``builder``."""
    reader = WordReader(data, filename, ">")

    if reader.read_word("file magic") != BBG_FILE_MAGIC:
        raise FormatError(filename, "found unrecognized bbg file magic")
    reader.skip(4, "version")

    function = None
    while not reader.at_end():
        tag = RecordTag.classify(reader.read_word("record tag"))
        length = reader.read_word("record length")

        if tag is RecordTag.FUNCTION:
            function = _read_string(reader)
            reader.skip(4, "function checksum")
        elif tag is RecordTag.LINES:
            read_lines_record(reader, builder, function, _read_string)
        else:
            reader.skip(length, "unhandled record")
