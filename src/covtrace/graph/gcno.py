"""Decoder for the current graph generation: ``.gcno`` notes files.

Layout::

    magic   "gcno" in the writer's byte order
    version packed compiler version, see ``convert_gcc_version``
    stamp   (and, depending on version: checksum, cwd, unexecuted flag)
    records (tag, length, body...) until end of file

The byte order is fixed by whichever reading of the magic matches. Record
bodies are read field by field, but the cursor always resynchronizes on the
declared record length afterwards.
"""

import logging
import struct

from ..exceptions import FormatError
from .bbg import read_lines_record
from .models import GraphBuilder, RecordTag
from .reader import DecodeSession, WordReader

logger = logging.getLogger(__name__)

GCNO_FILE_MAGIC = 0x67636E6F  # "gcno"

GCOV_VERSION_4_7_0 = 0x040700
GCOV_VERSION_8_0_0 = 0x080000
GCOV_VERSION_9_0_0 = 0x090000
GCOV_VERSION_12_0_0 = 0x0C0000
GCOV_VERSION_13_0_0 = 0x0D0000


def convert_gcc_version(word: int) -> int:
    """Unpack a version word into ``major << 16 | minor << 8``.

    The word holds three characters, most significant first: the major
    version as a digit (or a letter counting from 10 at "A"), then the minor
    version as two decimal digits. "407*" is 4.7, "B03*" is 11.3.
    """
    a = (word >> 24) & 0xFF
    b = (word >> 16) & 0xFF
    c = (word >> 8) & 0xFF
    if a >= ord("A"):
        major = a - ord("A") + 10
    else:
        major = a - ord("0")
    minor = (b - ord("0")) * 10 + (c - ord("0"))
    return (major << 16) | (minor << 8)


def detect_byte_order(data: bytes, filename: str) -> str:
    """Return the struct byte order prefix under which the magic matches."""
    if len(data) < 4:
        raise FormatError(filename, "reached unexpected end of file reading file magic")
    for order in ("<", ">"):
        if struct.unpack(order + "I", data[:4])[0] == GCNO_FILE_MAGIC:
            return order
    raise FormatError(filename, "found unrecognized gcno file magic")


def _read_string(reader: WordReader, session: DecodeSession) -> str:
    length = reader.read_word("string length")
    if length == 0:
        return ""
    if session.version < GCOV_VERSION_13_0_0:
        length *= 4
    return reader.read_padded_string(length, "string")


def _uses_split_checksum(reader: WordReader, session: DecodeSession, record_bytes: int) -> bool:
    if session.split_checksum is None:
        session.split_checksum = _detect_split_checksum(reader, session, record_bytes)
    return session.split_checksum


def _detect_split_checksum(reader: WordReader, session: DecodeSession, record_bytes: int) -> bool:
    """Decide the function record checksum layout for this file.

    Before 4.7 the next word is the function name length, which must fit in
    the record. A split layout puts a checksum there instead, usually with
    high-order bits set, which would overrun the record as a length.
    """
    if session.version >= GCOV_VERSION_4_7_0:
        return True
    if session.split_checksum_override is not None:
        return session.split_checksum_override

    strlen = reader.peek_word("function name length")
    if strlen * 4 >= record_bytes - 12:
        logger.info("%s: auto-detected split function checksums", session.filename)
        return True
    return False


def _read_function_record(
    reader: WordReader,
    session: DecodeSession,
    builder: GraphBuilder,
    record_bytes: int,
) -> str:
    reader.skip(8, "function ident and checksum")
    if _uses_split_checksum(reader, session, record_bytes):
        reader.skip(4, "function cfg checksum")

    function = _read_string(reader, session)
    artificial = False
    if session.version >= GCOV_VERSION_8_0_0:
        artificial = reader.read_word("compiler-generated entity flag") != 0
    source = _read_string(reader, session)
    line = reader.read_word("initial line number")
    if session.version >= GCOV_VERSION_8_0_0:
        reader.skip(4, "column number")
        reader.skip(4, "ending line number")

    if line:
        builder.add_line(function, source, line)
    if artificial:
        builder.mark_artificial(function)
    return function


def _read_header(reader: WordReader, session: DecodeSession) -> None:
    session.version = convert_gcc_version(reader.read_word("compiler version"))
    logger.debug("%s: compiler version 0x%06x", session.filename, session.version)

    reader.skip(4, "file timestamp")
    if session.version >= GCOV_VERSION_12_0_0:
        reader.skip(4, "file checksum")
    if session.version >= GCOV_VERSION_9_0_0:
        _read_string(reader, session)
    if session.version >= GCOV_VERSION_8_0_0:
        reader.skip(4, "unexecuted blocks flag")


def decode_gcno(data: bytes, session: DecodeSession, builder: GraphBuilder) -> None:
    """Feed the contents of a ``.gcno`` file into ``builder``."""
    reader = WordReader(data, session.filename, detect_byte_order(data, session.filename))
    reader.skip(4, "file magic")
    _read_header(reader, session)

    def read_string(r: WordReader) -> str:
        return _read_string(r, session)

    function = None
    while not reader.at_end():
        tag = RecordTag.classify(reader.read_word("record tag"))
        length = reader.read_word("record length")
        record_bytes = length if session.version >= GCOV_VERSION_12_0_0 else length * 4
        next_pos = reader.pos + record_bytes
        overrun = next_pos > len(data)

        try:
            if tag is RecordTag.FUNCTION:
                function = _read_function_record(reader, session, builder, record_bytes)
            elif tag is RecordTag.LINES:
                read_lines_record(reader, builder, function, read_string)
        except FormatError:
            # A record cut short by the end of file keeps what was read.
            if not overrun:
                raise

        if overrun:
            logger.warning(
                "%s: record extends past end of file, ignoring remaining data",
                session.filename,
            )
            break
        reader.seek(next_pos)
