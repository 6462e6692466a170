"""Shared test fixtures for covtrace."""

import logging
import struct

import pytest


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def reset_covtrace_logger():
    """CLI runs configure the covtrace logger; undo that between tests."""
    yield
    logger = logging.getLogger("covtrace")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ── Graph file builders ─────────────────────────────────────────────────────

FUNCTION_TAG = 0x01000000
LINES_TAG = 0x01450000


class GcnoWriter:
    """Builds .gcno bytes for a given compiler version string such as "407*"."""

    def __init__(self, version: str = "407*", byte_order: str = ">"):
        self.version_word = int.from_bytes(version.encode("ascii"), "big")
        head = version[0]
        major = int(head) if head.isdigit() else ord(head) - ord("A") + 10
        self.major = major
        self.minor = int(version[1:3])
        self.order = byte_order

    def at_least(self, major: int, minor: int = 0) -> bool:
        return (self.major, self.minor) >= (major, minor)

    def word(self, value: int) -> bytes:
        return struct.pack(self.order + "I", value)

    def string(self, text: str) -> bytes:
        if not text:
            return self.word(0)
        raw = text.encode("utf-8") + b"\0"
        padded = raw + b"\0" * (-len(raw) % 4)
        length = len(raw) if self.at_least(13) else len(padded) // 4
        return self.word(length) + padded

    def record(self, tag: int, body: bytes, length=None) -> bytes:
        if length is None:
            length = len(body) if self.at_least(12) else len(body) // 4
        return self.word(tag) + self.word(length) + body

    def function(
        self,
        name: str,
        source: str,
        line: int,
        artificial: bool = False,
        split: bool = True,
        cfg_checksum: int = 0xDEADBEEF,
    ) -> bytes:
        body = self.word(1) + self.word(0x1234)
        if split:
            body += self.word(cfg_checksum)
        body += self.string(name)
        if self.at_least(8):
            body += self.word(1 if artificial else 0)
        body += self.string(source)
        body += self.word(line)
        if self.at_least(8):
            body += self.word(0) + self.word(line + 10)
        return self.record(FUNCTION_TAG, body)

    def lines_body(self, *groups) -> bytes:
        body = self.word(0)
        for source, numbers in groups:
            body += self.word(0) + self.string(source)
            for number in numbers:
                body += self.word(number)
        return body + self.word(0) + self.string("")

    def lines(self, *groups) -> bytes:
        """LINES record; each group is ``(source, [line, ...])``."""
        return self.record(LINES_TAG, self.lines_body(*groups))

    def header(self) -> bytes:
        data = self.word(0x67636E6F) + self.word(self.version_word) + self.word(0xCAFE)
        if self.at_least(12):
            data += self.word(0)
        if self.at_least(9):
            data += self.string("/build")
        if self.at_least(8):
            data += self.word(0)
        return data

    def build(self, *records: bytes) -> bytes:
        return self.header() + b"".join(records)


class BbgWriter:
    """Builds big-endian .bbg bytes."""

    def word(self, value: int) -> bytes:
        return struct.pack(">I", value)

    def string(self, text: str) -> bytes:
        if not text:
            return self.word(0)
        raw = text.encode("utf-8")
        return self.word(len(raw)) + raw + b"\0" * (-len(raw) % 4)

    def function(self, name: str) -> bytes:
        body = self.string(name) + self.word(0x1234)
        return self.word(FUNCTION_TAG) + self.word(len(body)) + body

    def lines(self, *groups) -> bytes:
        body = self.word(0)
        for source, numbers in groups:
            body += self.word(0) + self.string(source)
            for number in numbers:
                body += self.word(number)
        body += self.word(0) + self.string("")
        return self.word(LINES_TAG) + self.word(len(body)) + body

    def other(self, payload: bytes = b"\0" * 8) -> bytes:
        return self.word(0x01410000) + self.word(len(payload)) + payload

    def build(self, *records: bytes) -> bytes:
        return self.word(0x67626267) + self.word(1) + b"".join(records)


class BbWriter:
    """Builds native-endian .bb word streams."""

    FILENAME = 0x80000001
    FUNCTION = 0x80000002

    def word(self, value: int) -> bytes:
        return struct.pack("=I", value)

    def _string(self, sentinel: int, text: str) -> bytes:
        raw = text.encode("utf-8")
        raw += b"\0" * (-len(raw) % 4)
        return self.word(sentinel) + raw + self.word(sentinel)

    def function(self, name: str) -> bytes:
        return self._string(self.FUNCTION, name)

    def filename(self, name: str) -> bytes:
        return self._string(self.FILENAME, name)

    def lines(self, *numbers: int) -> bytes:
        return b"".join(self.word(n) for n in numbers) + self.word(0)

    def build(self, *parts: bytes) -> bytes:
        return b"".join(parts)


@pytest.fixture
def gcno():
    """Factory for gcno writers: ``gcno("B03*", "<")``."""
    return GcnoWriter


@pytest.fixture
def bbg():
    return BbgWriter()


@pytest.fixture
def bb():
    return BbWriter()


# ── Tracefile samples ───────────────────────────────────────────────────────

@pytest.fixture
def simple_trace():
    """One file, one test, two functions, one branch pair."""
    return (
        "TN:unit\n"
        "SF:/src/app.c\n"
        "FN:3,main\n"
        "FN:10,helper\n"
        "FNDA:1,main\n"
        "FNDA:0,helper\n"
        "FNF:2\n"
        "FNH:1\n"
        "BRDA:4,0,0,1\n"
        "BRDA:4,0,1,-\n"
        "BRF:2\n"
        "BRH:1\n"
        "DA:3,1\n"
        "DA:4,1\n"
        "DA:5,0\n"
        "DA:10,0\n"
        "DA:11,0\n"
        "LF:5\n"
        "LH:2\n"
        "end_of_record\n"
    )


@pytest.fixture
def second_trace():
    """Same file as ``simple_trace`` hit by another test, plus a second file."""
    return (
        "TN:integration\n"
        "SF:/src/app.c\n"
        "FN:3,main\n"
        "FN:10,helper\n"
        "FNDA:2,main\n"
        "FNDA:1,helper\n"
        "BRDA:4,0,0,2\n"
        "BRDA:4,0,1,1\n"
        "DA:3,2\n"
        "DA:4,2\n"
        "DA:5,0\n"
        "DA:10,1\n"
        "DA:11,1\n"
        "end_of_record\n"
        "TN:integration\n"
        "SF:/src/util.c\n"
        "FN:1,util\n"
        "FNDA:0,util\n"
        "DA:1,0\n"
        "DA:2,0\n"
        "end_of_record\n"
    )


@pytest.fixture
def branch_config():
    from covtrace.config import TraceConfig

    return TraceConfig(branch_coverage=True)
