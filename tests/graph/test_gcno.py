"""Tests for the .gcno decoder."""

import logging

import pytest

from covtrace.exceptions import FormatError
from covtrace.graph import GraphFormat, convert_gcc_version, decode_graph
from covtrace.graph.gcno import detect_byte_order


class TestConvertGccVersion:
    """Test packed version word decoding."""

    def test_digit_major(self):
        assert convert_gcc_version(int.from_bytes(b"407*", "big")) == 0x040700

    def test_letter_major(self):
        """Letters count from 10 at "A"."""
        assert convert_gcc_version(int.from_bytes(b"B03*", "big")) == 0x0B0300

    def test_two_digit_minor(self):
        assert convert_gcc_version(int.from_bytes(b"312*", "big")) == 0x030C00


class TestByteOrder:
    """The magic decides the byte order of the whole file."""

    def test_big_endian(self, gcno):
        assert detect_byte_order(gcno("407*", ">").header(), "x.gcno") == ">"

    def test_little_endian(self, gcno):
        assert detect_byte_order(gcno("407*", "<").header(), "x.gcno") == "<"

    def test_bad_magic(self):
        with pytest.raises(FormatError, match="magic"):
            detect_byte_order(b"oops", "x.gcno")

    def test_too_short(self):
        with pytest.raises(FormatError, match="unexpected end of file"):
            detect_byte_order(b"gc", "x.gcno")


class TestDecodeGcno:
    """Test decoding of complete files across versions."""

    @pytest.mark.parametrize("version", ["407*", "B03*", "C01*", "D01*"])
    @pytest.mark.parametrize("order", [">", "<"])
    def test_single_function(self, gcno, version, order):
        w = gcno(version, order)
        data = w.build(
            w.function("main", "/src/a.c", 3),
            w.lines(("/src/a.c", [3, 4, 5])),
        )

        instr, graph = decode_graph(data, GraphFormat.GCNO, "a.gcno")

        assert instr == {"/src/a.c": [3, 4, 5]}
        assert graph == {"/src/a.c": {"main": [3, 4, 5]}}

    def test_lines_sorted_and_unique(self, gcno):
        w = gcno("B03*")
        data = w.build(
            w.function("main", "/src/a.c", 3),
            w.lines(("/src/a.c", [5, 3])),
            w.lines(("/src/a.c", [4, 5])),
        )

        _, graph = decode_graph(data, GraphFormat.GCNO)

        assert graph["/src/a.c"]["main"] == [3, 4, 5]

    def test_zero_start_line_not_recorded(self, gcno):
        w = gcno("407*")
        data = w.build(
            w.function("main", "/src/a.c", 0),
            w.lines(("/src/a.c", [7])),
        )

        instr, _ = decode_graph(data, GraphFormat.GCNO)

        assert instr == {"/src/a.c": [7]}

    def test_artificial_function_excluded(self, gcno):
        w = gcno("B03*")
        data = w.build(
            w.function("main", "/src/a.c", 3),
            w.lines(("/src/a.c", [3, 4])),
            w.function("_GLOBAL__sub_I_main", "/src/a.c", 20, artificial=True),
            w.lines(("/src/a.c", [20, 21])),
        )

        instr, graph = decode_graph(data, GraphFormat.GCNO)

        assert graph == {"/src/a.c": {"main": [3, 4]}}
        assert instr == {"/src/a.c": [3, 4]}

    def test_unknown_records_skipped(self, gcno):
        w = gcno("407*")
        arcs = w.record(0x01430000, w.word(0) + w.word(1) + w.word(0))
        data = w.build(
            w.function("main", "/src/a.c", 3),
            arcs,
            w.lines(("/src/a.c", [3])),
        )

        _, graph = decode_graph(data, GraphFormat.GCNO)

        assert graph == {"/src/a.c": {"main": [3]}}

    def test_record_past_end_warns_and_keeps_data(self, gcno, caplog):
        w = gcno("407*")
        body = w.lines_body(("/src/a.c", [3, 4]))
        data = w.build(
            w.function("main", "/src/a.c", 3),
            w.record(0x01450000, body, length=len(body) // 4 + 10),
        )

        with caplog.at_level(logging.WARNING, logger="covtrace"):
            instr, _ = decode_graph(data, GraphFormat.GCNO, "a.gcno")

        assert instr == {"/src/a.c": [3, 4]}
        assert "past end of file" in caplog.text

    def test_record_cut_short_by_end_of_file_warns(self, gcno, caplog):
        """The last record claims more bytes than remain and its body stops mid-string."""
        w = gcno("407*")
        body = w.lines_body(("/src/a.c", [3, 4]))[:8]
        data = w.build(
            w.function("main", "/src/a.c", 3),
            w.record(0x01450000, body, length=len(body) // 4 + 10),
        )

        with caplog.at_level(logging.WARNING, logger="covtrace"):
            instr, graph = decode_graph(data, GraphFormat.GCNO, "a.gcno")

        assert instr == {"/src/a.c": [3]}
        assert graph == {"/src/a.c": {"main": [3]}}
        assert "past end of file" in caplog.text

    def test_truncated_function_record_dropped(self, gcno, caplog):
        w = gcno("407*")
        data = w.build(w.function("main", "/src/a.c", 3))[:-6]

        with caplog.at_level(logging.WARNING, logger="covtrace"):
            instr, graph = decode_graph(data, GraphFormat.GCNO, "a.gcno")

        assert instr == {}
        assert graph == {}
        assert "past end of file" in caplog.text

    def test_truncated_record_header(self, gcno):
        w = gcno("407*")
        data = w.build(w.function("main", "/src/a.c", 3)) + b"\x01\x00"

        with pytest.raises(FormatError, match="unexpected end of file reading record tag"):
            decode_graph(data, GraphFormat.GCNO, "a.gcno")

    def test_bad_magic(self):
        with pytest.raises(FormatError):
            decode_graph(b"\0" * 16, GraphFormat.GCNO)


class TestSplitChecksum:
    """Checksum layout of function records before 4.7."""

    def test_old_layout_without_split(self, gcno):
        w = gcno("304*")
        data = w.build(
            w.function("main", "/src/a.c", 3, split=False),
            w.lines(("/src/a.c", [3, 4])),
        )

        _, graph = decode_graph(data, GraphFormat.GCNO)

        assert graph == {"/src/a.c": {"main": [3, 4]}}

    def test_split_layout_detected(self, gcno):
        """A large checksum cannot be a name length that fits the record."""
        w = gcno("304*")
        data = w.build(
            w.function("main", "/src/a.c", 3, split=True),
            w.lines(("/src/a.c", [3, 4])),
        )

        _, graph = decode_graph(data, GraphFormat.GCNO)

        assert graph == {"/src/a.c": {"main": [3, 4]}}

    def test_override_forces_split(self, gcno):
        """A small checksum fools the heuristic; the override does not."""
        w = gcno("304*")
        data = w.build(
            w.function("main", "/src/a.c", 3, split=True, cfg_checksum=1),
            w.lines(("/src/a.c", [3, 4])),
        )

        _, graph = decode_graph(data, GraphFormat.GCNO, split_checksum=True)

        assert graph == {"/src/a.c": {"main": [3, 4]}}

    def test_override_ignored_from_4_7(self, gcno):
        w = gcno("407*")
        data = w.build(
            w.function("main", "/src/a.c", 3, split=True),
            w.lines(("/src/a.c", [3])),
        )

        _, graph = decode_graph(data, GraphFormat.GCNO, split_checksum=False)

        assert graph == {"/src/a.c": {"main": [3]}}
