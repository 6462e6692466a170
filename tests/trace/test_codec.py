"""Tests for the tracefile reader and writer."""

import gzip
import io
import logging

import pytest

from covtrace.config import TraceConfig
from covtrace.exceptions import DataAbsentError, IntegrityError, InputError
from covtrace.trace import (
    UNNAMED_BLOCK,
    RecordTag,
    TraceTotals,
    parse_trace,
    read_trace_file,
    serialize_trace,
    write_trace_file,
)


class TestRecordTag:
    def test_known_tags(self):
        assert RecordTag.classify("DA:1,2") is RecordTag.LINE_DATA
        assert RecordTag.classify("FNDA:1,main") is RecordTag.FUNCTION_DATA
        assert RecordTag.classify("end_of_record") is RecordTag.END_OF_RECORD

    def test_unknown_lines(self):
        assert RecordTag.classify("VER:2") is None
        assert RecordTag.classify("garbage") is None
        assert RecordTag.classify("end_of_record:") is None


class TestParseTrace:
    """Test reading tracefile text into a TraceModel."""

    def test_simple(self, simple_trace, branch_config):
        model = parse_trace(simple_trace, config=branch_config)

        tested = model["/src/app.c"]
        assert tested.tests == ["unit"]
        assert tested.lines == {3: 1, 4: 1, 5: 0, 10: 0, 11: 0}
        assert tested.function_lines == {"main": 3, "helper": 10}
        assert tested.functions == {"main": 1, "helper": 0}
        assert tested.branches.get(4, 0, 0).taken == 1
        assert tested.branches.get(4, 0, 1).taken is None
        assert model.totals == TraceTotals(5, 2, 2, 1, 2, 1)

    def test_branches_skipped_by_default(self, simple_trace):
        model = parse_trace(simple_trace)
        assert not model["/src/app.c"].branches

    def test_functions_skipped_when_disabled(self, simple_trace):
        model = parse_trace(simple_trace, config=TraceConfig(function_coverage=False))
        tested = model["/src/app.c"]
        assert tested.function_lines == {}
        assert tested.functions == {}

    def test_found_hit_statements_recomputed(self):
        text = "SF:/a.c\nDA:1,1\nDA:2,0\nLF:99\nLH:42\nend_of_record\n"
        model = parse_trace(text)
        assert model.totals.lines_found == 2
        assert model.totals.lines_hit == 1

    def test_missing_test_name_defaults_to_empty(self):
        model = parse_trace("SF:/a.c\nDA:1,1\nend_of_record\n")
        assert model["/a.c"].tests == [""]

    def test_repeated_records_add(self):
        text = (
            "TN:t\nSF:/a.c\nDA:1,1\nend_of_record\n"
            "TN:t\nSF:/a.c\nDA:1,2\nDA:2,0\nend_of_record\n"
        )
        model = parse_trace(text)
        assert model["/a.c"].test_lines["t"] == {1: 3, 2: 0}

    def test_negative_counts_clamped(self, caplog):
        text = "SF:/a.c\nFN:1,f\nFNDA:-5,f\nDA:1,-3\nend_of_record\n"

        with caplog.at_level(logging.WARNING, logger="covtrace"):
            model = parse_trace(text, "neg.info")

        assert model["/a.c"].lines == {1: 0}
        assert model["/a.c"].functions == {"f": 0}
        assert "negative counts found in tracefile neg.info" in caplog.text

    def test_test_name_sanitized(self, caplog):
        with caplog.at_level(logging.WARNING, logger="covtrace"):
            model = parse_trace("TN:my-test.1\nSF:/a.c\nDA:1,1\nend_of_record\n")

        assert model["/a.c"].tests == ["my_test_1"]
        assert "invalid characters removed" in caplog.text

    def test_checksum_mismatch(self):
        text = (
            "SF:/a.c\nDA:1,1,abc\nend_of_record\n"
            "SF:/a.c\nDA:1,1,xyz\nend_of_record\n"
        )
        with pytest.raises(IntegrityError, match="checksum mismatch"):
            parse_trace(text)

    def test_unnamed_branch_block(self, branch_config):
        model = parse_trace("SF:/a.c\nBRDA:1,-1,0,4\nDA:1,1\nend_of_record\n", config=branch_config)
        record = next(iter(model["/a.c"].branches))
        assert record.block == UNNAMED_BLOCK
        assert record.is_unnamed

    def test_unsigned_unnamed_block(self, branch_config):
        model = parse_trace(
            "SF:/a.c\nBRDA:1,4294967295,0,1\nDA:1,1\nend_of_record\n", config=branch_config
        )
        record = next(iter(model["/a.c"].branches))
        assert record.is_unnamed

        out = io.StringIO()
        serialize_trace(model, out)
        assert "BRDA:1,-1,0,1\n" in out.getvalue()

    def test_unrecognized_lines_skipped(self):
        model = parse_trace("VER:3\nSF:/a.c\nnoise\nDA:x,y\nDA:1,1\nend_of_record\n")
        assert model["/a.c"].lines == {1: 1}

    def test_file_without_lines_dropped(self):
        model = parse_trace(
            "SF:/empty.c\nFN:1,f\nend_of_record\nSF:/a.c\nDA:1,1\nend_of_record\n"
        )
        assert list(model) == ["/a.c"]

    def test_empty_input(self):
        with pytest.raises(DataAbsentError):
            parse_trace("TN:t\n", "empty.info")


class TestSerializeTrace:
    """Test writing TraceModels as tracefile text."""

    def test_record_layout(self, simple_trace, branch_config):
        model = parse_trace(simple_trace, config=branch_config)
        out = io.StringIO()

        serialize_trace(model, out)

        lines = out.getvalue().splitlines()
        assert lines[:2] == ["TN:unit", "SF:/src/app.c"]
        assert lines[2:4] == ["FN:3,main", "FN:10,helper"]
        assert "FNF:2" in lines and "FNH:1" in lines
        assert "BRDA:4,0,1,-" in lines
        assert lines[-3:] == ["LF:5", "LH:2", "end_of_record"]

    def test_no_branch_totals_without_branches(self, simple_trace):
        out = io.StringIO()
        serialize_trace(parse_trace(simple_trace), out)
        assert "BRF:" not in out.getvalue()

    def test_written_totals(self, simple_trace, branch_config):
        model = parse_trace(simple_trace, config=branch_config)
        assert serialize_trace(model, io.StringIO()) == model.totals

    def test_totals_survive_reparse(self, simple_trace, second_trace, branch_config):
        model = parse_trace(simple_trace + second_trace, config=branch_config)
        out = io.StringIO()

        serialize_trace(model, out)
        reparsed = parse_trace(out.getvalue(), config=branch_config)

        assert reparsed.totals == model.totals
        assert reparsed["/src/app.c"].tests == ["integration", "unit"]

    def test_checksums_written_on_request(self):
        model = parse_trace("SF:/a.c\nDA:1,1,abc\nend_of_record\n")

        plain = io.StringIO()
        serialize_trace(model, plain)
        with_checksums = io.StringIO()
        serialize_trace(model, with_checksums, checksum=True)

        assert "DA:1,1\n" in plain.getvalue()
        assert "DA:1,1,abc\n" in with_checksums.getvalue()


class TestTraceFiles:
    def test_write_and_read(self, tmp_path, simple_trace):
        path = tmp_path / "out.info"
        totals = write_trace_file(parse_trace(simple_trace), path)

        assert read_trace_file(path).totals == totals

    def test_gzip_detected(self, tmp_path, simple_trace):
        path = tmp_path / "trace.info.gz"
        path.write_bytes(gzip.compress(simple_trace.encode("utf-8")))

        model = read_trace_file(path)

        assert list(model) == ["/src/app.c"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputError):
            read_trace_file(tmp_path / "nope.info")
