"""Tests for the coverage database models."""

from covtrace.trace import BranchRecord, BranchVector, TestedFile, TraceTotals, sanitize_test_name
from covtrace.trace.models import add_taken


class TestHelpers:
    def test_sanitize_test_name(self):
        assert sanitize_test_name("suite/case-1") == "suite_case_1"
        assert sanitize_test_name("ok_name") == "ok_name"

    def test_add_taken(self):
        assert add_taken(None, None) is None
        assert add_taken(None, 0) == 0
        assert add_taken(2, None) == 2
        assert add_taken(2, 3) == 5


class TestBranchVector:
    def test_add_same_key_sums(self):
        vector = BranchVector([BranchRecord(1, 0, 0, 2), BranchRecord(1, 0, 0, 3)])
        assert len(vector) == 1
        assert vector.get(1, 0, 0).taken == 5

    def test_iterates_in_key_order(self):
        vector = BranchVector([BranchRecord(9, 0, 0, 1), BranchRecord(2, 1, 0, 1), BranchRecord(2, 0, 1, 1)])
        assert [r.key for r in vector] == [(2, 0, 1), (2, 1, 0), (9, 0, 0)]

    def test_found_and_hit(self):
        vector = BranchVector([BranchRecord(1, 0, 0, 0), BranchRecord(1, 0, 1, None), BranchRecord(1, 0, 2, 4)])
        assert vector.found == 3
        assert vector.hit == 1

    def test_remap_drops_unmapped(self):
        vector = BranchVector([BranchRecord(1, 0, 0, 1), BranchRecord(5, 0, 0, 2)])
        remapped = vector.remap(lambda line: None if line == 1 else line + 10)
        assert list(remapped) == [BranchRecord(15, 0, 0, 2)]


class TestTestedFile:
    def test_aggregates_from_tests(self):
        tested = TestedFile(path="/a.c")
        tested.function_lines = {"f": 1, "g": 5}
        tested.test_lines = {"a": {1: 1, 2: 0}, "b": {1: 2}}
        tested.test_functions = {"a": {"f": 1}}
        tested.recompute_aggregates()

        assert tested.lines == {1: 3, 2: 0}
        assert tested.functions == {"f": 1, "g": 0}
        assert tested.totals == TraceTotals(2, 1, 2, 1, 0, 0)

    def test_prune_empty_tests(self):
        tested = TestedFile(path="/a.c")
        tested.test_lines = {"a": {1: 1}, "b": {}}
        tested.test_functions = {"b": {"f": 1}}
        tested.prune_empty_tests()

        assert tested.tests == ["a"]
