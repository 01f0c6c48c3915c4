"""Tests for header unification and source summaries."""

from table_merger.normalize import NormalizedIndex, normalize_column_name
from table_merger.schema_utils import (
    common_columns,
    find_header_mismatches,
    summarize_sources,
    unify_headers,
)


class TestNormalize:
    def test_trim_and_lowercase(self):
        assert normalize_column_name("  Name ") == "name"
        assert normalize_column_name(None) == ""

    def test_index_is_case_insensitive(self):
        index = NormalizedIndex()
        assert index.add("City", 0)
        assert not index.add(" city ", 1)
        assert index.get("CITY") == 0
        assert "cItY" in index
        assert len(index) == 1


class TestUnifyHeaders:
    def test_first_casing_wins_and_provenance_is_last(self):
        header, _ = unify_headers([["Name", "Age"], ["name", "City"]])
        assert header == ("Name", "Age", "City", "Source File")

    def test_surrounding_whitespace_collapses(self):
        header, positions = unify_headers([[" Name ", "Age"], ["name"]], include_provenance=False)
        assert header == (" Name ", "Age")
        assert positions.get("NAME") == 0

    def test_without_provenance(self):
        header, _ = unify_headers([["a"], ["b", "A"]], include_provenance=False)
        assert header == ("a", "b")

    def test_custom_provenance_column(self):
        header, positions = unify_headers([["a"]], provenance_column="Origin")
        assert header == ("a", "Origin")
        assert positions.get("origin") == 1

    def test_provenance_name_is_reserved(self):
        header, _ = unify_headers([["source file", "x"]])
        assert header == ("x", "Source File")

    def test_zero_column_source_contributes_nothing(self):
        header, _ = unify_headers([[], ["a"], []], include_provenance=False)
        assert header == ("a",)

    def test_no_headers(self):
        header, _ = unify_headers([])
        assert header == ("Source File",)


class TestSourceSummaries:
    def test_common_columns_follow_first_source(self, make_source):
        sources = [
            make_source("a.csv", ["ID", "Name", "Age"]),
            make_source("b.csv", ["name", "id"]),
        ]
        assert common_columns(sources) == ["ID", "Name"]

    def test_common_columns_empty(self, make_source):
        assert common_columns([]) == []
        assert common_columns([make_source("a.csv", ["x"]), make_source("b.csv", ["y"])]) == []

    def test_header_mismatches(self, make_source):
        sources = [
            make_source("a.csv", ["id", "name"]),
            make_source("b.csv", ["ID", " Name"]),
            make_source("c.csv", ["name", "id"]),
        ]
        assert find_header_mismatches(sources) == ["c.csv"]

    def test_summary_totals(self, make_source):
        sources = [
            make_source("a.csv", ["id"], [("1",), ("2",)]),
            make_source("b.xlsx [Data]", ["id", "x", "y"], [("3", "", "")], sheet_label="Data"),
        ]
        summary = summarize_sources(sources)
        assert summary["file_count"] == 2
        assert summary["total_rows"] == 3
        assert summary["max_columns"] == 3
        assert summary["files"][1]["sheet"] == "Data"
        assert summary["files"][0]["header"] == ["id"]
