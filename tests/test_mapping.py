"""Tests for the join column mapping."""

import pandas as pd

from table_merger.mapping import DROP, MAPPING_TABLE_HEADERS, ColumnMapping, identity_mapping_rows


class TestColumnMapping:
    def test_lookup_miss_passes_column_through(self):
        mapping = ColumnMapping([(0, "a", "A")])
        assert mapping.resolve(0, "a") == "A"
        assert mapping.resolve(1, "a") == "a"
        assert mapping.resolve(0, "b") == "b"

    def test_column_names_are_normalized(self):
        mapping = ColumnMapping([(0, " Name ", "Full Name")])
        assert mapping.resolve(0, "NAME") == "Full Name"

    def test_target_header_dedupes_ignoring_case(self):
        mapping = ColumnMapping([(0, "id", "Key"), (1, "ID", "key"), (0, "v", "Value")])
        assert mapping.target_header() == ("Key", "Value")

    def test_later_entry_replaces_output_in_header(self):
        mapping = ColumnMapping([(0, "a", "Old"), (0, "a", "New")])
        assert mapping.target_header() == ("New",)
        assert mapping.resolve(0, "a") == "New"

    def test_dropped_column_has_no_target(self):
        mapping = ColumnMapping([(0, "id", "id"), (1, "name", "Name")])
        mapping.drop(1, "Name")
        assert mapping.resolve(1, "name") is DROP
        assert mapping.target_header() == ("id",)

    def test_empty_mapping_is_falsy(self):
        assert not ColumnMapping()
        assert len(ColumnMapping([(0, "a", "b")])) == 1


class TestFromRows:
    def test_list_rows(self):
        rows = [
            [0, "a.csv", "id", "Key"],
            [1, "b.csv", "id", ""],
            ["x", "b.csv", "name", "Name"],
            [1, "b.csv", "city", "  Town "],
            [2],
        ]
        mapping = ColumnMapping.from_rows(rows)
        assert mapping.target_header() == ("Key", "Town")
        assert mapping.resolve(1, "city") == "Town"
        assert mapping.resolve(1, "id") is DROP
        assert mapping.resolve(1, "name") == "name"

    def test_dataframe_rows(self):
        df = pd.DataFrame(
            [[0, "a.csv", "id", "Key"], [1.0, "b.csv", "value", None]],
            columns=MAPPING_TABLE_HEADERS,
        )
        mapping = ColumnMapping.from_rows(df)
        assert mapping.target_header() == ("Key",)
        assert mapping.resolve(0, "id") == "Key"
        assert mapping.resolve(1, "value") is DROP

    def test_rows_without_column_are_skipped(self):
        mapping = ColumnMapping.from_rows([[0, "a.csv", "", "X"], [0, "a.csv", None, "Y"]])
        assert not mapping

    def test_none(self):
        assert not ColumnMapping.from_rows(None)


def test_identity_mapping_rows(make_source):
    sources = [make_source("a.csv", ["id", "x"]), make_source("b.csv", ["id"])]
    assert identity_mapping_rows(sources) == [
        [0, "a.csv", "id", "id"],
        [0, "a.csv", "x", "x"],
        [1, "b.csv", "id", "id"],
    ]
