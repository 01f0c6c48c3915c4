"""Tests for exporting merged tables."""

import json
import os
import zipfile

import pytest
from openpyxl import load_workbook

from table_merger.export import (
    export_table,
    output_path,
    preview_records,
    render_delimited,
    render_html,
    render_json,
    safe_sheet_title,
    write_sheets_archive,
)
from table_merger.models import Table


@pytest.fixture
def table():
    return Table(["id", "note"], [("1", "x,y"), ("2", "<b>bold</b>")])


class TestRender:
    def test_csv_quotes_minimal(self, table):
        assert render_delimited(table) == 'id,note\n1,"x,y"\n2,<b>bold</b>\n'

    def test_csv_options(self, table):
        text = render_delimited(table, delimiter=";", quoting="always", line_ending="\r\n", include_header=False)
        assert text == '"1";"x,y"\r\n"2";"<b>bold</b>"\r\n'

    def test_unknown_quoting(self, table):
        with pytest.raises(ValueError):
            render_delimited(table, quoting="sometimes")

    def test_json_records(self, table):
        assert json.loads(render_json(table)) == [
            {"id": "1", "note": "x,y"},
            {"id": "2", "note": "<b>bold</b>"},
        ]

    def test_html_escapes_cells(self, table):
        html = render_html(table)
        assert "<th>id</th>" in html
        assert "&lt;b&gt;bold&lt;/b&gt;" in html
        assert "<b>" not in html

    def test_preview_records_limit(self, table):
        assert preview_records(table, 1) == [{"id": "1", "note": "x,y"}]
        assert preview_records(table, 0) == []


class TestFiles:
    def test_output_path_appends_extension(self, tmp_path):
        assert output_path("merged", ".csv", str(tmp_path)) == os.path.join(str(tmp_path), "merged.csv")
        assert output_path("out.CSV", ".csv", str(tmp_path)).endswith("out.CSV")
        assert output_path("  ", ".json", str(tmp_path)).endswith("merged.json")

    def test_export_csv(self, table, tmp_path):
        path = export_table(table, "csv", "result", str(tmp_path))
        assert path.endswith("result.csv")
        with open(path, encoding="utf-8", newline="") as f:
            assert f.read().startswith("id,note\n")

    def test_export_tsv(self, table, tmp_path):
        path = export_table(table, "TSV", "result", str(tmp_path))
        with open(path, encoding="utf-8", newline="") as f:
            assert f.readline() == "id\tnote\n"

    def test_export_xlsx(self, table, tmp_path):
        path = export_table(table, "XLSX", "result", str(tmp_path))
        workbook = load_workbook(path)
        worksheet = workbook.active
        assert worksheet.title == "Merged"
        assert [c.value for c in worksheet[1]] == ["id", "note"]
        assert worksheet["B2"].value == "x,y"

    def test_unsupported_format(self, table, tmp_path):
        with pytest.raises(ValueError):
            export_table(table, "PDF", "result", str(tmp_path))

    def test_sheets_archive(self, make_source, tmp_path):
        sources = [
            make_source("book.xlsx [Data]", ["a"], [("1",)], sheet_label="Data"),
            make_source("book.xlsx [Extra]", ["b"], [("2",)], sheet_label="Extra"),
            make_source("plain.csv", ["c"]),
        ]
        path = write_sheets_archive(sources, str(tmp_path / "sheets.zip"))
        with zipfile.ZipFile(path) as archive:
            assert archive.namelist() == ["book-Data.xlsx", "book-Extra.xlsx", "plain.xlsx"]


def test_safe_sheet_title():
    assert safe_sheet_title("a/b[c]") == "a_b_c_"
    assert safe_sheet_title("") == "Sheet"
    assert len(safe_sheet_title("x" * 40)) == 31
