"""Pytest configuration and shared fixtures."""

import io

import pytest
from openpyxl import Workbook

from table_merger.models import Source, Table


@pytest.fixture
def make_source():
    """Factory building a Source from a header and rows."""

    def _make(name, header, rows=(), sheet_label=None):
        return Source(name=name, table=Table(header, rows), sheet_label=sheet_label)

    return _make


@pytest.fixture
def left_right_sources(make_source):
    """Two sources keyed by 'id': left has a, b and right has b, c."""
    left = make_source("left.csv", ["id", "left_val"], [("a", "L-a"), ("b", "L-b")])
    right = make_source("right.csv", ["ID", "right_val"], [("b", "R-b"), ("c", "R-c")])
    return [left, right]


@pytest.fixture
def workbook_bytes():
    """An .xlsx workbook with a 'Data' sheet and an 'Extra' sheet."""
    workbook = Workbook()
    data = workbook.active
    data.title = "Data"
    data.append(["id", "name"])
    data.append([1, "Ann"])
    data.append([2, None])

    extra = workbook.create_sheet("Extra")
    extra.append(["code", "city"])
    extra.append(["x", "Oslo"])

    buf = io.BytesIO()
    workbook.save(buf)
    return buf.getvalue()
