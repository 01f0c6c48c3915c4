"""Turn raw uploads (delimited text or .xlsx workbooks) into `Source` tables.

The only contract the rest of the engine relies on is the shape of the
returned `Table`: the first record is the header, every other record is a row
padded or truncated to the header width, and blank trailing records are gone.
"""
from __future__ import annotations

import csv
import io
import logging
import os
import zipfile
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .errors import EMPTY_SOURCE, MALFORMED_SOURCE, IngestError
from .io_utils import read_upload
from .models import Source, Table

logger = logging.getLogger(__name__)

WORKBOOK_EXTENSIONS = {'.xlsx', '.xlsm'}
TAB_EXTENSIONS = {'.tsv', '.tab'}
SNIFF_DELIMITERS = ',;\t|'
SNIFF_SAMPLE_SIZE = 4096


class SourceFormat(str, Enum):
    DELIMITED = "delimited"
    WORKBOOK = "workbook"


def detect_format(name: str) -> SourceFormat:
    ext = os.path.splitext(name or '')[1].lower()
    if ext in WORKBOOK_EXTENSIONS:
        return SourceFormat.WORKBOOK
    return SourceFormat.DELIMITED


def default_delimiter(name: str) -> Optional[str]:
    ext = os.path.splitext(name or '')[1].lower()
    return '\t' if ext in TAB_EXTENSIONS else None


def decode_text(data: bytes) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError:
        return data.decode('latin-1')


def sniff_delimiter(text: str) -> str:
    sample = text[:SNIFF_SAMPLE_SIZE]
    try:
        return csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS).delimiter
    except csv.Error:
        return ','


def parse_delimited(text: str, delimiter: Optional[str] = None, source_name: str = '') -> List[List[str]]:
    """Split delimited text into records; quoting follows the csv module's defaults."""
    if delimiter is None:
        delimiter = sniff_delimiter(text)
    try:
        return [list(record) for record in csv.reader(io.StringIO(text, newline=''), delimiter=delimiter)]
    except csv.Error as exc:
        raise IngestError(MALFORMED_SOURCE, source_name, str(exc)) from exc


def _cell_text(value) -> str:
    if value is None:
        return ''
    return str(value)


def _open_workbook(data: bytes, source_name: str):
    try:
        return load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError, OSError) as exc:
        raise IngestError(MALFORMED_SOURCE, source_name, "Not a readable .xlsx workbook.") from exc


def list_sheets(data: bytes, source_name: str = '') -> List[str]:
    workbook = _open_workbook(data, source_name)
    try:
        return list(workbook.sheetnames)
    finally:
        workbook.close()


def _resolve_sheet_name(sheetnames: Sequence[str], sheet: Optional[str], source_name: str) -> str:
    if not sheetnames:
        raise IngestError(EMPTY_SOURCE, source_name, "Workbook has no sheets.")
    if sheet in (None, ''):
        return sheetnames[0]
    if sheet in sheetnames:
        return sheet
    wanted = sheet.strip().lower()
    for name in sheetnames:
        if name.strip().lower() == wanted:
            logger.warning("%s: sheet %r matched %r ignoring case", source_name, sheet, name)
            return name
    available = ", ".join(repr(n) for n in sheetnames)
    raise IngestError(MALFORMED_SOURCE, source_name, f"Sheet {sheet!r} not found. Available sheets: {available}.")


def read_workbook_records(data: bytes, sheet: Optional[str] = None, source_name: str = '') -> List[List[str]]:
    workbook = _open_workbook(data, source_name)
    try:
        sheet_name = _resolve_sheet_name(workbook.sheetnames, sheet, source_name)
        worksheet = workbook[sheet_name]
        return [[_cell_text(v) for v in (values or ())] for values in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _is_blank(record: Sequence[str]) -> bool:
    return all(not str(cell).strip() for cell in record)


def _fit(record: Sequence[str], width: int) -> List[str]:
    cells = list(record[:width])
    if len(cells) < width:
        cells.extend([''] * (width - len(cells)))
    return cells


def table_from_records(records: Sequence[Sequence[str]], source_name: str = '', has_header: bool = True) -> Table:
    """Build a Table from raw records.

    With ``has_header=False`` every record is data and the header is generated
    as ``Column 1 .. Column N`` for the widest record.
    """
    records = list(records)
    while records and _is_blank(records[-1]):
        records.pop()
    if not records:
        raise IngestError(EMPTY_SOURCE, source_name)

    if has_header:
        header = [_cell_text(c) for c in records[0]]
        body = records[1:]
    else:
        width = max(len(r) for r in records)
        header = [f"Column {i + 1}" for i in range(width)]
        body = records

    width = len(header)
    rows = [_fit([_cell_text(c) for c in record], width) for record in body]
    return Table(header, rows)


def ingest_source(
    data: bytes,
    name: str,
    fmt=None,
    sheet: Optional[str] = None,
    delimiter: Optional[str] = None,
    has_header: bool = True,
) -> Source:
    fmt = SourceFormat(fmt) if fmt is not None else detect_format(name)

    if fmt == SourceFormat.WORKBOOK:
        records = read_workbook_records(data, sheet, name)
        sheet_label = sheet or None
    else:
        if delimiter is None:
            delimiter = default_delimiter(name)
        records = parse_delimited(decode_text(data), delimiter, name)
        sheet_label = None

    table = table_from_records(records, name, has_header=has_header)
    logger.debug("Ingested %s: %d rows x %d columns", name, table.row_count, table.column_count)
    return Source(name=name, table=table, sheet_label=sheet_label)


def ingest_workbook_sheets(data: bytes, name: str, sheets: Optional[Iterable[str]] = None, has_header: bool = True) -> List[Source]:
    """One source per selected sheet (all sheets when none are selected)."""
    sheet_names = list(sheets) if sheets else list_sheets(data, name)
    sources: List[Source] = []
    for sheet in sheet_names:
        records = read_workbook_records(data, sheet, name)
        label = f"{name} [{sheet}]"
        sources.append(Source(name=label, table=table_from_records(records, label, has_header), sheet_label=sheet))
    return sources


def ingest_many(
    uploads: Sequence,
    sheet: Optional[str] = None,
    has_header: bool = True,
    max_workers: int = 4,
    all_sheets: bool = False,
) -> List[Source]:
    """Ingest several uploads concurrently; results keep the input order.

    A sheet name only applies to workbook uploads. With ``all_sheets`` every
    sheet of a workbook becomes its own source, in workbook order.
    """
    uploads = list(uploads)
    if not uploads:
        return []

    def work(file_obj) -> List[Source]:
        name, data = read_upload(file_obj)
        if detect_format(name) != SourceFormat.WORKBOOK:
            return [ingest_source(data, name, has_header=has_header)]
        if all_sheets:
            return ingest_workbook_sheets(data, name, has_header=has_header)
        return [ingest_source(data, name, sheet=sheet, has_header=has_header)]

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(uploads)))) as executor:
        return [source for group in executor.map(work, uploads) for source in group]
