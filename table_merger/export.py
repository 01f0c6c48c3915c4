from __future__ import annotations

import csv
import html
import io
import json
import os
import tempfile
import zipfile
from typing import Dict, List, Optional, Sequence

from openpyxl import Workbook

from .models import Source, Table

QUOTING = {
    'always': csv.QUOTE_ALL,
    'minimal': csv.QUOTE_MINIMAL,
    'never': csv.QUOTE_NONE,
}

OUTPUT_FORMATS = ["CSV", "TSV", "JSON", "HTML", "XLSX"]

# Excel caps sheet titles at 31 characters and rejects a few symbols.
_SHEET_TITLE_FORBIDDEN = '[]:*?/\\'


def render_delimited(
    table: Table,
    delimiter: str = ',',
    quoting: str = 'minimal',
    line_ending: str = '\n',
    include_header: bool = True,
) -> str:
    if quoting not in QUOTING:
        raise ValueError(f"Unknown quoting mode {quoting!r}. Expected one of: {', '.join(QUOTING)}.")
    buf = io.StringIO()
    writer = csv.writer(
        buf,
        delimiter=delimiter,
        quoting=QUOTING[quoting],
        lineterminator=line_ending,
        escapechar='\\' if quoting == 'never' else None,
    )
    writer.writerows(table.to_grid(include_header=include_header))
    return buf.getvalue()


def table_records(table: Table) -> List[Dict[str, str]]:
    return [dict(zip(table.header, row)) for row in table.rows]


def render_json(table: Table) -> str:
    return json.dumps(table_records(table), indent=2, ensure_ascii=False)


def render_html(table: Table) -> str:
    lines = ['<table>', '  <thead>', '    <tr>']
    lines.extend(f'      <th>{html.escape(c)}</th>' for c in table.header)
    lines.extend(['    </tr>', '  </thead>', '  <tbody>'])
    for row in table.rows:
        cells = ''.join(f'<td>{html.escape(c)}</td>' for c in row)
        lines.append(f'    <tr>{cells}</tr>')
    lines.extend(['  </tbody>', '</table>'])
    return '\n'.join(lines) + '\n'


def safe_sheet_title(title: str, fallback: str = 'Sheet') -> str:
    cleaned = ''.join('_' if ch in _SHEET_TITLE_FORBIDDEN else ch for ch in (title or '')).strip()
    return (cleaned or fallback)[:31]


def build_workbook(table: Table, sheet_title: str = 'Merged') -> Workbook:
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = safe_sheet_title(sheet_title)
    for row in table.to_grid():
        worksheet.append(row)
    return workbook


def write_workbook(table: Table, path: str, sheet_title: str = 'Merged') -> str:
    build_workbook(table, sheet_title).save(path)
    return path


def write_sheets_archive(sources: Sequence[Source], path: str) -> str:
    """Zip with one workbook per source, named ``<file>-<sheet>.xlsx``."""
    used = set()
    with zipfile.ZipFile(path, 'w', compression=zipfile.ZIP_DEFLATED) as archive:
        for source in sources:
            base = source.name
            suffix = f" [{source.sheet_label}]" if source.sheet_label else ''
            if suffix and base.endswith(suffix):
                base = base[:-len(suffix)]
            stem = os.path.splitext(base)[0]
            if source.sheet_label:
                stem = f"{stem}-{source.sheet_label}"
            entry = f"{stem}.xlsx"
            n = 2
            while entry in used:
                entry = f"{stem}-{n}.xlsx"
                n += 1
            used.add(entry)

            buf = io.BytesIO()
            build_workbook(source.table, source.sheet_label or 'Sheet1').save(buf)
            archive.writestr(entry, buf.getvalue())
    return path


def output_path(file_name: Optional[str], extension: str, directory: Optional[str] = None) -> str:
    file_name = (file_name or '').strip() or 'merged'
    if not file_name.lower().endswith(extension):
        file_name += extension
    return os.path.join(directory or tempfile.gettempdir(), os.path.basename(file_name))


def export_table(table: Table, output_format: str, file_name: Optional[str] = None, directory: Optional[str] = None) -> str:
    fmt = (output_format or '').upper()
    if fmt not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported output format {output_format!r}.")

    path = output_path(file_name, f".{fmt.lower()}", directory)
    if fmt == 'XLSX':
        return write_workbook(table, path)

    if fmt == 'CSV':
        content = render_delimited(table)
    elif fmt == 'TSV':
        content = render_delimited(table, delimiter='\t')
    elif fmt == 'JSON':
        content = render_json(table)
    else:
        content = render_html(table)

    with open(path, 'w', newline='', encoding='utf-8') as f:
        f.write(content)
    return path


def preview_records(table: Table, limit: int = 10) -> List[Dict[str, str]]:
    """First `limit` rows as records, for a JSON preview."""
    return table_records(Table(table.header, table.rows[:max(0, int(limit))]))
