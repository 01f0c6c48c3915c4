from __future__ import annotations

import logging
import os

import gradio as gr

from .config import settings
from .export import export_table, output_path, preview_records, write_sheets_archive
from .ingest import SourceFormat, detect_format, ingest_source, ingest_workbook_sheets, list_sheets
from .io_utils import read_upload

logger = logging.getLogger(__name__)


def prepare_source_payload(file_obj, has_header=True):
    """Load one upload. Returns (source, sheet dropdown, split-sheets dropdown, status, preview)."""
    no_sheets = gr.update(choices=[], value=None, interactive=False)
    no_split = gr.update(choices=[], value=[], interactive=False)
    if file_obj is None:
        return None, no_sheets, no_split, "No file uploaded.", None

    try:
        name, data = read_upload(file_obj)
        sheets = list_sheets(data, name) if detect_format(name) == SourceFormat.WORKBOOK else []
        source = ingest_source(data, name, sheet=sheets[0] if sheets else None, has_header=bool(has_header))
    except (ValueError, OSError) as exc:
        return None, no_sheets, no_split, f"Error reading file: {exc}", None

    sheet_dropdown = gr.update(choices=sheets, value=sheets[0] if sheets else None, interactive=bool(sheets))
    split_dropdown = gr.update(choices=sheets, value=[], interactive=bool(sheets))
    return source, sheet_dropdown, split_dropdown, describe_source(source), preview_records(source.table, settings.preview_rows)


def describe_source(source) -> str:
    where = f" (sheet {source.sheet_label})" if source.sheet_label else ""
    return (
        f"Loaded {source.name}{where}: {source.table.row_count} rows, "
        f"{source.table.column_count} columns."
    )


def handle_sheet_change(file_obj, sheet, has_header=True):
    if file_obj is None:
        return None, "No file uploaded.", None
    try:
        name, data = read_upload(file_obj)
        source = ingest_source(data, name, sheet=sheet or None, has_header=bool(has_header))
    except (ValueError, OSError) as exc:
        return None, f"Error reading sheet: {exc}", None
    return source, describe_source(source), preview_records(source.table, settings.preview_rows)


def export_source_handler(source, output_format, file_name):
    if source is None:
        return None, "No data loaded."

    if not file_name or not file_name.strip():
        file_name = os.path.splitext(source.name)[0] or "output"

    try:
        path = export_table(source.table, output_format, file_name, settings.export_dir)
    except (ValueError, OSError) as exc:
        return None, f"Error during export: {exc}"
    return path, f"Export successful! Saved to {path}"


def export_sheets_archive_handler(file_obj, sheets, has_header=True, file_name=None):
    """Export the selected sheets of a workbook as separate files inside one ZIP."""
    if file_obj is None:
        return None, "No file uploaded."
    if isinstance(sheets, str):
        sheets = [sheets]

    try:
        name, data = read_upload(file_obj)
        if detect_format(name) != SourceFormat.WORKBOOK:
            return None, "Only .xlsx workbooks can be split into sheets."
        sources = ingest_workbook_sheets(data, name, sheets or None, has_header=bool(has_header))
        path = write_sheets_archive(sources, output_path(file_name or "sheets", ".zip", settings.export_dir))
    except (ValueError, OSError) as exc:
        return None, f"Error exporting sheets: {exc}"

    logger.info("Exported %d sheets of %s to %s", len(sources), name, path)
    return path, f"Exported {len(sources)} sheets to {path}"
