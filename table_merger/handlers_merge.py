from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import gradio as gr

from .append import merge_append
from .config import settings
from .errors import NoSources
from .export import export_table, preview_records
from .ingest import ingest_many
from .io_utils import upload_size
from .join import merge_join
from .mapping import ColumnMapping, identity_mapping_rows
from .models import JoinSpec, JoinType, MergedResult, Source
from .normalize import normalize_column_name
from .schema_utils import common_columns, find_header_mismatches, summarize_sources

logger = logging.getLogger(__name__)

APPEND_STRATEGY = "Append rows"
JOIN_STRATEGY = "Join on key"
STRATEGIES = [APPEND_STRATEGY, JOIN_STRATEGY]
JOIN_TYPE_CHOICES = [t.value for t in JoinType]


def _as_list(files) -> List:
    if files is None:
        return []
    if isinstance(files, (list, tuple)):
        return [f for f in files if f is not None]
    return [files]


def update_key_column_dropdown(sources: Sequence[Source], current_selection):
    common = common_columns(sources or [])
    if not common:
        return gr.update(choices=[], value=None, interactive=False)

    value = common[0]
    if current_selection:
        wanted = normalize_column_name(current_selection)
        for column in common:
            if normalize_column_name(column) == wanted:
                value = column
                break
    return gr.update(choices=common, value=value, interactive=True)


def build_upload_status(sources: Sequence[Source], total_bytes: int = 0) -> str:
    summary = summarize_sources(sources)
    parts = [
        f"{summary['file_count']} files loaded, {summary['total_rows']} total rows, "
        f"{summary['max_columns']} columns (max)."
    ]
    mismatched = find_header_mismatches(sources)
    if mismatched:
        parts.append(f"Warning: header mismatch with the first file in: {', '.join(mismatched)}.")
    size_mb = total_bytes / (1024 * 1024)
    if size_mb > settings.size_warning_mb:
        parts.append(f"Warning: total upload size is large ({size_mb:.1f} MB). Processing may be slow.")
    return " ".join(parts)


def handle_merge_files_upload(files, has_header=True, current_key=None, all_sheets=False):
    """Load every upload as a source; with ``all_sheets`` each workbook sheet is its own source."""
    files = _as_list(files)
    empty_key = gr.update(choices=[], value=None, interactive=False)
    if not files:
        return [], "No files uploaded.", empty_key, []

    try:
        sources = ingest_many(
            files,
            has_header=bool(has_header),
            max_workers=settings.ingest_workers,
            all_sheets=bool(all_sheets),
        )
    except ValueError as exc:
        logger.warning("Upload rejected: %s", exc)
        return [], f"Error reading files: {exc}", empty_key, []

    total_bytes = sum(upload_size(f) for f in files)
    status = build_upload_status(sources, total_bytes)
    return sources, status, update_key_column_dropdown(sources, current_key), identity_mapping_rows(sources)


def run_merge(
    sources: Sequence[Source],
    strategy: str,
    join_type=JoinType.LEFT,
    key_column: Optional[str] = None,
    mapping_rows=None,
    include_provenance: bool = True,
) -> MergedResult:
    if strategy == APPEND_STRATEGY:
        return merge_append(sources, include_provenance, settings.provenance_column)
    if strategy == JOIN_STRATEGY:
        if not key_column:
            raise ValueError("Select a key column to join on.")
        mapping = ColumnMapping.from_rows(mapping_rows)
        return merge_join(sources, JoinSpec(key_column, join_type, mapping or None))
    raise ValueError(f"Unknown merge strategy {strategy!r}.")


def describe_result(result: MergedResult, strategy: str, join_type=None, key_column=None) -> str:
    report = result.report
    if strategy == JOIN_STRATEGY:
        return (
            f"{JoinType.parse(join_type).value.title()} join on '{key_column}': "
            f"{report.total_rows} rows | fully matched {report.fully_matched_rows} | "
            f"partially matched {report.partially_matched_rows} | sources {report.source_count}."
        )
    return f"Appended {report.total_rows} rows from {report.source_count} files into {len(result.header)} columns."


def merge_files_handler(
    sources,
    strategy,
    join_type,
    key_column,
    mapping_df,
    include_provenance,
    output_format,
    file_name,
):
    sources = sources or []
    if not sources:
        return None, str(NoSources()), None

    try:
        result = run_merge(sources, strategy, join_type, key_column, mapping_df, bool(include_provenance))
    except ValueError as exc:
        return None, str(exc), None

    table = result.to_table()
    if not table.rows:
        return None, "Merge produced no rows.", None

    try:
        path = export_table(table, output_format or "CSV", file_name or "merged", settings.export_dir)
    except (OSError, ValueError) as exc:
        logger.warning("Writing merged file failed: %s", exc)
        return None, f"Error writing merged file: {exc}", None

    preview = preview_records(table, settings.preview_rows)
    return path, describe_result(result, strategy, join_type, key_column), preview


def preview_merge_handler(sources, strategy, join_type, key_column, mapping_df, include_provenance):
    """Preview of the first rows without writing a file."""
    if not sources:
        return None
    try:
        result = run_merge(sources, strategy, join_type, key_column, mapping_df, bool(include_provenance))
    except ValueError:
        return None
    return preview_records(result.to_table(), settings.preview_rows)
