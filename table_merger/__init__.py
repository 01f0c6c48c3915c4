"""Core logic for the Table Merger.

The Gradio UI lives in `app.py`. This package contains pure functions that:
- ingest CSV/TSV text and .xlsx sheets into tables
- stack tables under one reconciled header (append)
- join tables on a key column (left/inner/right/outer)
- export merged tables
"""
from __future__ import annotations

from .append import merge_append
from .errors import IngestError, KeyColumnNotFound, MergeError, NoSources
from .join import merge_join
from .mapping import ColumnMapping
from .models import JoinSpec, JoinType, MergedResult, MergeReport, Source, Table

__all__ = [
    "ColumnMapping",
    "IngestError",
    "JoinSpec",
    "JoinType",
    "KeyColumnNotFound",
    "MergeError",
    "MergeReport",
    "MergedResult",
    "NoSources",
    "Source",
    "Table",
    "merge_append",
    "merge_join",
]
