from __future__ import annotations

import logging
from typing import List, Sequence

from .models import DEFAULT_PROVENANCE_COLUMN, MergedResult, MergeReport, Source
from .normalize import NormalizedIndex, normalize_column_name
from .schema_utils import unify_source_headers

logger = logging.getLogger(__name__)


def build_column_map(
    header: Sequence[str],
    positions: NormalizedIndex[int],
    provenance_column=None,
) -> List[int]:
    """Unified-header position for each source column, -1 for the reserved provenance name."""
    reserved = normalize_column_name(provenance_column) if provenance_column is not None else None
    col_map: List[int] = []
    for cell in header:
        if reserved is not None and normalize_column_name(cell) == reserved:
            col_map.append(-1)
        else:
            col_map.append(positions.get(cell, -1))
    return col_map


def merge_append(
    sources: Sequence[Source],
    include_provenance: bool = True,
    provenance_column: str = DEFAULT_PROVENANCE_COLUMN,
) -> MergedResult:
    """Stack the rows of every source under one unified header.

    Rows keep source order and their order within each source; nothing is
    de-duplicated. Columns a source lacks stay empty. With provenance the last
    column holds the source name.
    """
    sources = list(sources)
    header, positions = unify_source_headers(sources, include_provenance, provenance_column)
    width = len(header)
    provenance_at = positions.get(provenance_column) if include_provenance else None

    rows = []
    for source in sources:
        col_map = build_column_map(
            source.table.header,
            positions,
            provenance_column if include_provenance else None,
        )
        for row in source.table.rows:
            out = [''] * width
            for i, cell in enumerate(row):
                if col_map[i] >= 0:
                    out[col_map[i]] = cell
            if provenance_at is not None:
                out[provenance_at] = source.name
            rows.append(tuple(out))

    report = MergeReport(
        total_rows=len(rows),
        fully_matched_rows=len(rows),
        partially_matched_rows=0,
        source_count=len(sources),
    )
    logger.info("Append merge: %d sources -> %d rows x %d columns", len(sources), len(rows), width)
    return MergedResult(header=header, rows=tuple(rows), report=report)
