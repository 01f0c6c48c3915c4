from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

from .models import DEFAULT_PROVENANCE_COLUMN, Source
from .normalize import NormalizedIndex, normalize_column_name


def unify_headers(
    headers: Sequence[Sequence[str]],
    include_provenance: bool = True,
    provenance_column: str = DEFAULT_PROVENANCE_COLUMN,
) -> Tuple[Tuple[str, ...], NormalizedIndex[int]]:
    """Build one header out of several, first occurrence wins.

    Columns are compared by `normalize_column_name`; the casing of the first
    source that mentions a column is kept. When provenance is included its
    column is appended last and the name is reserved: a source column with the
    same normalized name is not added.
    """
    unified: List[str] = []
    positions: NormalizedIndex[int] = NormalizedIndex()
    reserved = normalize_column_name(provenance_column) if include_provenance else None

    for header in headers:
        for cell in header:
            if reserved is not None and normalize_column_name(cell) == reserved:
                continue
            if positions.add(cell, len(unified)):
                unified.append(cell)

    if include_provenance:
        positions.add(provenance_column, len(unified))
        unified.append(provenance_column)

    return tuple(unified), positions


def unify_source_headers(
    sources: Sequence[Source],
    include_provenance: bool = True,
    provenance_column: str = DEFAULT_PROVENANCE_COLUMN,
) -> Tuple[Tuple[str, ...], NormalizedIndex[int]]:
    return unify_headers([s.table.header for s in sources], include_provenance, provenance_column)


def common_columns(sources: Sequence[Source]) -> List[str]:
    """Columns present in every source, in first-source order and casing."""
    if not sources:
        return []
    others = [{normalize_column_name(c) for c in s.table.header} for s in sources[1:]]
    seen = set()
    common: List[str] = []
    for cell in sources[0].table.header:
        key = normalize_column_name(cell)
        if not key or key in seen:
            continue
        seen.add(key)
        if all(key in names for names in others):
            common.append(cell)
    return common


def find_header_mismatches(sources: Sequence[Source]) -> List[str]:
    """Names of sources whose header differs from the first source's."""
    if not sources:
        return []
    reference = [normalize_column_name(c) for c in sources[0].table.header]
    return [
        s.name for s in sources[1:]
        if [normalize_column_name(c) for c in s.table.header] != reference
    ]


def summarize_sources(sources: Sequence[Source]) -> Dict[str, Any]:
    files = [
        {
            'name': s.name,
            'sheet': s.sheet_label,
            'rows': s.table.row_count,
            'columns': s.table.column_count,
            'header': list(s.table.header),
        }
        for s in sources
    ]
    return {
        'files': files,
        'file_count': len(files),
        'total_rows': sum(f['rows'] for f in files),
        'max_columns': max((f['columns'] for f in files), default=0),
    }
