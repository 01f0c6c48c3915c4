"""Key-indexed join of two or more sources.

Each source is indexed by its key column; the join type decides which keys
reach the output, and every source that has a key writes its columns into
that key's output row.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .errors import KeyColumnNotFound, NoSources
from .mapping import DROP, ColumnMapping
from .models import JoinSpec, JoinType, MergedResult, MergeReport, Row, Source
from .normalize import NormalizedIndex, normalize_column_name
from .schema_utils import unify_source_headers

logger = logging.getLogger(__name__)


@dataclass
class JoinIndex:
    source_name: str
    key_position: int
    rows: Dict[str, Row] = field(default_factory=dict)

    def __contains__(self, key: str) -> bool:
        return key in self.rows

    def keys(self) -> List[str]:
        return list(self.rows)


def find_key_position(source: Source, key_column: str) -> int:
    wanted = normalize_column_name(key_column)
    for idx, cell in enumerate(source.table.header):
        if normalize_column_name(cell) == wanted:
            return idx
    raise KeyColumnNotFound(source.name, key_column, source.table.header)


def index_source(source: Source, key_column: str) -> JoinIndex:
    """Key -> row lookup for one source.

    Empty keys are skipped. A repeated key keeps its first-seen position but
    the later row replaces the earlier one.
    """
    position = find_key_position(source, key_column)
    index = JoinIndex(source_name=source.name, key_position=position)
    duplicates = 0
    for row in source.table.rows:
        key = row[position]
        if key == '':
            continue
        if key in index.rows:
            duplicates += 1
        index.rows[key] = row
    if duplicates:
        logger.debug("%s: %d duplicate keys in %r, last row kept", source.name, duplicates, key_column)
    return index


def build_join_index(sources: Sequence[Source], key_column: str) -> List[JoinIndex]:
    return [index_source(source, key_column) for source in sources]


def _left_keys(indexes: Sequence[JoinIndex]) -> List[str]:
    return indexes[0].keys()


def _right_keys(indexes: Sequence[JoinIndex]) -> List[str]:
    return indexes[-1].keys()


def _inner_keys(indexes: Sequence[JoinIndex]) -> List[str]:
    return [k for k in indexes[0].keys() if all(k in other for other in indexes[1:])]


def _outer_keys(indexes: Sequence[JoinIndex]) -> List[str]:
    seen = set()
    keys: List[str] = []
    for index in indexes:
        for key in index.rows:
            if key not in seen:
                seen.add(key)
                keys.append(key)
    return keys


KEY_UNIVERSE: Dict[JoinType, Callable[[Sequence[JoinIndex]], List[str]]] = {
    JoinType.LEFT: _left_keys,
    JoinType.INNER: _inner_keys,
    JoinType.RIGHT: _right_keys,
    JoinType.OUTER: _outer_keys,
}


def compute_key_universe(indexes: Sequence[JoinIndex], join_type) -> List[str]:
    if not indexes:
        return []
    return KEY_UNIVERSE[JoinType.parse(join_type)](indexes)


def join_header(sources: Sequence[Source], mapping: Optional[ColumnMapping] = None) -> Tuple[str, ...]:
    """Mapping targets when a mapping is given, otherwise the union of all headers."""
    if mapping:
        return mapping.target_header()
    header, _ = unify_source_headers(sources, include_provenance=False)
    return header


def merge_join(sources: Sequence[Source], join_spec: JoinSpec) -> MergedResult:
    sources = list(sources)
    if not sources:
        raise NoSources()

    indexes = build_join_index(sources, join_spec.key_column)
    keys = compute_key_universe(indexes, join_spec.join_type)

    mapping = join_spec.column_mapping or ColumnMapping()
    header = join_header(sources, mapping)
    positions: NormalizedIndex[int] = NormalizedIndex()
    for idx, name in enumerate(header):
        positions.add(name, idx)

    # Output position for every column of every source, resolved once; -1 skips the cell.
    targets: List[List[int]] = []
    for source_index, source in enumerate(sources):
        col_targets = []
        for column in source.table.header:
            output = mapping.resolve(source_index, column)
            col_targets.append(-1 if output is DROP else positions.get(output, -1))
        targets.append(col_targets)

    rows = []
    fully = 0
    for key in keys:
        out = [''] * len(header)
        present = 0
        for index, col_targets in zip(indexes, targets):
            row = index.rows.get(key)
            if row is None:
                continue
            present += 1
            for i, cell in enumerate(row):
                if col_targets[i] >= 0:
                    out[col_targets[i]] = cell
        if present == len(indexes):
            fully += 1
        rows.append(tuple(out))

    report = MergeReport(
        total_rows=len(rows),
        fully_matched_rows=fully,
        partially_matched_rows=len(rows) - fully,
        source_count=len(sources),
    )
    logger.info(
        "%s join on %r: %d sources -> %d rows (%d fully matched, %d partial)",
        join_spec.join_type.value, join_spec.key_column, len(sources), report.total_rows,
        report.fully_matched_rows, report.partially_matched_rows,
    )
    return MergedResult(header=header, rows=tuple(rows), report=report)
