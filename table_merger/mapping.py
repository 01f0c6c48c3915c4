from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TYPE_CHECKING

from .normalize import NormalizedIndex, normalize_column_name

if TYPE_CHECKING:
    from .models import Source

MAPPING_TABLE_HEADERS = ["Source #", "Source", "Column", "Output Name"]

# Output name of a mapping entry that excludes its column.
DROP = None


class ColumnMapping:
    """Rename table used by the join merge: ``(source_index, column) -> output name``.

    Column names are matched after normalization. A lookup miss returns the
    column's own name, and entries pointing at sources or columns that do not
    exist are never an error, they simply never match. An entry whose output
    is ``DROP`` removes that column from the join output.
    """

    def __init__(self, entries: Optional[Iterable[Tuple[int, str, Optional[str]]]] = None) -> None:
        self._targets: Dict[Tuple[int, str], Optional[str]] = {}
        for source_index, column, output in entries or ():
            self.add(source_index, column, output)

    def add(self, source_index: int, column: str, output: Optional[str]) -> None:
        self._targets[(int(source_index), normalize_column_name(column))] = output

    def drop(self, source_index: int, column: str) -> None:
        self.add(source_index, column, DROP)

    def __bool__(self) -> bool:
        return bool(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def resolve(self, source_index: int, column: str) -> Optional[str]:
        """Output name for a source column, or ``DROP`` when it is excluded."""
        return self._targets.get((source_index, normalize_column_name(column)), column)

    def target_header(self) -> Tuple[str, ...]:
        """Current output names in insertion order, de-duplicated ignoring case."""
        seen: NormalizedIndex[bool] = NormalizedIndex()
        header: List[str] = []
        for output in self._targets.values():
            if output is DROP:
                continue
            if seen.add(output, True):
                header.append(output)
        return tuple(header)

    @classmethod
    def from_rows(cls, rows) -> "ColumnMapping":
        """Build from mapping-table rows ``[source #, source, column, output name]``.

        Accepts the DataFrame a Gradio table hands back or a plain list of rows.
        A blank output name drops that column; rows without a column name or
        with a non-numeric source index are skipped.
        """
        mapping = cls()
        for row in _table_rows(rows):
            if len(row) < 4:
                continue
            source_index, _, column, output = row[:4]
            if _is_missing(column) or not str(column).strip():
                continue
            try:
                index = int(float(source_index))
            except (TypeError, ValueError):
                continue
            output = '' if _is_missing(output) else str(output).strip()
            if output:
                mapping.add(index, str(column), output)
            else:
                mapping.drop(index, str(column))
        return mapping


def _is_missing(value) -> bool:
    # Empty DataFrame cells arrive as NaN.
    return value is None or (isinstance(value, float) and value != value)


def _table_rows(rows) -> List[Sequence]:
    if rows is None:
        return []
    if hasattr(rows, 'columns') and hasattr(rows, 'values'):
        return rows.values.tolist()
    return list(rows)


def identity_mapping_rows(sources: Sequence["Source"]) -> List[List]:
    """Default mapping table: every column keeps its own name."""
    return [
        [idx, source.name, column, column]
        for idx, source in enumerate(sources)
        for column in source.table.header
    ]
