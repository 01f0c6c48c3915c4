from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .mapping import ColumnMapping

Row = Tuple[str, ...]

DEFAULT_PROVENANCE_COLUMN = "Source File"


@dataclass(frozen=True)
class Table:
    """Ordered header plus ordered rows of text cells.

    Every row has exactly as many cells as the header. Short records are padded
    by the ingester; a Table never pads or truncates on its own.
    """

    header: Row
    rows: Tuple[Row, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "header", tuple(self.header))
        object.__setattr__(self, "rows", tuple(tuple(r) for r in self.rows))
        width = len(self.header)
        for idx, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {idx} has {len(row)} cells but the header has {width} columns."
                )

    @property
    def column_count(self) -> int:
        return len(self.header)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_grid(self, include_header: bool = True) -> List[List[str]]:
        grid = [list(self.header)] if include_header else []
        grid.extend(list(r) for r in self.rows)
        return grid


@dataclass(frozen=True)
class Source:
    name: str
    table: Table
    sheet_label: Optional[str] = None


class JoinType(str, Enum):
    LEFT = "left"
    INNER = "inner"
    RIGHT = "right"
    OUTER = "outer"

    @classmethod
    def parse(cls, value) -> "JoinType":
        if isinstance(value, cls):
            return value
        text = str(value or '').strip().lower()
        for member in cls:
            if member.value == text:
                return member
        valid = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown join type {value!r}. Expected one of: {valid}.")


@dataclass(frozen=True)
class JoinSpec:
    key_column: str
    join_type: JoinType = JoinType.LEFT
    column_mapping: Optional["ColumnMapping"] = None

    def __post_init__(self):
        object.__setattr__(self, "join_type", JoinType.parse(self.join_type))


@dataclass(frozen=True)
class MergeReport:
    total_rows: int
    fully_matched_rows: int
    partially_matched_rows: int
    source_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "fully_matched_rows": self.fully_matched_rows,
            "partially_matched_rows": self.partially_matched_rows,
            "source_count": self.source_count,
        }


@dataclass(frozen=True)
class MergedResult:
    header: Row
    rows: Tuple[Row, ...]
    report: MergeReport = field(default_factory=lambda: MergeReport(0, 0, 0, 0))

    def to_table(self) -> Table:
        return Table(self.header, self.rows)
