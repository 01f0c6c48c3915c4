from __future__ import annotations

from typing import Dict, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")


def normalize_column_name(name) -> str:
    """Comparison key for column names: surrounding whitespace trimmed, lowercased.

    Two headers are the same column when their normalized keys are equal.
    """
    if name is None:
        return ''
    if not isinstance(name, str):
        name = str(name)
    return name.strip().lower()


class NormalizedIndex(Generic[T]):
    """Mapping keyed by normalized column name.

    Every lookup and insert goes through `normalize_column_name`, so callers
    never compare raw header cells themselves.
    """

    def __init__(self) -> None:
        self._items: Dict[str, T] = {}

    def __contains__(self, name) -> bool:
        return normalize_column_name(name) in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def get(self, name, default: Optional[T] = None) -> Optional[T]:
        return self._items.get(normalize_column_name(name), default)

    def add(self, name, value: T) -> bool:
        """Insert `value` unless the name is already present. Returns True if inserted."""
        key = normalize_column_name(name)
        if key in self._items:
            return False
        self._items[key] = value
        return True
