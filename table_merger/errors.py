"""Exceptions raised by the merge engine.

Every error carries the fields a caller needs to fix its input (source name,
requested vs. available columns), so handlers can show ``str(exc)`` as is.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

__all__ = [
    "MergeError",
    "IngestError",
    "KeyColumnNotFound",
    "NoSources",
]

EMPTY_SOURCE = "empty-source"
MALFORMED_SOURCE = "malformed-source"


class MergeError(ValueError):
    """Base class for all merge engine errors."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
        }


class IngestError(MergeError):
    """A raw source could not be turned into a table."""

    def __init__(self, reason: str, source_name: str, detail: Optional[str] = None) -> None:
        self.reason = reason
        self.source_name = source_name
        self.detail = detail

        if reason == EMPTY_SOURCE:
            message = f"{source_name}: source is empty (no header row found)."
        else:
            message = f"{source_name}: source could not be read."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"reason": self.reason, "source_name": self.source_name, "detail": self.detail})
        return data


class KeyColumnNotFound(MergeError):
    """The join key column is missing from one of the sources."""

    def __init__(self, source_name: str, requested_key: str, available_columns: Sequence[str]) -> None:
        self.source_name = source_name
        self.requested_key = requested_key
        self.available_columns = list(available_columns)

        available = ", ".join(repr(c) for c in self.available_columns) or "(no columns)"
        super().__init__(
            f"Key column {requested_key!r} not found in {source_name}. "
            f"Available columns: {available}."
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "source_name": self.source_name,
            "requested_key": self.requested_key,
            "available_columns": self.available_columns,
        })
        return data


class NoSources(MergeError):
    """A merge was requested without any source."""

    def __init__(self) -> None:
        super().__init__("Upload at least one file before merging.")
