"""Configuration for the Table Merger app."""

import os
import tempfile
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from .models import DEFAULT_PROVENANCE_COLUMN

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


class Settings(BaseModel):
    """Application settings."""

    # Gradio server
    host: str = "127.0.0.1"
    port: int = 7860
    log_level: str = "INFO"

    # Merge defaults
    provenance_column: str = DEFAULT_PROVENANCE_COLUMN
    ingest_workers: int = 4

    # UI limits
    preview_rows: int = 10
    size_warning_mb: int = 10  # warn above this total upload size

    # Where exported files are written (system temp dir when unset)
    output_dir: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", "127.0.0.1"),
            port=_env_int("PORT", 7860),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            provenance_column=os.getenv("PROVENANCE_COLUMN", DEFAULT_PROVENANCE_COLUMN),
            ingest_workers=_env_int("INGEST_WORKERS", 4),
            preview_rows=_env_int("PREVIEW_ROWS", 10),
            size_warning_mb=_env_int("SIZE_WARNING_MB", 10),
            output_dir=os.getenv("OUTPUT_DIR") or None,
        )

    @property
    def export_dir(self) -> str:
        return self.output_dir or tempfile.gettempdir()


settings = Settings.from_env()
