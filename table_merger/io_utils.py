from __future__ import annotations

import os
from typing import Tuple


def upload_name(file_obj) -> str:
    """Best-effort display name (base file name) for an upload."""
    if file_obj is None:
        return ''
    if isinstance(file_obj, (str, os.PathLike)):
        return os.path.basename(os.fspath(file_obj))
    name = getattr(file_obj, 'orig_name', None) or getattr(file_obj, 'name', None)
    return os.path.basename(str(name)) if name else 'upload'


def read_upload(file_obj) -> Tuple[str, bytes]:
    """Read raw bytes from an uploaded file or file path.

    Returns ``(file name, content)``.
    """
    if file_obj is None:
        raise ValueError("No file uploaded.")

    if hasattr(file_obj, 'read'):
        if hasattr(file_obj, 'seek'):
            file_obj.seek(0)
        content = file_obj.read()
        if isinstance(content, str):
            content = content.encode('utf-8')
        return upload_name(file_obj), content

    path = file_obj.name if hasattr(file_obj, 'name') else file_obj
    with open(path, 'rb') as f:
        return upload_name(file_obj), f.read()


def upload_size(file_obj) -> int:
    """Size in bytes of an upload given as a path; 0 when unknown."""
    path = getattr(file_obj, 'name', file_obj)
    try:
        return os.path.getsize(path)
    except (OSError, TypeError):
        return 0
