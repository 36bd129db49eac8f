"""
Store Utilities
===============

File-system helpers used by the registration pipeline and the pruner, and
formatting helpers for logs and the command line.
"""

import os
import uuid
from pathlib import Path
from typing import List, Union


def write_file_atomic(file_path: Union[str, Path], data: bytes) -> None:
    """
    Writes data to file_path so readers never observe a partial file.

    Parent directories are created. The bytes go to a temporary sibling
    first, are flushed to disk, and are then moved into place. The file is
    created with the process umask applied, like any plain open().
    OSError propagates to the caller.
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_name = file_path.with_name(f".{file_path.name}.{uuid.uuid4().hex}.tmp")
    try:
        with open(tmp_name, "xb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, file_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def list_files_recursive(directory: Union[str, Path]) -> List[Path]:
    """
    Returns every regular file below directory, sorted. A missing directory yields [].
    """
    root = Path(directory)
    if not root.is_dir():
        return []
    return sorted(p for p in root.rglob("*") if p.is_file())


def directory_size(directory: Union[str, Path]) -> int:
    """Total size in bytes of the regular files directly inside directory."""
    root = Path(directory)
    if not root.is_dir():
        return 0
    return sum(p.stat().st_size for p in root.iterdir() if p.is_file())


def format_file_size(num_bytes: int) -> str:
    """
    Formats a file size in bytes to a human-readable string (e.g. '1.5 MB').
    """
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:3.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"
