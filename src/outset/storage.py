# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Atomic writes for the persistent stores (preferences, trust, run history).

Every store is rewritten as a whole file through a temp file and
``os.replace`` so a crash mid-write leaves either the old or the new
content on disk, never a truncated mix.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional


class StoreError(Exception):
    """Raised when a required persistent store cannot be read or written."""

    pass


def atomic_write_text(path: Path, text: str, mode: Optional[int] = None) -> None:
    """Write text to path atomically.

    Args:
        path: Destination file.
        text: Content to write.
        mode: Optional permission bits applied before the rename.

    Raises:
        StoreError: If the directory or file cannot be written.
    """
    path = Path(path)
    tmp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
        tmp_path = None
    except OSError as e:
        raise StoreError(f"unable to write {path}: {e}") from e
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()


def read_text(path: Path) -> Optional[str]:
    """Read a store file, returning None when it does not exist yet.

    Raises:
        StoreError: If the file exists but cannot be read.
    """
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StoreError(f"unable to read {path}: {e}") from e
