"""Item discovery in managed directories.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

PACKAGE_SUFFIXES = (".pkg", ".mpkg")


class ItemKind(Enum):
    """What an item is, derived from its name."""

    SCRIPT = "script"
    PACKAGE = "package"


@dataclass(frozen=True)
class Item:
    """A script or installer package found in a managed directory."""

    path: Path
    kind: ItemKind

    @classmethod
    def from_path(cls, path: Path) -> "Item":
        path = Path(path).absolute()
        if path.suffix.lower() in PACKAGE_SUFFIXES:
            return cls(path=path, kind=ItemKind.PACKAGE)
        return cls(path=path, kind=ItemKind.SCRIPT)

    @property
    def name(self) -> str:
        return self.path.name


def list_items(directory: Path) -> List[Item]:
    """List items in a directory, non-recursively, sorted by name.

    Hidden entries are ignored. A missing directory has no items.
    """
    directory = Path(directory)
    if not directory.is_dir():
        return []
    entries = [p for p in directory.iterdir() if not p.name.startswith(".")]
    return [Item.from_path(p) for p in sorted(entries, key=lambda p: p.name)]


def remove_path(path: Path) -> None:
    """Delete a file, symlink or directory. A missing path is not an error."""
    path = Path(path)
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
        logger.debug(f"Removed {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Unable to remove {path}: {e}")


def clear_directory(directory: Path) -> None:
    """Remove every entry inside a directory, keeping the directory itself."""
    directory = Path(directory)
    if not directory.is_dir():
        return
    for entry in directory.iterdir():
        remove_path(entry)
