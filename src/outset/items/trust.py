"""Content-hash allow-list for managed items.

When the mapping is empty, trust checking is off and every item is
NOT_TRACKED. Once an administrator records any hash, every item must match
its recorded SHA-256 digest exactly.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import hashlib
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional

import yaml

from outset.items.discovery import Item
from outset.storage import StoreError, atomic_write_text, read_text

CHUNK_SIZE = 1024 * 1024

# Primary archive inside a bundle-style package
BUNDLE_ARCHIVE = Path("Contents") / "Archive.pax.gz"


class TrustVerificationError(Exception):
    """Raised when an item does not match the trust mapping."""

    pass


class TrustStatus(Enum):
    TRUSTED = "trusted"
    UNTRUSTED = "untrusted"
    NOT_TRACKED = "not_tracked"


def _hash_target(path: Path) -> Path:
    if path.is_dir():
        return path / BUNDLE_ARCHIVE
    return path


def compute_hash(path: Path) -> str:
    """Compute the SHA-256 hex digest of a file.

    For a bundle package (a directory) the digest covers its primary archive.

    Raises:
        OSError: If the file cannot be read.
    """
    digest = hashlib.sha256()
    with open(_hash_target(Path(path)), "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


class TrustStore:
    """Mapping of absolute item path to expected SHA-256 digest."""

    def __init__(self, hashes: Optional[Dict[str, str]] = None):
        self.hashes: Dict[str, str] = dict(hashes or {})

    @property
    def enforced(self) -> bool:
        return bool(self.hashes)

    def verify(self, item: Item) -> TrustStatus:
        if not self.enforced:
            return TrustStatus.NOT_TRACKED

        expected = self.hashes.get(str(item.path))
        if expected is None:
            return TrustStatus.UNTRUSTED

        try:
            actual = compute_hash(item.path)
        except OSError:
            return TrustStatus.UNTRUSTED

        if actual.lower() != expected.lower():
            return TrustStatus.UNTRUSTED
        return TrustStatus.TRUSTED

    def check(self, item: Item) -> TrustStatus:
        """Verify an item, raising if it is untrusted.

        Raises:
            TrustVerificationError: If the item is absent from the mapping or
                its digest does not match.
        """
        status = self.verify(item)
        if status == TrustStatus.UNTRUSTED:
            if str(item.path) in self.hashes:
                raise TrustVerificationError(f"hash mismatch for {item.path}")
            raise TrustVerificationError(f"{item.path} is not in the trust mapping")
        return status

    def regenerate(self, items: Iterable[Item]) -> Dict[str, str]:
        """Replace the mapping with fresh digests for the given items.

        Unreadable items are left out of the new mapping.
        """
        hashes = {}
        for item in items:
            try:
                hashes[str(item.path)] = compute_hash(item.path)
            except OSError:
                continue
        self.hashes = hashes
        return dict(hashes)

    @classmethod
    def load(cls, path: Path) -> "TrustStore":
        """Load the trust mapping from a YAML file. A missing file means no mapping.

        Raises:
            StoreError: If the file is unreadable or malformed.
        """
        text = read_text(path)
        if text is None:
            return cls()

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise StoreError(f"invalid YAML in {path}: {e}")

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise StoreError(f"trust file {path} must contain a YAML mapping")
        return cls({str(k): str(v) for k, v in data.items()})

    def save(self, path: Path) -> None:
        atomic_write_text(path, yaml.safe_dump(dict(sorted(self.hashes.items()))), mode=0o644)
