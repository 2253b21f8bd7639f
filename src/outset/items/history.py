"""Run-once history.

Tracks when each once-cadence item last ran, per user, in a JSON file:

    {"run_once": {"/usr/local/outset/login-once/a.sh": "2025-01-02T03:04:05+00:00"}}

A standard process keeps a single ``run_once`` key. An elevated process runs
on behalf of the console user and keys its history ``run_once-<user>`` so
root's own history stays separate.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping, Optional

from outset.config import format_timestamp, parse_timestamp
from outset.storage import StoreError, atomic_write_text, read_text

HISTORY_KEY = "run_once"


class RunHistory:
    """Persistent record of once items already executed."""

    def __init__(self, path: Path, elevated: bool = False):
        self.path = Path(path)
        self.elevated = elevated

    def key_for(self, user: str) -> str:
        if self.elevated:
            return f"{HISTORY_KEY}-{user}"
        return HISTORY_KEY

    def _load(self) -> Dict[str, Dict[str, str]]:
        text = read_text(self.path)
        if text is None:
            return {}
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StoreError(f"corrupted run history {self.path}: {e}")
        if not isinstance(data, dict):
            raise StoreError(f"run history {self.path} must contain a JSON object")
        return data

    def _runs(self, data: Dict, user: str) -> Dict[str, str]:
        key = self.key_for(user)
        runs = data.get(key) or {}
        if not isinstance(runs, dict):
            raise StoreError(f"run history {self.path}: {key} must be a mapping")
        return runs

    def entries(self, user: str) -> Dict[str, datetime]:
        """All recorded runs for a user."""
        raw = self._runs(self._load(), user)
        result = {}
        for item_path, when in raw.items():
            try:
                result[item_path] = parse_timestamp(when)
            except (TypeError, ValueError):
                # Unparseable entry - treat as never run
                continue
        return result

    def last_run(self, user: str, item_path: Path) -> Optional[datetime]:
        return self.entries(user).get(str(item_path))

    def has_run(self, user: str, item_path: Path) -> bool:
        return self.last_run(user, item_path) is not None

    def is_eligible(
        self,
        user: str,
        item_path: Path,
        overrides: Optional[Mapping[str, datetime]] = None,
    ) -> bool:
        """Whether a once item may run for this user.

        Eligible when it has never run, or when an override epoch newer than
        the recorded run exists for it.
        """
        last = self.last_run(user, item_path)
        if last is None:
            return True
        override = (overrides or {}).get(str(item_path))
        return override is not None and parse_timestamp(override) > last

    def record_run(self, user: str, item_path: Path, when: datetime) -> None:
        """Record a run. The whole file is rewritten atomically."""
        data = self._load()
        key = self.key_for(user)
        runs = self._runs(data, user)
        runs[str(item_path)] = format_timestamp(when)
        data[key] = runs
        atomic_write_text(self.path, json.dumps(data, indent=2, sort_keys=True))
