# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Configuration for Outset.

Two pieces:
- OutsetPaths: where the managed directories, trigger files and stores live.
- Preferences: the administrator-managed preference record (YAML).

Both are loaded once at process start and handed to the components that
need them. Nothing here is module-global state.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from outset.storage import StoreError, atomic_write_text, read_text


DEFAULT_ROOT = Path("/usr/local/outset")
DEFAULT_TRIGGER_DIR = Path("/private/tmp")
DEFAULT_PREFERENCES = Path("/Library/Preferences/io.macadmins.Outset.yaml")
DEFAULT_TRUST_FILE = Path("/Library/Preferences/io.macadmins.Outset.sha256sum.yaml")

ON_DEMAND_TRIGGER = ".io.macadmins.outset.ondemand.launchd"
LOGIN_PRIVILEGED_TRIGGER = ".io.macadmins.outset.login-privileged.launchd"
CLEANUP_TRIGGER = ".io.macadmins.outset.cleanup.launchd"


class PreferencesError(StoreError):
    """Raised when the preference record is malformed."""

    pass


@dataclass(frozen=True)
class OutsetPaths:
    """Filesystem layout of an Outset installation."""

    root: Path = DEFAULT_ROOT
    trigger_dir: Path = DEFAULT_TRIGGER_DIR
    preferences_file: Path = DEFAULT_PREFERENCES
    trust_file: Path = DEFAULT_TRUST_FILE
    log_file: Optional[Path] = None
    history_file: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "OutsetPaths":
        """Build paths from OUTSET_* environment variables, falling back to defaults."""

        def _env_path(name: str, default: Optional[Path]) -> Optional[Path]:
            value = os.environ.get(name)
            return Path(value).expanduser() if value else default

        return cls(
            root=_env_path("OUTSET_ROOT", DEFAULT_ROOT),
            trigger_dir=_env_path("OUTSET_TRIGGER_DIR", DEFAULT_TRIGGER_DIR),
            preferences_file=_env_path("OUTSET_PREFERENCES", DEFAULT_PREFERENCES),
            trust_file=_env_path("OUTSET_TRUST_FILE", DEFAULT_TRUST_FILE),
            log_file=_env_path("OUTSET_LOG_FILE", None),
            history_file=_env_path("OUTSET_HISTORY_FILE", None),
        )

    def category_dir(self, name: str) -> Path:
        """Directory for a category such as ``login-once``."""
        return self.root / name

    @property
    def share_dir(self) -> Path:
        return self.root / "share"

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def log_path(self) -> Path:
        return self.log_file or self.logs_dir / "outset.log"

    @property
    def history_path(self) -> Path:
        return self.history_file or Path("~/.outset/run-once.json").expanduser()

    @property
    def on_demand_trigger(self) -> Path:
        return self.trigger_dir / ON_DEMAND_TRIGGER

    @property
    def login_privileged_trigger(self) -> Path:
        return self.trigger_dir / LOGIN_PRIVILEGED_TRIGGER

    @property
    def cleanup_trigger(self) -> Path:
        return self.trigger_dir / CLEANUP_TRIGGER


@dataclass
class Preferences:
    """Administrator preference record.

    Fields:
    - wait_for_network: Gate boot-once processing on network reachability
    - network_timeout: Seconds to wait for the network before giving up
    - ignored_users: Users exempt from all login-phase processing
    - override_login_once: item path -> override epoch for once items
    """

    wait_for_network: bool = False
    network_timeout: int = 180
    ignored_users: List[str] = field(default_factory=list)
    override_login_once: Dict[str, datetime] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wait_for_network": self.wait_for_network,
            "network_timeout": self.network_timeout,
            "ignored_users": list(self.ignored_users),
            "override_login_once": {
                path: format_timestamp(when)
                for path, when in sorted(self.override_login_once.items())
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Preferences":
        """Decode a preference mapping, applying defaults for absent keys.

        Raises:
            PreferencesError: If a field has the wrong type.
        """
        prefs = cls()

        wait = data.get("wait_for_network", prefs.wait_for_network)
        if not isinstance(wait, bool):
            raise PreferencesError(f"wait_for_network must be a boolean, got: {wait!r}")
        prefs.wait_for_network = wait

        timeout = data.get("network_timeout", prefs.network_timeout)
        if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout < 0:
            raise PreferencesError(
                f"network_timeout must be a non-negative integer, got: {timeout!r}"
            )
        prefs.network_timeout = timeout

        users = data.get("ignored_users") or []
        if not isinstance(users, list) or not all(isinstance(u, str) for u in users):
            raise PreferencesError(f"ignored_users must be a list of names, got: {users!r}")
        prefs.ignored_users = list(users)

        overrides = data.get("override_login_once") or {}
        if not isinstance(overrides, dict):
            raise PreferencesError(
                f"override_login_once must be a mapping, got: {overrides!r}"
            )
        for path, when in overrides.items():
            try:
                prefs.override_login_once[str(path)] = parse_timestamp(when)
            except (TypeError, ValueError) as e:
                raise PreferencesError(f"invalid override timestamp for {path}: {e}")

        return prefs


def format_timestamp(when: datetime) -> str:
    """Render a timestamp as ISO 8601 UTC."""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 string (or YAML datetime) into an aware UTC datetime.

    Naive values are taken to be UTC.
    """
    if isinstance(value, datetime):
        when = value
    elif isinstance(value, str):
        when = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"expected a timestamp, got: {value!r}")
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def load_preferences(path: Path) -> Preferences:
    """Load preferences from a YAML file.

    Returns:
        Preferences, or defaults if the file doesn't exist.

    Raises:
        StoreError: If the file is unreadable or not a YAML mapping.
    """
    text = read_text(path)
    if text is None:
        return Preferences()

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PreferencesError(f"invalid YAML in {path}: {e}")

    if data is None:
        return Preferences()
    if not isinstance(data, dict):
        raise PreferencesError(f"preferences file {path} must contain a YAML mapping")

    return Preferences.from_dict(data)


def save_preferences(path: Path, prefs: Preferences) -> None:
    """Write preferences to a YAML file."""
    atomic_write_text(path, yaml.safe_dump(prefs.to_dict(), sort_keys=False), mode=0o644)
