# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Lifecycle entry points and administrative operations.

The scheduler calls one entry point per invocation (boot, login, privileged
login, on-demand, cleanup). Each maps to fixed category directories and
execution policies and hands them to the ItemProcessor.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from outset import system
from outset.config import OutsetPaths, Preferences, load_preferences, save_preferences
from outset.items import (
    Cadence,
    ExecutionPolicy,
    Executor,
    FileTrigger,
    ItemProcessor,
    NetworkGate,
    NetworkTimeoutError,
    PassRecord,
    PermissionValidator,
    Privilege,
    PrivilegeGate,
    RunHistory,
    TrustStore,
    clear_directory,
    compute_hash,
    list_items,
)

logger = logging.getLogger(__name__)

FIRST_BOOT = "boot-once"
NO_SESSION_USERS = ("root", "loginwindow")


class PrivilegeError(Exception):
    """Raised when an administrative command runs without root."""

    pass


@dataclass(frozen=True)
class Category:
    """A managed directory and the policy its items run under."""

    name: str
    policy: ExecutionPolicy

    def __post_init__(self):
        if self.policy.delete_after_run and self.name != FIRST_BOOT:
            raise ValueError(f"only {FIRST_BOOT} items may be deleted after running, not {self.name}")


BOOT_ONCE = Category(
    "boot-once", ExecutionPolicy(Cadence.ONCE, Privilege.ELEVATED, delete_after_run=True)
)
BOOT_EVERY = Category("boot-every", ExecutionPolicy(Cadence.EVERY, Privilege.ELEVATED))
LOGIN_ONCE = Category("login-once", ExecutionPolicy(Cadence.ONCE, Privilege.STANDARD))
LOGIN_EVERY = Category("login-every", ExecutionPolicy(Cadence.EVERY, Privilege.STANDARD))
LOGIN_PRIVILEGED_ONCE = Category(
    "login-privileged-once", ExecutionPolicy(Cadence.ONCE, Privilege.ELEVATED)
)
LOGIN_PRIVILEGED_EVERY = Category(
    "login-privileged-every", ExecutionPolicy(Cadence.EVERY, Privilege.ELEVATED)
)
ON_DEMAND = Category("on-demand", ExecutionPolicy(Cadence.EVERY, Privilege.STANDARD))

CATEGORIES = (
    BOOT_ONCE,
    BOOT_EVERY,
    LOGIN_ONCE,
    LOGIN_EVERY,
    LOGIN_PRIVILEGED_ONCE,
    LOGIN_PRIVILEGED_EVERY,
    ON_DEMAND,
)


@dataclass(frozen=True)
class Session:
    """Who is at the console and who this process runs as."""

    console_user: str
    process_user: str

    @property
    def elevated(self) -> bool:
        return self.process_user == "root"

    @classmethod
    def current(cls) -> "Session":
        return cls(console_user=system.console_user(), process_user=system.current_user())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Outset:
    """Lifecycle entry points for one invocation."""

    def __init__(
        self,
        paths: OutsetPaths,
        preferences: Preferences,
        processor: ItemProcessor,
        gate: PrivilegeGate,
        session: Session,
        network: Optional[NetworkGate] = None,
        login_window: Optional[system.LoginWindow] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.paths = paths
        self.preferences = preferences
        self.processor = processor
        self.gate = gate
        self.session = session
        self.network = network or NetworkGate()
        self.login_window = login_window or system.LoginWindow()
        self.clock = clock
        self.cleanup_job = None

    @classmethod
    def from_environment(
        cls, paths: Optional[OutsetPaths] = None, session: Optional[Session] = None
    ) -> "Outset":
        """Load stores and build the real components.

        Raises:
            StoreError: If preferences or the trust mapping cannot be loaded.
        """
        paths = paths or OutsetPaths.from_env()
        session = session or Session.current()
        processor = ItemProcessor(
            validator=PermissionValidator(),
            trust_store=TrustStore.load(paths.trust_file),
            history=RunHistory(paths.history_path, elevated=session.elevated),
            executor=Executor(),
        )
        gate = PrivilegeGate(
            login_privileged=FileTrigger(paths.login_privileged_trigger),
            cleanup=FileTrigger(paths.cleanup_trigger),
            on_demand=FileTrigger(paths.on_demand_trigger),
        )
        return cls(
            paths=paths,
            preferences=load_preferences(paths.preferences_file),
            processor=processor,
            gate=gate,
            session=session,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def directory(self, category: Category) -> Path:
        return self.paths.category_dir(category.name)

    def has_items(self, category: Category) -> bool:
        return bool(list_items(self.directory(category)))

    def is_ignored(self) -> bool:
        return self.session.console_user in self.preferences.ignored_users

    def _process(self, category: Category, use_overrides: bool = False) -> Optional[PassRecord]:
        if category.policy.privilege == Privilege.ELEVATED and not self.session.elevated:
            logger.error(f"Must be root to process {category.name}, skipping")
            return None
        overrides = self.preferences.override_login_once if use_overrides else None
        return self.processor.run(
            self.directory(category),
            category.policy,
            user=self.session.console_user,
            overrides=overrides,
        )

    def _process_if_any(self, category: Category, records: List[PassRecord], **kwargs) -> None:
        if self.has_items(category):
            record = self._process(category, **kwargs)
            if record is not None:
                records.append(record)

    def ensure_working_folders(self) -> None:
        folders = [self.paths.root, self.paths.share_dir, self.paths.logs_dir]
        folders += [self.directory(c) for c in CATEGORIES]
        for folder in folders:
            if not folder.exists():
                logger.debug(f"{folder} does not exist, creating now.")
                folder.mkdir(parents=True, exist_ok=True)
                os.chmod(folder, 0o755)

    # =========================================================================
    # Entry points
    # =========================================================================

    def boot(self) -> List[PassRecord]:
        logger.debug("Processing scheduled runs for boot")
        self.ensure_working_folders()
        save_preferences(self.paths.preferences_file, self.preferences)

        records: List[PassRecord] = []
        if self.has_items(BOOT_ONCE):
            login_window_disabled = False
            try:
                if self.preferences.wait_for_network:
                    self.login_window.disable()
                    login_window_disabled = True
                    self.network.require_network(self.preferences.network_timeout)
                system.sys_report()
                self._process_if_any(BOOT_ONCE, records, use_overrides=True)
            except NetworkTimeoutError:
                logger.error("Unable to connect to network. Skipping boot-once scripts...")
            finally:
                if login_window_disabled:
                    self.login_window.enable()

        self._process_if_any(BOOT_EVERY, records)
        logger.info("Boot processing complete")
        return records

    def login(self) -> List[PassRecord]:
        logger.debug("Processing scheduled runs for login")
        records: List[PassRecord] = []
        if self.is_ignored():
            logger.info(f"Skipping login scripts for user {self.session.console_user}")
            return records

        self._process_if_any(LOGIN_ONCE, records, use_overrides=True)
        self._process_if_any(LOGIN_EVERY, records)
        if self.has_items(LOGIN_PRIVILEGED_ONCE) or self.has_items(LOGIN_PRIVILEGED_EVERY):
            self.gate.request_privileged_login()
        return records

    def login_privileged(self) -> List[PassRecord]:
        logger.debug("Processing scheduled runs for privileged login")
        if self.gate.consume_privileged_login():
            logger.debug("Removed privileged login trigger")

        records: List[PassRecord] = []
        if self.is_ignored():
            logger.info(f"Skipping login scripts for user {self.session.console_user}")
            return records

        self._process_if_any(LOGIN_PRIVILEGED_ONCE, records, use_overrides=True)
        self._process_if_any(LOGIN_PRIVILEGED_EVERY, records)
        return records

    def on_demand(self) -> List[PassRecord]:
        logger.debug("Processing on-demand")
        records: List[PassRecord] = []
        if not self.has_items(ON_DEMAND):
            return records

        self.gate.begin_on_demand()
        console_user = self.session.console_user
        if console_user in NO_SESSION_USERS:
            logger.info("No current user session. Skipping on-demand run.")
        elif console_user != self.session.process_user:
            logger.info(
                f"User {self.session.process_user} is not the current console user. "
                f"Skipping on-demand run."
            )
        else:
            self._process_if_any(ON_DEMAND, records)

        # Sweep delay counts from pass completion
        self.cleanup_job = self.gate.schedule_cleanup(self.directory(ON_DEMAND))
        return records

    def login_every(self) -> List[PassRecord]:
        logger.debug("Processing scripts in login-every")
        records: List[PassRecord] = []
        if not self.is_ignored():
            self._process_if_any(LOGIN_EVERY, records)
        return records

    def login_once(self) -> List[PassRecord]:
        logger.debug("Processing scripts in login-once")
        records: List[PassRecord] = []
        if not self.is_ignored():
            self._process_if_any(LOGIN_ONCE, records, use_overrides=True)
        return records

    def cleanup(self) -> None:
        logger.debug("Cleaning up on-demand directory.")
        if self.gate.consume_on_demand():
            logger.debug("Removed on-demand trigger")
        clear_directory(self.directory(ON_DEMAND))

    # =========================================================================
    # Administrative operations
    # =========================================================================

    def ensure_root(self, reason: str) -> None:
        """
        Raises:
            PrivilegeError: If this process is not running as root.
        """
        if not self.session.elevated:
            logger.error(f"Must be root to {reason}")
            raise PrivilegeError(f"must be root to {reason}")

    def _save_preferences(self) -> None:
        save_preferences(self.paths.preferences_file, self.preferences)

    def add_ignored_users(self, usernames: Iterable[str]) -> None:
        self.ensure_root("add to ignored users")
        for username in usernames:
            if username in self.preferences.ignored_users:
                logger.info(f'User "{username}" is already in the ignored users list')
            else:
                logger.info(f"Adding {username} to ignored users list")
                self.preferences.ignored_users.append(username)
        self._save_preferences()

    def remove_ignored_users(self, usernames: Iterable[str]) -> None:
        self.ensure_root("remove ignored users")
        for username in usernames:
            if username in self.preferences.ignored_users:
                logger.info(f"Removing {username} from ignored users list")
                self.preferences.ignored_users.remove(username)
        self._save_preferences()

    def override_path(self, script: str) -> str:
        """Resolve a bare script name into the login-once directory."""
        path = Path(script)
        if not path.is_absolute():
            path = self.directory(LOGIN_ONCE) / path
        return str(path)

    def add_overrides(self, scripts: Iterable[str]) -> None:
        self.ensure_root("add scripts to override list")
        for script in scripts:
            path = self.override_path(script)
            logger.debug(f"Adding {path} to override list")
            self.preferences.override_login_once[path] = self.clock()
        self._save_preferences()

    def remove_overrides(self, scripts: Iterable[str]) -> None:
        self.ensure_root("remove scripts from override list")
        for script in scripts:
            path = self.override_path(script)
            logger.debug(f"Removing {path} from override list")
            self.preferences.override_login_once.pop(path, None)
        self._save_preferences()

    def all_items(self):
        for category in CATEGORIES:
            yield from list_items(self.directory(category))

    def regenerate_trust(self) -> Dict[str, str]:
        """Recompute digests for every current item and rewrite the trust file."""
        self.ensure_root("regenerate the trust mapping")
        hashes = self.processor.trust_store.regenerate(self.all_items())
        self.processor.trust_store.save(self.paths.trust_file)
        logger.info(f"Recorded {len(hashes)} hashes in {self.paths.trust_file}")
        return hashes

    def hash_report(self) -> Dict[str, str]:
        return dict(self.processor.trust_store.hashes)


def compute_hashes(files: Iterable[str]) -> Dict[str, str]:
    """SHA-256 digests for the given files. Unreadable files are logged and left out."""
    hashes = {}
    for file_name in files:
        try:
            hashes[file_name] = compute_hash(Path(file_name))
        except OSError as e:
            logger.error(f"Unable to hash {file_name}: {e}")
    return hashes
