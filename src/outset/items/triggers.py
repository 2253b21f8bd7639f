# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Trigger files and the privilege gate built on them.

A trigger is a zero-byte marker whose existence is the whole signal. One
phase creates it; whichever phase sees it first deletes it. Deleting an
absent trigger is not an error.
"""

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from outset.items.discovery import clear_directory

logger = logging.getLogger(__name__)

CLEANUP_DELAY = 0.5


class FileTrigger:
    """Trigger backed by a marker file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def create(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.touch()

    def exists(self) -> bool:
        return self.path.exists()

    def check_and_delete(self) -> bool:
        """Delete the trigger. Returns True if it was present."""
        try:
            self.path.unlink()
            return True
        except FileNotFoundError:
            return False


class MemoryTrigger:
    """In-process trigger, for tests and single-process use."""

    def __init__(self, present: bool = False):
        self.present = present

    def create(self) -> None:
        self.present = True

    def exists(self) -> bool:
        return self.present

    def check_and_delete(self) -> bool:
        was_present = self.present
        self.present = False
        return was_present


def _start_timer(delay: float, job: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, job)
    timer.start()
    return timer


class PrivilegeGate:
    """Hands work from one phase to another through trigger files.

    Channels:
    - login_privileged: standard login -> privileged login pass
    - cleanup: on-demand pass -> deferred cleanup sweep
    - on_demand: administrator request -> cleanup entry point
    """

    def __init__(
        self,
        login_privileged,
        cleanup,
        on_demand,
        delay: float = CLEANUP_DELAY,
        schedule: Callable[[float, Callable[[], None]], threading.Timer] = _start_timer,
    ):
        self.login_privileged = login_privileged
        self.cleanup = cleanup
        self.on_demand = on_demand
        self.delay = delay
        self.schedule = schedule

    def request_privileged_login(self) -> None:
        logger.debug("Requesting privileged login pass")
        self.login_privileged.create()

    def consume_privileged_login(self) -> bool:
        return self.login_privileged.check_and_delete()

    def begin_on_demand(self) -> None:
        self.cleanup.create()

    def consume_on_demand(self) -> bool:
        return self.on_demand.check_and_delete()

    def schedule_cleanup(self, directory: Path) -> Optional[threading.Timer]:
        """Schedule the deferred sweep of the cleanup trigger and directory.

        The delay starts when this is called. Callers invoke it once the
        on-demand pass has completed, so the sweep never races running items.

        Returns:
            The scheduled job; call ``cancel()`` to drop it.
        """

        def _sweep() -> None:
            if self.cleanup.check_and_delete():
                logger.debug("Removed on-demand cleanup trigger")
            clear_directory(directory)

        return self.schedule(self.delay, _sweep)
