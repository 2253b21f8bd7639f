"""Shared fixtures for Outset tests."""

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from outset.config import OutsetPaths, Preferences
from outset.items import (
    Executor,
    ItemProcessor,
    MemoryTrigger,
    NetworkGate,
    PermissionValidator,
    PrivilegeGate,
    RunHistory,
    TrustStore,
)
from outset.lifecycle import Outset, Session


class FakeClock:
    """Monotonic clock that only moves when sleep() is called."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = 0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps += 1
        self.now += seconds


class SteppingClock:
    """UTC clock advancing one minute per call."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(minutes=1)
        return self.current


def write_script(directory: Path, name: str, body: str = "exit 0", mode: int = 0o755) -> Path:
    """Write a shell script item with explicit permissions."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(f"#!/bin/sh\n{body}\n")
    os.chmod(path, mode)
    return path


@pytest.fixture
def make_script():
    return write_script


@pytest.fixture
def clock():
    return SteppingClock()


@pytest.fixture
def history(tmp_path):
    return RunHistory(tmp_path / "state" / "run-once.json")


@pytest.fixture
def validator():
    # Items created by the test user stand in for root-owned items
    return PermissionValidator(owner_uid=os.getuid())


@pytest.fixture
def processor(validator, history, clock):
    return ItemProcessor(
        validator=validator,
        trust_store=TrustStore(),
        history=history,
        executor=Executor(),
        clock=clock,
    )


@pytest.fixture
def paths(tmp_path):
    return OutsetPaths(
        root=tmp_path / "outset",
        trigger_dir=tmp_path / "triggers",
        preferences_file=tmp_path / "prefs" / "outset.yaml",
        trust_file=tmp_path / "prefs" / "sha256sum.yaml",
        log_file=tmp_path / "outset.log",
        history_file=tmp_path / "history" / "run-once.json",
    )


@pytest.fixture
def build_outset(paths, validator, clock):
    """Factory for an Outset wired to temp paths and in-memory triggers."""

    def _build(
        console_user: str = "alice",
        process_user: str = "root",
        preferences: Preferences = None,
        hashes: dict = None,
        network_up=lambda: True,
    ) -> Outset:
        session = Session(console_user=console_user, process_user=process_user)
        processor = ItemProcessor(
            validator=validator,
            trust_store=TrustStore(hashes),
            history=RunHistory(paths.history_path, elevated=session.elevated),
            executor=Executor(),
            clock=clock,
        )
        gate = PrivilegeGate(
            login_privileged=MemoryTrigger(),
            cleanup=MemoryTrigger(),
            on_demand=MemoryTrigger(),
            schedule=lambda delay, job: job(),
        )
        fake_time = FakeClock()
        return Outset(
            paths=paths,
            preferences=preferences or Preferences(),
            processor=processor,
            gate=gate,
            session=session,
            network=NetworkGate(check=network_up, sleep=fake_time.sleep, clock=fake_time),
            login_window=MagicMock(),
            clock=clock,
        )

    return _build


@pytest.fixture(autouse=True)
def reset_outset_logger():
    """Undo CLI logging setup so caplog sees records in every test."""
    yield
    logger = logging.getLogger("outset")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
