"""Item processor.

One pass over a managed directory:

1. List entries, sorted by name
2. Reject items failing the ownership/permission policy
3. Skip once items that already ran (unless overridden)
4. Reject items failing the trust mapping
5. Execute
6. Record once items in run history, whatever the exit status
7. Delete the item if the category asks for it

A failing item never stops the pass.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, List, Mapping, Optional

from outset.items.discovery import Item, list_items, remove_path
from outset.items.executor import ExecutionError, Executor
from outset.items.history import RunHistory
from outset.items.permissions import PermissionValidator
from outset.items.trust import TrustStore, TrustVerificationError

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    """Return current UTC time."""
    return datetime.now(timezone.utc)


class Cadence(Enum):
    ONCE = "once"
    EVERY = "every"


class Privilege(Enum):
    STANDARD = "standard"
    ELEVATED = "elevated"


@dataclass(frozen=True)
class ExecutionPolicy:
    """How items in a directory are run."""

    cadence: Cadence
    privilege: Privilege = Privilege.STANDARD
    delete_after_run: bool = False


class OutcomeStatus(Enum):
    EXECUTED = "executed"
    FAILED = "failed"
    REJECTED = "rejected"
    UNTRUSTED = "untrusted"
    SKIPPED = "skipped"


@dataclass
class ItemOutcome:
    """What happened to one item during a pass."""

    path: Path
    status: OutcomeStatus
    exit_code: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class PassRecord:
    """Result of processing one directory."""

    directory: Path
    policy: ExecutionPolicy
    outcomes: List[ItemOutcome] = field(default_factory=list)

    @property
    def executed(self) -> List[ItemOutcome]:
        """Items that were run, whether they succeeded or not."""
        return [
            o for o in self.outcomes
            if o.status in (OutcomeStatus.EXECUTED, OutcomeStatus.FAILED)
        ]


class ItemProcessor:
    """Validates, runs and records the items of a managed directory."""

    def __init__(
        self,
        validator: PermissionValidator,
        trust_store: TrustStore,
        history: RunHistory,
        executor: Executor,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.validator = validator
        self.trust_store = trust_store
        self.history = history
        self.executor = executor
        self.clock = clock

    def run(
        self,
        directory: Path,
        policy: ExecutionPolicy,
        user: str,
        overrides: Optional[Mapping[str, datetime]] = None,
    ) -> PassRecord:
        """Process every item in a directory under the given policy.

        Args:
            directory: Managed directory to process.
            policy: Cadence, privilege and deletion policy for the directory.
            user: Identity whose run history applies.
            overrides: Override epochs for once items, keyed by item path.

        Returns:
            PassRecord with one outcome per listed item.
        """
        record = PassRecord(directory=Path(directory), policy=policy)
        for item in list_items(directory):
            record.outcomes.append(self._process_item(item, policy, user, overrides))
        return record

    def _process_item(
        self,
        item: Item,
        policy: ExecutionPolicy,
        user: str,
        overrides: Optional[Mapping[str, datetime]],
    ) -> ItemOutcome:
        verdict = self.validator.validate(item)
        if not verdict.accepted:
            logger.error(f"Bad permissions, skipping: {verdict.reason}")
            return ItemOutcome(item.path, OutcomeStatus.REJECTED, reason=verdict.reason)

        once = policy.cadence == Cadence.ONCE
        if once and not self.history.is_eligible(user, item.path, overrides):
            logger.debug(f"{item.path} has already run for {user}, skipping")
            return ItemOutcome(item.path, OutcomeStatus.SKIPPED, reason="already run")

        try:
            self.trust_store.check(item)
        except TrustVerificationError as e:
            logger.error(f"Untrusted item, skipping: {e}")
            return ItemOutcome(item.path, OutcomeStatus.UNTRUSTED, reason=str(e))

        result = self.executor.run(item)
        try:
            result.raise_for_status()
            logger.info(f"{item.path} completed successfully")
            outcome = ItemOutcome(item.path, OutcomeStatus.EXECUTED, exit_code=result.exit_code)
        except ExecutionError as e:
            logger.error(f"Error running {item.name}: {e}")
            outcome = ItemOutcome(
                item.path, OutcomeStatus.FAILED, exit_code=e.exit_code, reason=str(e)
            )

        # Failed runs count as attempted so a broken item can't retry forever
        if once:
            self.history.record_run(user, item.path, self.clock())

        if policy.delete_after_run:
            remove_path(item.path)

        return outcome
