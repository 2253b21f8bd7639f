"""Item processing and trust engine.

Discovers items in managed directories, validates ownership, permissions and
content hashes, runs them and records run-once history.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

from outset.items.discovery import (
    Item,
    ItemKind,
    clear_directory,
    list_items,
    remove_path,
)
from outset.items.executor import (
    COULD_NOT_LAUNCH,
    ExecutionError,
    ExecutionResult,
    Executor,
)
from outset.items.history import RunHistory
from outset.items.network import (
    NetworkGate,
    NetworkStatus,
    NetworkTimeoutError,
    is_network_up,
)
from outset.items.permissions import PermissionValidator, Verdict
from outset.items.processor import (
    Cadence,
    ExecutionPolicy,
    ItemOutcome,
    ItemProcessor,
    OutcomeStatus,
    PassRecord,
    Privilege,
)
from outset.items.triggers import FileTrigger, MemoryTrigger, PrivilegeGate
from outset.items.trust import (
    TrustStatus,
    TrustStore,
    TrustVerificationError,
    compute_hash,
)

__all__ = [
    "Item",
    "ItemKind",
    "list_items",
    "remove_path",
    "clear_directory",
    "PermissionValidator",
    "Verdict",
    "TrustStore",
    "TrustStatus",
    "TrustVerificationError",
    "compute_hash",
    "RunHistory",
    "NetworkGate",
    "NetworkStatus",
    "NetworkTimeoutError",
    "is_network_up",
    "Executor",
    "ExecutionResult",
    "ExecutionError",
    "COULD_NOT_LAUNCH",
    "ItemProcessor",
    "ExecutionPolicy",
    "Cadence",
    "Privilege",
    "ItemOutcome",
    "OutcomeStatus",
    "PassRecord",
    "FileTrigger",
    "MemoryTrigger",
    "PrivilegeGate",
]
