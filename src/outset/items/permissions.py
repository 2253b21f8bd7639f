# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Ownership and writability checks for managed items."""

import os
import stat
from dataclasses import dataclass
from typing import Optional

from outset.items.discovery import Item

ROOT_UID = 0


@dataclass(frozen=True)
class Verdict:
    """Result of validating an item. ``reason`` is set when rejected."""

    accepted: bool
    reason: Optional[str] = None


ACCEPT = Verdict(accepted=True)


class PermissionValidator:
    """Accepts items owned by the privileged account and writable only by it."""

    def __init__(self, owner_uid: int = ROOT_UID):
        self.owner_uid = owner_uid

    def validate(self, item: Item) -> Verdict:
        try:
            st = os.lstat(item.path)
        except OSError as e:
            return Verdict(False, f"unable to stat {item.path}: {e}")

        if st.st_uid != self.owner_uid:
            return Verdict(
                False, f"{item.path} is owned by uid {st.st_uid}, expected uid {self.owner_uid}"
            )
        if st.st_mode & (stat.S_IWGRP | stat.S_IWOTH):
            return Verdict(
                False,
                f"{item.path} is writable by group or others (mode {stat.filemode(st.st_mode)})",
            )
        return ACCEPT
