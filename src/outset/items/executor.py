"""Item executor.

Runs a script directly, or an installer package through the platform
installer, streaming output into the log as it arrives.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import subprocess
from dataclasses import dataclass, field
from typing import List

from outset.items.discovery import Item, ItemKind

logger = logging.getLogger(__name__)

INSTALLER = "/usr/sbin/installer"

# Exit code reported when the process could not be started at all
COULD_NOT_LAUNCH = -1


class ExecutionError(Exception):
    """Raised when an item exits nonzero or could not be launched."""

    def __init__(self, message: str, exit_code: int):
        super().__init__(message)
        self.exit_code = exit_code


@dataclass
class ExecutionResult:
    """Outcome of running one item."""

    item: Item
    exit_code: int
    launched: bool = True
    output: List[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.launched and self.exit_code == 0

    def raise_for_status(self) -> None:
        """Raise ExecutionError unless the item succeeded."""
        if not self.launched:
            raise ExecutionError(f"could not launch {self.item.path}", self.exit_code)
        if self.exit_code != 0:
            raise ExecutionError(
                f"{self.item.path} exited with code {self.exit_code}", self.exit_code
            )


class Executor:
    """Runs items as child processes."""

    def __init__(self, installer: str = INSTALLER):
        self.installer = installer

    def command_for(self, item: Item) -> List[str]:
        if item.kind == ItemKind.PACKAGE:
            return [self.installer, "-pkg", str(item.path), "-target", "/"]
        return [str(item.path)]

    def run(self, item: Item) -> ExecutionResult:
        command = self.command_for(item)
        logger.info(f"Processing {item.path}")

        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
            )
        except OSError as e:
            logger.error(f"Could not launch {item.path}: {e}")
            return ExecutionResult(item=item, exit_code=COULD_NOT_LAUNCH, launched=False)

        output = []
        with process:
            for line in process.stdout:
                line = line.rstrip("\n")
                output.append(line)
                logger.info(f"{item.name}: {line}")
            exit_code = process.wait()

        return ExecutionResult(item=item, exit_code=exit_code, output=output)
