"""
Command runner for Outset.

Runs the OS helper commands used for diagnostics and loginwindow control.
Managed items are not run through here; see outset.items.executor.

Copyright 2025 Ben Mensi
Licensed under the Apache License, Version 2.0
"""

import logging
import subprocess
from typing import List, Optional


class CommandRunner:
    """Executes helper commands and captures their output."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def run(self, args: List[str], check: bool = False) -> Optional[subprocess.CompletedProcess]:
        """
        Execute a command.

        Args:
            args: Command and arguments
            check: Raise exception on non-zero exit code

        Returns:
            CompletedProcess if executed, None if the command is missing

        Raises:
            subprocess.CalledProcessError: If command fails and check=True
        """
        command = " ".join(args)

        self.logger.debug(f"Executing: {command}")

        try:
            result = subprocess.run(args, check=check, capture_output=True, text=True)
        except FileNotFoundError:
            self.logger.debug(f"Command not available: {args[0]}")
            return None
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Command failed with exit code {e.returncode}: {command}")
            if e.stderr:
                self.logger.error(f"STDERR:\n{e.stderr}")
            raise

        if result.stderr:
            self.logger.debug(f"STDERR:\n{result.stderr}")
        return result

    def output(self, args: List[str]) -> str:
        """Run a command and return its stripped stdout, or an empty string."""
        result = self.run(args)
        if result is None or result.returncode != 0:
            return ""
        return result.stdout.strip()
