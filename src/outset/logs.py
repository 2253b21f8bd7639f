# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Log sink for Outset.

Every record goes to the console as ``LEVEL: message`` and is appended to a
world-writable log file as ``YYYY-MM-DD HH:MM:SS LEVEL: message``. Debug
records are dropped from both unless debug mode is on.
"""

import logging
import os
import sys
from pathlib import Path

LOGGER_NAME = "outset"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _create_log_file(log_file: Path) -> None:
    """Create the log file with mode 0666 if it doesn't exist yet."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    if not log_file.exists():
        log_file.touch()
        os.chmod(log_file, 0o666)


def setup_logging(log_file: Path, debug: bool = False) -> logging.Logger:
    """
    Configure the ``outset`` logger.

    Safe to call more than once; existing handlers are replaced.

    Args:
        log_file: Path of the persistent log file
        debug: Emit debug records to console and file

    Returns:
        The configured logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logger.addHandler(console)

    log_file = Path(log_file)
    try:
        _create_log_file(log_file)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    except OSError as e:
        logger.error(f"Unable to create log file at {log_file}: {e}")
        return logger

    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(message)s", datefmt=DATE_FORMAT)
    )
    logger.addHandler(file_handler)
    return logger
