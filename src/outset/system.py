# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Device and user queries. Used for diagnostics and to resolve the session."""

import getpass
import logging
import os
import platform
import pwd
import re
import sys
from typing import Optional

from outset.shell import CommandRunner

logger = logging.getLogger(__name__)

LOGINWINDOW_PLIST = "/System/Library/LaunchDaemons/com.apple.loginwindow.plist"
CONSOLE_DEVICE = "/dev/console"


def current_user() -> str:
    """Name of the user this process runs as."""
    try:
        return pwd.getpwuid(os.geteuid()).pw_name
    except KeyError:
        return getpass.getuser()


def console_user() -> str:
    """Name of the user logged in at the console.

    The owner of /dev/console is the console user on macOS; when that cannot
    be determined the process user is returned.
    """
    try:
        return pwd.getpwuid(os.stat(CONSOLE_DEVICE).st_uid).pw_name
    except (OSError, KeyError):
        return current_user()


def _is_macos() -> bool:
    return sys.platform == "darwin"


class LoginWindow:
    """Holds the loginwindow back while first-boot items run."""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def disable(self) -> None:
        logger.debug("Disabling loginwindow process")
        if _is_macos():
            self.runner.run(["/bin/launchctl", "unload", LOGINWINDOW_PLIST])

    def enable(self) -> None:
        logger.debug("Enabling loginwindow process")
        if _is_macos():
            self.runner.run(["/bin/launchctl", "load", LOGINWINDOW_PLIST])


def hardware_model(runner: CommandRunner) -> str:
    if _is_macos():
        return runner.output(["/usr/sbin/sysctl", "-n", "hw.model"]) or platform.machine()
    return platform.machine()


def serial_number(runner: CommandRunner) -> str:
    if _is_macos():
        output = runner.output(["/usr/sbin/ioreg", "-c", "IOPlatformExpertDevice", "-d", "2"])
        match = re.search(r'"IOPlatformSerialNumber" = "([^"]+)"', output)
        if match:
            return match.group(1).strip()
    return "Serial Unknown"


def os_version() -> str:
    if _is_macos():
        return platform.mac_ver()[0]
    return platform.release()


def os_build(runner: CommandRunner) -> str:
    if _is_macos():
        return runner.output(["/usr/sbin/sysctl", "-n", "kern.osversion"])
    return platform.version()


def sys_report(runner: Optional[CommandRunner] = None) -> None:
    """Log device information at debug level."""
    runner = runner or CommandRunner()
    logger.debug(f"User: {console_user()}")
    logger.debug(f"Model: {hardware_model(runner)}")
    logger.debug(f"Serial: {serial_number(runner)}")
    logger.debug(f"OS: {os_version()}")
    logger.debug(f"Build: {os_build(runner)}")
