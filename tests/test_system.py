"""Tests for OS helper commands and device queries."""

import subprocess
from unittest.mock import MagicMock

import pytest

from outset import system
from outset.shell import CommandRunner


class TestCommandRunner:
    """Tests for CommandRunner."""

    def test_run_captures_output(self):
        result = CommandRunner().run(["echo", "hello"])

        assert result.returncode == 0
        assert result.stdout == "hello\n"

    def test_missing_command(self):
        assert CommandRunner().run(["/nonexistent/tool"]) is None
        assert CommandRunner().output(["/nonexistent/tool"]) == ""

    def test_check_raises(self):
        with pytest.raises(subprocess.CalledProcessError):
            CommandRunner().run(["sh", "-c", "exit 4"], check=True)

    def test_output_strips(self):
        assert CommandRunner().output(["echo", "  model  "]) == "model"


class TestLoginWindow:
    """Tests for LoginWindow."""

    def test_uses_launchctl_on_macos(self, monkeypatch):
        monkeypatch.setattr("outset.system._is_macos", lambda: True)
        runner = MagicMock()

        window = system.LoginWindow(runner)
        window.disable()
        window.enable()

        assert runner.run.call_args_list[0].args[0][:2] == ["/bin/launchctl", "unload"]
        assert runner.run.call_args_list[1].args[0][:2] == ["/bin/launchctl", "load"]

    def test_noop_elsewhere(self, monkeypatch):
        monkeypatch.setattr("outset.system._is_macos", lambda: False)
        runner = MagicMock()

        system.LoginWindow(runner).disable()

        runner.run.assert_not_called()


class TestUsers:
    def test_console_user_falls_back_to_process_user(self, monkeypatch, tmp_path):
        monkeypatch.setattr("outset.system.CONSOLE_DEVICE", str(tmp_path / "console"))

        assert system.console_user() == system.current_user()

    def test_serial_unknown_off_macos(self, monkeypatch):
        monkeypatch.setattr("outset.system._is_macos", lambda: False)

        assert system.serial_number(CommandRunner()) == "Serial Unknown"

    def test_serial_parsed_from_ioreg(self, monkeypatch):
        monkeypatch.setattr("outset.system._is_macos", lambda: True)
        runner = MagicMock()
        runner.output.return_value = '  |   "IOPlatformSerialNumber" = "C02ABC123XYZ"\n'

        assert system.serial_number(runner) == "C02ABC123XYZ"
