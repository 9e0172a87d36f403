"""
Unit tests for the serial monitor command.
"""

import json
import subprocess
from unittest.mock import MagicMock

import pytest

from arduswift.build.context import BuildContext
from arduswift.deploy import monitor
from arduswift.deploy.monitor import DEFAULT_BAUD, SerialMonitor, monitor_command, resolve_baud
from arduswift.errors import ArduSwiftError


class TestResolveBaud:
    def test_default(self):
        assert resolve_baud() == DEFAULT_BAUD

    def test_explicit_beats_env(self, monkeypatch):
        monkeypatch.setenv("BAUD", "9600")
        assert resolve_baud(57600) == 57600

    def test_env(self, monkeypatch):
        monkeypatch.setenv("BAUD", "9600")
        assert resolve_baud() == 9600

    def test_invalid_env(self, monkeypatch):
        monkeypatch.setenv("BAUD", "fast")
        with pytest.raises(ArduSwiftError, match="Invalid BAUD"):
            resolve_baud()


class TestSerialMonitor:
    """Test suite for SerialMonitor."""

    @pytest.fixture
    def ctx(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            monitor,
            "capture",
            lambda cmd, timeout=60: subprocess.CompletedProcess(cmd, 0, "arduino-cli Version: 1.1.1", ""),
        )
        (tmp_path / "boards.json").write_text(
            json.dumps({"due": {"fqbn": "arduino:sam:arduino_due_x"}})
        )
        (tmp_path / "config.json").write_text('{"board": "due"}')
        return BuildContext(project_root=tmp_path, tool_root=tmp_path)

    def test_opens_monitor(self, ctx, monkeypatch):
        calls = []
        monkeypatch.setattr(monitor, "run_interactive", lambda cmd: calls.append(cmd) or 0)
        detector = MagicMock()
        detector.resolve.return_value = "/dev/ttyACM0"

        result = SerialMonitor(MagicMock(executable="arduino-cli"), detector).monitor(ctx, baud=9600)

        assert result.success, result.message
        assert calls == [monitor_command("/dev/ttyACM0", 9600)]
        assert calls[0] == ["arduino-cli", "monitor", "-p", "/dev/ttyACM0", "-c", "baudrate=9600"]

    def test_rejects_bluetooth_port(self, ctx, monkeypatch):
        run = MagicMock(return_value=0)
        monkeypatch.setattr(monitor, "run_interactive", run)
        detector = MagicMock()
        detector.resolve.return_value = "/dev/cu.Bluetooth-Incoming-Port"

        result = SerialMonitor(MagicMock(), detector).monitor(ctx)
        assert not result.success
        assert "Bluetooth" in result.message
        run.assert_not_called()

    def test_monitor_exit_code(self, ctx, monkeypatch):
        monkeypatch.setattr(monitor, "run_interactive", lambda cmd: 2)
        detector = MagicMock()
        detector.resolve.return_value = "/dev/ttyACM0"
        result = SerialMonitor(MagicMock(), detector).monitor(ctx)
        assert result.failed_step.startswith("3)")
