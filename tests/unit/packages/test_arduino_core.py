"""
Unit tests for the arduino-cli wrapper.
"""

import subprocess

import pytest

from arduswift.errors import ToolchainError
from arduswift.packages import arduino_core
from arduswift.packages.arduino_core import ArduinoCli

CORE_LIST = """\
ID                  Installed Latest Name
arduino:mbed_giga   4.1.5     4.1.5  Arduino Mbed OS GIGA Boards
arduino:renesas_uno 1.2.0     1.2.0  Arduino UNO R4 Boards
"""


def completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestArduinoCli:
    """Test suite for ArduinoCli."""

    @pytest.fixture
    def fake_capture(self, monkeypatch):
        calls = []
        responses = {}

        def capture(cmd, timeout=60):
            calls.append(cmd)
            return responses.get(tuple(cmd[1:]), completed())

        monkeypatch.setattr(arduino_core, "capture", capture)
        return calls, responses

    def test_installed_cores(self, fake_capture):
        _, responses = fake_capture
        responses[("core", "list")] = completed(CORE_LIST)
        assert ArduinoCli().installed_cores() == ["arduino:mbed_giga", "arduino:renesas_uno"]

    def test_ensure_core_installed(self, fake_capture):
        _, responses = fake_capture
        responses[("core", "list")] = completed(CORE_LIST)
        ArduinoCli().ensure_core("arduino:renesas_uno")

    def test_ensure_core_missing(self, fake_capture):
        _, responses = fake_capture
        responses[("core", "list")] = completed(CORE_LIST)
        with pytest.raises(ToolchainError) as exc_info:
            ArduinoCli().ensure_core("arduino:sam")
        assert 'arduino-cli core install "arduino:sam"' in str(exc_info.value)

    def test_ensure_core_empty_skips(self, fake_capture):
        calls, _ = fake_capture
        ArduinoCli().ensure_core("")
        assert calls == []

    def test_core_list_failure(self, fake_capture):
        _, responses = fake_capture
        responses[("core", "list")] = completed(returncode=1, stderr="boom")
        with pytest.raises(ToolchainError):
            ArduinoCli().installed_cores()

    def test_update_index_failure_is_not_fatal(self, fake_capture, capsys):
        _, responses = fake_capture
        responses[("core", "update-index")] = completed(returncode=1)
        assert ArduinoCli().update_index() is False
        assert "continuing" in capsys.readouterr().out

    def test_board_list_json(self, fake_capture):
        calls, responses = fake_capture
        responses[("board", "list", "--format", "json")] = completed('{"detected_ports": []}')
        assert ArduinoCli("/opt/arduino-cli").board_list(as_json=True) == '{"detected_ports": []}'
        assert calls == [["/opt/arduino-cli", "board", "list", "--format", "json"]]

    def test_board_list_failure_returns_empty(self, fake_capture):
        _, responses = fake_capture
        responses[("board", "list")] = completed(returncode=2)
        assert ArduinoCli().board_list() == ""
