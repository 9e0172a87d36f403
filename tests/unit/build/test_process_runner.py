"""
Unit tests for the process runner.
"""

import sys
from unittest.mock import MagicMock

import pytest

from arduswift.build import process_runner
from arduswift.build.process_runner import capture, run_checked, run_tee, tail_file
from arduswift.errors import ExternalToolFailure, ToolchainError

PRINT_LINES = "import sys\nfor i in range(5):\n    print(f'line {i}')\nsys.exit(int(sys.argv[1]))"


class TestRunTee:
    def test_output_written_to_log(self, tmp_path):
        log_path = tmp_path / "logs" / "step.log"
        returncode = run_tee([sys.executable, "-c", PRINT_LINES, "0"], log_path, echo=False)
        assert returncode == 0
        assert log_path.read_text().splitlines() == [f"line {i}" for i in range(5)]

    def test_echo_prints_output(self, tmp_path, capfd):
        run_tee([sys.executable, "-c", "print('hello')"], tmp_path / "a.log", echo=True)
        assert "hello" in capfd.readouterr().out

    def test_missing_executable(self, tmp_path):
        with pytest.raises(ToolchainError, match="Executable not found"):
            run_tee(["definitely-not-a-real-tool-xyz"], tmp_path / "a.log", echo=False)

    def test_missing_output_pipe(self, tmp_path, monkeypatch):
        process = MagicMock(stdout=None)
        monkeypatch.setattr(process_runner.subprocess, "Popen", MagicMock(return_value=process))
        with pytest.raises(ToolchainError, match="No output pipe"):
            run_tee(["swiftc"], tmp_path / "a.log", echo=False)
        process.kill.assert_called_once()


class TestRunChecked:
    def test_failure_carries_tail(self, tmp_path):
        log_path = tmp_path / "build.log"
        with pytest.raises(ExternalToolFailure) as exc_info:
            run_checked("fake", [sys.executable, "-c", PRINT_LINES, "3"], log_path, tail_lines=2)
        error = exc_info.value
        assert error.returncode == 3
        assert error.tail == ["line 3", "line 4"]
        assert error.log_path == log_path

    def test_success_returns_none(self, tmp_path):
        assert run_checked("fake", [sys.executable, "-c", PRINT_LINES, "0"], tmp_path / "ok.log") is None


class TestTailFile:
    def test_missing_file(self, tmp_path):
        assert tail_file(tmp_path / "missing.log", 10) == []

    def test_short_file(self, tmp_path):
        path = tmp_path / "a.log"
        path.write_text("a\nb\n")
        assert tail_file(path, 10) == ["a", "b"]


class TestCapture:
    def test_captures_stdout(self):
        result = capture([sys.executable, "-c", "print('x')"])
        assert result.returncode == 0
        assert result.stdout.strip() == "x"

    def test_missing_executable(self):
        with pytest.raises(ToolchainError):
            capture(["definitely-not-a-real-tool-xyz"])
