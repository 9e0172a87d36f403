"""
Unit tests for the Swift toolchain wrapper.
"""

import json
import subprocess

import pytest

from arduswift.errors import ToolchainError
from arduswift.packages import toolchain
from arduswift.packages.toolchain import SwiftToolchain, require_command


def completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestRequireCommand:
    def test_found(self, monkeypatch):
        monkeypatch.setattr(toolchain, "which", lambda name: f"/usr/bin/{name}")
        assert require_command("python3") == "/usr/bin/python3"

    def test_missing(self, monkeypatch):
        monkeypatch.setattr(toolchain, "which", lambda name: None)
        with pytest.raises(ToolchainError, match="Missing dependency: arduino-cli"):
            require_command("arduino-cli")


class TestSwiftToolchain:
    """Test suite for SwiftToolchain."""

    def test_resolve_bare_name(self, monkeypatch):
        monkeypatch.setattr(toolchain, "which", lambda name: "/home/dev/.swiftly/bin/swiftc")
        tc = SwiftToolchain("swiftc")
        assert tc.resolve() == "/home/dev/.swiftly/bin/swiftc"
        assert tc.swiftc == "/home/dev/.swiftly/bin/swiftc"

    def test_resolve_keeps_explicit_path(self, monkeypatch):
        monkeypatch.setattr(toolchain, "which", lambda name: "/other/swiftc")
        assert SwiftToolchain("/opt/swift/bin/swiftc").resolve() == "/opt/swift/bin/swiftc"

    def test_resolve_missing(self, monkeypatch):
        monkeypatch.setattr(toolchain, "which", lambda name: None)
        with pytest.raises(ToolchainError, match="SWIFTC"):
            SwiftToolchain("swiftc").resolve()

    def test_embedded_runtime_present(self, tmp_path, monkeypatch):
        (tmp_path / "embedded").mkdir()
        info = {"paths": {"runtimeResourcePath": str(tmp_path)}}
        calls = []

        def fake_capture(cmd, timeout=60):
            calls.append(cmd)
            return completed(json.dumps(info))

        monkeypatch.setattr(toolchain, "capture", fake_capture)
        tc = SwiftToolchain("swiftc")
        assert tc.has_embedded_runtime("armv7em-none-none-eabi")
        assert tc.has_embedded_runtime("armv7em-none-none-eabi")
        assert calls == [["swiftc", "-print-target-info", "-target", "armv7em-none-none-eabi"]]

    def test_embedded_runtime_missing_dir(self, tmp_path, monkeypatch):
        info = {"runtimeResourcePath": str(tmp_path)}
        monkeypatch.setattr(toolchain, "capture", lambda cmd, timeout=60: completed(json.dumps(info)))
        assert not SwiftToolchain().has_embedded_runtime("armv7-none-none-eabi")

    def test_rejected_triple(self, monkeypatch):
        monkeypatch.setattr(
            toolchain, "capture", lambda cmd, timeout=60: completed(returncode=1, stderr="unknown target")
        )
        assert SwiftToolchain().runtime_resource_path("bogus") is None

    def test_unparseable_output(self, monkeypatch):
        monkeypatch.setattr(toolchain, "capture", lambda cmd, timeout=60: completed("not json"))
        assert SwiftToolchain().runtime_resource_path("armv7-none-none-eabi") is None

    def test_ensure_embedded_runtime_raises(self, monkeypatch):
        monkeypatch.setattr(toolchain, "capture", lambda cmd, timeout=60: completed("{}"))
        with pytest.raises(ToolchainError, match="armv7em-none-none-eabihf"):
            SwiftToolchain().ensure_embedded_runtime("armv7em-none-none-eabihf")
