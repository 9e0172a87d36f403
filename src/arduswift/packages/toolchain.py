"""Embedded Swift toolchain checks.

This module locates ``swiftc`` and checks whether it ships an Embedded Swift
runtime for a given target triple.
"""

import json
import shutil
from pathlib import Path
from typing import Dict, Optional

from ..build.process_runner import capture
from ..build_log import get_logger
from ..errors import ToolchainError

log = get_logger(__name__)

SWIFTLY_BIN = Path.home() / ".swiftly" / "bin"


def which(command: str) -> Optional[str]:
    """Absolute path of an executable, or None if not found."""
    return shutil.which(command)


def require_command(command: str) -> str:
    """Return the absolute path of a host tool.

    Raises:
        ToolchainError: If the tool is not on PATH
    """
    path = which(command)
    if not path:
        raise ToolchainError(
            f"Missing dependency: {command}",
            hint=f"Install {command} and make sure it is on PATH",
        )
    log.info(f"Found: {command}")
    return path


class SwiftToolchain:
    """Wraps a swiftc executable."""

    def __init__(self, swiftc: str = "swiftc"):
        """Initialize toolchain wrapper.

        Args:
            swiftc: Compiler name or path
        """
        self.swiftc = swiftc
        self._resource_paths: Dict[str, Optional[Path]] = {}

    def resolve(self) -> str:
        """Resolve swiftc to an absolute path.

        Raises:
            ToolchainError: If swiftc cannot be found
        """
        path = which(self.swiftc)
        if not path:
            raise ToolchainError(
                f"Swift compiler not found: {self.swiftc}",
                hint="Install swiftly + a snapshot with Embedded Swift, or set SWIFTC=/path/to/swiftc",
            )
        if "/" not in self.swiftc:
            self.swiftc = path
        return self.swiftc

    def runtime_resource_path(self, triple: str) -> Optional[Path]:
        """Runtime resource directory reported by ``-print-target-info``.

        Returns None if swiftc rejects the triple or prints no path.
        """
        if triple in self._resource_paths:
            return self._resource_paths[triple]

        result = capture([self.swiftc, "-print-target-info", "-target", triple])
        path: Optional[Path] = None
        if result.returncode == 0:
            try:
                info = json.loads(result.stdout)
            except json.JSONDecodeError:
                log.debug(f"unparseable -print-target-info output for {triple}")
                info = {}
            value = info.get("paths", {}).get("runtimeResourcePath") or info.get(
                "runtimeResourcePath"
            )
            if value:
                path = Path(value)
        else:
            log.debug(f"swiftc -print-target-info failed for {triple}: {result.stderr.strip()}")

        self._resource_paths[triple] = path
        return path

    def has_embedded_runtime(self, triple: str) -> bool:
        """True if ``<runtimeResourcePath>/embedded`` exists for the triple."""
        path = self.runtime_resource_path(triple)
        return path is not None and (path / "embedded").is_dir()

    def ensure_embedded_runtime(self, triple: str) -> None:
        """
        Raises:
            ToolchainError: If the triple has no Embedded runtime
        """
        if not self.has_embedded_runtime(triple):
            raise ToolchainError(
                f"This swiftc does NOT support Embedded Swift for target '{triple}'.",
                hint="Install a toolchain that includes Embedded Swift support, or point SWIFTC at one",
                context={"swiftc": self.swiftc},
            )
        log.info(f"Embedded Swift toolchain OK: {self.swiftc}")
