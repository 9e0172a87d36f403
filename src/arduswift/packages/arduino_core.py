"""arduino-cli queries.

Thin wrappers around the arduino-cli subcommands the build relies on: core
index update, installed core listing and board listing.
"""

from typing import List

from ..build.process_runner import capture
from ..build_log import get_logger
from ..errors import ToolchainError
from .toolchain import require_command

log = get_logger(__name__)


class ArduinoCli:
    """Runs arduino-cli query commands."""

    def __init__(self, executable: str = "arduino-cli"):
        self.executable = executable

    def ensure_available(self) -> str:
        """
        Raises:
            ToolchainError: If arduino-cli is not on PATH
        """
        return require_command(self.executable)

    def update_index(self) -> bool:
        """Run ``core update-index``. Failure is reported but not fatal."""
        try:
            result = capture([self.executable, "core", "update-index"], timeout=300)
        except ToolchainError as e:
            log.warning(f"arduino-cli core update-index failed (continuing): {e.message}")
            return False
        if result.returncode != 0:
            log.warning("arduino-cli core update-index failed (continuing). You may be offline.")
            return False
        log.info("Arduino core index updated.")
        return True

    def installed_cores(self) -> List[str]:
        """IDs (first column) of the cores listed by ``core list``."""
        result = capture([self.executable, "core", "list"])
        if result.returncode != 0:
            raise ToolchainError(
                "arduino-cli core list failed",
                context={"stderr": result.stderr.strip()},
            )
        cores = []
        for line in result.stdout.splitlines():
            fields = line.split()
            if not fields or fields[0] == "ID":
                continue
            cores.append(fields[0])
        return cores

    def is_core_installed(self, core: str) -> bool:
        return core in self.installed_cores()

    def ensure_core(self, core: str) -> None:
        """Check that an Arduino core is installed.

        An empty core name is skipped with a warning.

        Raises:
            ToolchainError: If the core is not installed
        """
        if not core:
            log.warning("No core for this board in boards.json. Skipping core install check.")
            return
        if not self.is_core_installed(core):
            raise ToolchainError(
                f"Arduino core not installed: {core}",
                hint=f'Run: arduino-cli core install "{core}" and then arduino-swift verify',
            )
        log.info(f"Core installed: {core}")

    def board_list(self, as_json: bool = False) -> str:
        """Output of ``board list`` (empty string if the command fails)."""
        cmd = [self.executable, "board", "list"]
        if as_json:
            cmd.extend(["--format", "json"])
        result = capture(cmd)
        if result.returncode != 0:
            log.debug(f"arduino-cli board list failed: {result.stderr.strip()}")
            return ""
        return result.stdout
