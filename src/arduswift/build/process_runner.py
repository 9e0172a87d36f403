"""Process Runner.

This module runs external tools (swiftc, arduino-cli) and tees their output
into per-step log files.

Design:
    - Wraps subprocess.Popen with stdout and stderr merged
    - Every line goes to the step log; in verbose mode also to the console
    - On failure the tail of the log is attached to the raised error
"""

import subprocess
import sys
from collections import deque
from pathlib import Path
from typing import List, Optional, Sequence

from ..build_log import get_logger, is_verbose, log_cmd
from ..errors import ExternalToolFailure, ToolchainError

log = get_logger(__name__)


def run_tee(
    cmd: Sequence[str],
    log_path: Path,
    echo: Optional[bool] = None,
    cwd: Optional[Path] = None,
) -> int:
    """Run a command, writing its merged output to ``log_path``.

    Args:
        cmd: Command and arguments
        log_path: Log file (truncated first)
        echo: Also print output to stdout (default: verbose mode)
        cwd: Working directory

    Returns:
        Process exit code

    Raises:
        ToolchainError: If the executable cannot be found
    """
    if echo is None:
        echo = is_verbose()

    log_cmd(cmd)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    with open(log_path, "w", encoding="utf-8") as log_file:
        try:
            process = subprocess.Popen(
                [str(c) for c in cmd],
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=str(cwd) if cwd else None,
            )
        except FileNotFoundError as e:
            raise ToolchainError(
                f"Executable not found: {cmd[0]}",
                hint="Install it or make sure it is on PATH",
            ) from e

        if process.stdout is None:
            process.kill()
            process.wait()
            raise ToolchainError(f"No output pipe for: {cmd[0]}")
        for line in process.stdout:
            log_file.write(line)
            if echo:
                sys.stdout.write(line)
                sys.stdout.flush()
        return process.wait()


def tail_file(path: Path, max_lines: int) -> List[str]:
    """Return the last ``max_lines`` lines of a text file (without newlines)."""
    if not path.is_file():
        return []
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return [line.rstrip("\n") for line in deque(f, maxlen=max_lines)]


def run_checked(
    tool: str,
    cmd: Sequence[str],
    log_path: Path,
    tail_lines: int = 120,
    cwd: Optional[Path] = None,
) -> None:
    """Run a command via run_tee and raise if it fails.

    Raises:
        ExternalToolFailure: On a non-zero exit code, carrying the log tail
    """
    returncode = run_tee(cmd, log_path, cwd=cwd)
    if returncode != 0:
        raise ExternalToolFailure(
            tool,
            returncode,
            log_path=log_path,
            tail=tail_file(log_path, tail_lines),
        )


def run_interactive(cmd: Sequence[str]) -> int:
    """Run a command attached to the terminal (upload, monitor).

    Raises:
        ToolchainError: If the executable cannot be found
    """
    log_cmd(cmd)
    try:
        return subprocess.run([str(c) for c in cmd]).returncode
    except FileNotFoundError as e:
        raise ToolchainError(
            f"Executable not found: {cmd[0]}",
            hint="Install it or make sure it is on PATH",
        ) from e


def capture(cmd: Sequence[str], timeout: Optional[float] = 60) -> "subprocess.CompletedProcess[str]":
    """Run a short query command and capture its output.

    Raises:
        ToolchainError: If the executable cannot be found
    """
    log.debug(f"running: {' '.join(str(c) for c in cmd)}")
    try:
        return subprocess.run(
            [str(c) for c in cmd],
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ToolchainError(
            f"Executable not found: {cmd[0]}",
            hint="Install it or make sure it is on PATH",
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ToolchainError(f"Timed out running: {cmd[0]}") from e
