"""CLI utility functions for arduswift.

This module provides common utilities used across CLI commands including:
- Error handling and formatting
- Project path validation
- Pipeline result reporting
"""

import sys
import traceback
from pathlib import Path

from .build.pipeline import PipelineResult
from .build_log import Colors


def _color(code: str) -> str:
    try:
        return code if sys.stdout.isatty() else ""
    except (AttributeError, ValueError):
        return ""


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    RED = Colors.RED
    GREEN = Colors.GREEN
    YELLOW = Colors.YELLOW
    RESET = Colors.RESET

    @staticmethod
    def print_error(title: str, message: str = "") -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Build failed!")
            message: Error message details
        """
        print()
        print(f"{_color(ErrorFormatter.RED)}✗ {title}{_color(ErrorFormatter.RESET)}")
        if message:
            print()
            print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{_color(ErrorFormatter.GREEN)}✓ {message}{_color(ErrorFormatter.RESET)}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{_color(ErrorFormatter.YELLOW)}✗ {message}{_color(ErrorFormatter.RESET)}")

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Report an interrupt and exit with the SIGINT status."""
        ErrorFormatter.print_warning("Interrupted")
        sys.exit(130)

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)

    @staticmethod
    def report_result(result: PipelineResult, action: str) -> int:
        """Print the outcome of a pipeline and return the exit code.

        Args:
            result: Pipeline result
            action: Human name of the command (e.g. "Build")
        """
        if result.success:
            ErrorFormatter.print_success(f"{action} successful! ({result.duration:.2f}s)")
            return 0
        ErrorFormatter.print_error(f"{action} failed at step: {result.failed_step}")
        return 1


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(f"{_color(ErrorFormatter.RED)}✗ Error: Path does not exist: {project_dir}{_color(ErrorFormatter.RESET)}")
            sys.exit(2)
        if not project_dir.is_dir():
            print(f"{_color(ErrorFormatter.RED)}✗ Error: Path is not a directory: {project_dir}{_color(ErrorFormatter.RESET)}")
            sys.exit(2)
