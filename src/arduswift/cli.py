"""
Command-line interface for arduswift.

This module provides the `arduino-swift` CLI tool for building Embedded Swift
sketches with arduino-cli.
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from . import __version__
from .build.context import BuildContext
from .build.orchestrator import BuildOrchestrator
from .build.pipeline import PipelineResult
from .build.verifier import Verifier
from .build_log import setup_logging
from .cli_utils import ErrorFormatter, PathValidator
from .deploy.deployer import Deployer
from .deploy.monitor import SerialMonitor


@dataclass
class BuildArgs:
    """Arguments for the verify and build commands."""

    project_dir: Optional[Path] = None
    tool_root: Optional[Path] = None
    verbose: bool = False


@dataclass
class UploadArgs:
    """Arguments for the upload command."""

    project_dir: Optional[Path] = None
    tool_root: Optional[Path] = None
    port: Optional[str] = None
    verbose: bool = False


@dataclass
class MonitorArgs:
    """Arguments for the monitor and all commands."""

    project_dir: Optional[Path] = None
    tool_root: Optional[Path] = None
    port: Optional[str] = None
    baud: Optional[int] = None
    verbose: bool = False


def _context(project_dir: Optional[Path], tool_root: Optional[Path]) -> BuildContext:
    return BuildContext.create(project_dir, tool_root)


def _run_verify(args: BuildArgs) -> PipelineResult:
    return Verifier().verify(_context(args.project_dir, args.tool_root))


def _run_build(args: BuildArgs) -> PipelineResult:
    return BuildOrchestrator().build(_context(args.project_dir, args.tool_root))


def _run_upload(args: UploadArgs) -> PipelineResult:
    return Deployer().upload(_context(args.project_dir, args.tool_root), port=args.port)


def _run_monitor(args: MonitorArgs) -> PipelineResult:
    return SerialMonitor().monitor(
        _context(args.project_dir, args.tool_root), port=args.port, baud=args.baud
    )


def verify_command(args: BuildArgs) -> None:
    """Check host tools, Arduino core and the Embedded Swift toolchain.

    Examples:
        arduino-swift verify                 # Verify current project
        arduino-swift verify examples/blink  # Verify specific project
    """
    _dispatch("Verify", lambda: _run_verify(args), args.verbose)


def build_command(args: BuildArgs) -> None:
    """Compile main.swift and link it into an Arduino sketch.

    Examples:
        arduino-swift build                  # Build current project
        arduino-swift compile -v             # Same, streaming tool output
    """
    _dispatch("Build", lambda: _run_build(args), args.verbose)


def upload_command(args: UploadArgs) -> None:
    """Upload the last build to the attached board.

    Examples:
        arduino-swift upload                          # Auto-detect port
        arduino-swift upload -p /dev/cu.usbmodem1101  # Explicit port
    """
    _dispatch("Upload", lambda: _run_upload(args), args.verbose)


def monitor_command(args: MonitorArgs) -> None:
    """Open a serial monitor on the attached board.

    Examples:
        arduino-swift monitor                # Auto-detect port, 115200 baud
        arduino-swift monitor -b 9600        # Different baud rate
    """
    _dispatch("Monitor", lambda: _run_monitor(args), args.verbose)


def all_command(args: MonitorArgs) -> None:
    """Run verify, build, upload and monitor in sequence."""
    build_args = BuildArgs(args.project_dir, args.tool_root, args.verbose)
    upload_args = UploadArgs(args.project_dir, args.tool_root, args.port, args.verbose)

    def run() -> PipelineResult:
        for name, stage in (
            ("verify", lambda: _run_verify(build_args)),
            ("build", lambda: _run_build(build_args)),
            ("upload", lambda: _run_upload(upload_args)),
        ):
            ErrorFormatter.print_success(f"Running: {name}")
            result = stage()
            if not result.success:
                return result
        ErrorFormatter.print_success("Running: monitor")
        return _run_monitor(args)

    _dispatch("All", run, args.verbose)


def _dispatch(action: str, run: Callable[[], PipelineResult], verbose: bool) -> None:
    setup_logging(verbose)
    try:
        result = run()
        sys.exit(ErrorFormatter.report_result(result, action))
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, verbose)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=None,
        help="Project directory (default: ARDUINO_SWIFT_ROOT or current directory)",
    )
    parser.add_argument(
        "--tool-root",
        type=Path,
        default=None,
        help="Runtime tree with boards.json, arduino/ and swift/ (default: ARDUINO_SWIFT_TOOL_ROOT or bundled)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show tool output and debug logs",
    )


def _add_port_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p",
        "--port",
        default=None,
        help="Serial port (default: PORT env var, then auto-detect)",
    )


def _add_baud_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-b",
        "--baud",
        default=None,
        type=int,
        help="Baud rate (default: BAUD env var, then 115200)",
    )


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arduino-swift",
        description="Build Embedded Swift sketches with arduino-cli",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"arduino-swift {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    verify_parser = subparsers.add_parser(
        "verify",
        help="Check host tools, Arduino core and Swift toolchain",
    )
    _add_common_arguments(verify_parser)

    for name, help_text in (
        ("build", "Build firmware for the configured board"),
        ("compile", "Alias of build"),
    ):
        build_parser = subparsers.add_parser(name, help=help_text)
        _add_common_arguments(build_parser)

    upload_parser = subparsers.add_parser(
        "upload",
        help="Upload the last build to the board",
    )
    _add_common_arguments(upload_parser)
    _add_port_argument(upload_parser)

    monitor_parser = subparsers.add_parser(
        "monitor",
        help="Open a serial monitor on the board",
    )
    _add_common_arguments(monitor_parser)
    _add_port_argument(monitor_parser)
    _add_baud_argument(monitor_parser)

    all_parser = subparsers.add_parser(
        "all",
        help="verify + build + upload + monitor",
    )
    _add_common_arguments(all_parser)
    _add_port_argument(all_parser)
    _add_baud_argument(all_parser)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """arduino-swift - Embedded Swift for Arduino boards."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(1)

    if parsed_args.project_dir is not None:
        PathValidator.validate_project_dir(parsed_args.project_dir)

    if parsed_args.command == "verify":
        verify_command(
            BuildArgs(parsed_args.project_dir, parsed_args.tool_root, parsed_args.verbose)
        )
    elif parsed_args.command in ("build", "compile"):
        build_command(
            BuildArgs(parsed_args.project_dir, parsed_args.tool_root, parsed_args.verbose)
        )
    elif parsed_args.command == "upload":
        upload_command(
            UploadArgs(
                project_dir=parsed_args.project_dir,
                tool_root=parsed_args.tool_root,
                port=parsed_args.port,
                verbose=parsed_args.verbose,
            )
        )
    elif parsed_args.command in ("monitor", "all"):
        monitor_args = MonitorArgs(
            project_dir=parsed_args.project_dir,
            tool_root=parsed_args.tool_root,
            port=parsed_args.port,
            baud=parsed_args.baud,
            verbose=parsed_args.verbose,
        )
        if parsed_args.command == "monitor":
            monitor_command(monitor_args)
        else:
            all_command(monitor_args)


if __name__ == "__main__":
    main()
