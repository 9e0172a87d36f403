"""
Firmware upload (``arduino-swift upload``).

Upload never builds: it expects the artifacts of a previous build under
``build/arduino_build`` and hands them to ``arduino-cli upload``.
"""

from pathlib import Path
from typing import List, Optional

from ..build.context import BuildContext
from ..build.orchestrator import select_config
from ..build.pipeline import Pipeline, PipelineResult, PipelineStep
from ..build.process_runner import run_interactive
from ..build_log import get_logger
from ..errors import ArduSwiftError, ExternalToolFailure
from ..packages.arduino_core import ArduinoCli
from .port_detector import PortDetector

log = get_logger(__name__)

ARTIFACT_SUFFIXES = {".bin", ".hex", ".uf2", ".elf"}


def find_artifacts(build_dir: Path) -> List[Path]:
    """Firmware images (.bin/.hex/.uf2/.elf) below ``build_dir``, sorted."""
    if not build_dir.is_dir():
        return []
    return sorted(
        p for p in build_dir.rglob("*") if p.is_file() and p.suffix.lower() in ARTIFACT_SUFFIXES
    )


def upload_command(ctx: BuildContext, port: str, executable: str = "arduino-cli") -> List[str]:
    target = ctx.require_target()
    cmd = [executable, "upload", "-p", port, "--fqbn", target.fqbn]
    if target.board_options_csv:
        cmd.extend(["--board-options", target.board_options_csv])
    cmd.extend(["--input-dir", str(ctx.arduino_build_dir), str(ctx.sketch_dir)])
    return cmd


class Deployer:
    """Runs the upload pipeline."""

    def __init__(
        self,
        arduino_cli: Optional[ArduinoCli] = None,
        port_detector: Optional[PortDetector] = None,
    ):
        """Initialize deployer.

        Args:
            arduino_cli: arduino-cli wrapper
            port_detector: Port detector (default: one sharing ``arduino_cli``)
        """
        self.arduino_cli = arduino_cli or ArduinoCli()
        self.port_detector = port_detector or PortDetector(self.arduino_cli)
        self.port: Optional[str] = None

    def steps(self) -> List[PipelineStep]:
        return [
            PipelineStep("1) Init + validate environment", self.step_init),
            PipelineStep("2) Read config + select board", select_config),
            PipelineStep("3) Detect port + upload", self.step_detect_and_upload),
        ]

    def upload(self, ctx: BuildContext, port: Optional[str] = None) -> PipelineResult:
        """Upload the last build.

        Args:
            ctx: Build context
            port: Explicit port (default: PORT env var, then auto-detect)
        """
        self.port = port
        return Pipeline(self.steps()).run(ctx)

    def step_init(self, ctx: BuildContext) -> None:
        self.arduino_cli.ensure_available()

    def step_detect_and_upload(self, ctx: BuildContext) -> None:
        target = ctx.require_target()
        port = self.port_detector.resolve(target.fqbn, self.port)
        self.port = port

        artifacts = find_artifacts(ctx.arduino_build_dir)
        if not artifacts:
            raise ArduSwiftError(
                f"No build artifacts found under: {ctx.arduino_build_dir}",
                hint="Run `arduino-swift build` first (it places .bin/.hex/.uf2/.elf inside arduino_build)",
            )
        for artifact in artifacts:
            log.debug(f"artifact: {artifact.relative_to(ctx.arduino_build_dir)}")

        log.info("Uploading...")
        log.info(f"FQBN: {target.fqbn}")
        log.info(f"PORT: {port}")
        log.info(f"Input dir: {ctx.arduino_build_dir}")

        returncode = run_interactive(upload_command(ctx, port, self.arduino_cli.executable))
        if returncode != 0:
            error = ExternalToolFailure("arduino-cli upload", returncode)
            error.hint = (
                "On DFU boards (like UNO R4), double-tap RESET to re-enter DFU and re-run upload, "
                "or set PORT explicitly (a DFU port can look like '1-1')"
            )
            raise error
        log.info("Upload complete")
