"""
Serial monitor (``arduino-swift monitor``).

Opens ``arduino-cli monitor`` on the board's port. The child process is
attached to the terminal so Ctrl+C reaches it directly.
"""

import os
from typing import List, Optional

from ..build.context import BuildContext
from ..build.orchestrator import select_config
from ..build.pipeline import Pipeline, PipelineResult, PipelineStep
from ..build.process_runner import capture, run_interactive
from ..build_log import get_logger
from ..errors import ArduSwiftError, ExternalToolFailure
from ..packages.arduino_core import ArduinoCli
from .port_detector import PortDetector, is_rejected_port

log = get_logger(__name__)

BAUD_ENV = "BAUD"
DEFAULT_BAUD = 115200


def monitor_command(port: str, baud: int, executable: str = "arduino-cli") -> List[str]:
    return [executable, "monitor", "-p", port, "-c", f"baudrate={baud}"]


def resolve_baud(baud: Optional[int] = None) -> int:
    """Explicit baud, then the BAUD env var, then 115200.

    Raises:
        ArduSwiftError: If BAUD is not an integer
    """
    if baud:
        return baud
    env = os.environ.get(BAUD_ENV, "")
    if not env:
        return DEFAULT_BAUD
    try:
        return int(env)
    except ValueError as e:
        raise ArduSwiftError(f"Invalid BAUD value: {env}", hint="Use e.g. BAUD=115200") from e


class SerialMonitor:
    """Runs the monitor pipeline."""

    def __init__(
        self,
        arduino_cli: Optional[ArduinoCli] = None,
        port_detector: Optional[PortDetector] = None,
    ):
        self.arduino_cli = arduino_cli or ArduinoCli()
        self.port_detector = port_detector or PortDetector(self.arduino_cli)
        self.port: Optional[str] = None
        self.baud: Optional[int] = None

    def steps(self) -> List[PipelineStep]:
        return [
            PipelineStep("1) Init + validate environment", self.step_init),
            PipelineStep("2) Read config + select board", select_config),
            PipelineStep("3) Open monitor", self.step_open_monitor),
        ]

    def monitor(
        self,
        ctx: BuildContext,
        port: Optional[str] = None,
        baud: Optional[int] = None,
    ) -> PipelineResult:
        """Open the serial monitor.

        Args:
            ctx: Build context
            port: Explicit port (default: PORT env var, then auto-detect)
            baud: Baud rate (default: BAUD env var, then 115200)
        """
        self.port = port
        self.baud = baud
        return Pipeline(self.steps()).run(ctx)

    def step_init(self, ctx: BuildContext) -> None:
        self.arduino_cli.ensure_available()
        version = capture([self.arduino_cli.executable, "version"])
        if version.returncode == 0 and version.stdout.strip():
            log.info(version.stdout.strip())

    def step_open_monitor(self, ctx: BuildContext) -> None:
        baud = resolve_baud(self.baud)
        port = self.port_detector.resolve(ctx.require_target().fqbn, self.port)
        if is_rejected_port(port):
            raise ArduSwiftError(
                f"Detected an invalid port (Bluetooth / pseudo-port): {port}",
                hint="Set PORT explicitly to a USB serial device (usbmodem/usbserial/ttyACM/ttyUSB)",
            )

        log.info(f"Monitor: PORT={port} BAUD={baud}")
        returncode = run_interactive(monitor_command(port, baud, self.arduino_cli.executable))
        if returncode != 0:
            raise ExternalToolFailure("arduino-cli monitor", returncode)
