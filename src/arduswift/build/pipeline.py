"""
Sequential step pipeline.

Every command (verify, build, upload, monitor) is a list of named steps run
in order against one BuildContext. A step signals failure by raising an
ArduSwiftError; the pipeline stops at the first failure. There are no
retries and no rollback.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..build_log import get_logger, log_lines, log_step_begin, log_step_fail, log_step_ok
from ..errors import ArduSwiftError, ExternalToolFailure, PortDetectionError
from .context import BuildContext

log = get_logger(__name__)

StepFn = Callable[[BuildContext], None]


@dataclass
class PipelineStep:
    """A named unit of work."""

    name: str
    fn: StepFn


@dataclass
class PipelineResult:
    """Outcome of a pipeline run."""

    success: bool
    failed_step: Optional[str]
    message: str
    duration: float
    error: Optional[ArduSwiftError] = None


class Pipeline:
    """Runs steps in order and stops at the first failure.

    Example usage:
        pipeline = Pipeline([
            PipelineStep("1) Init", init_step),
            PipelineStep("2) Config", config_step),
        ])
        result = pipeline.run(ctx)
        if not result.success:
            print(f"failed at {result.failed_step}: {result.message}")
    """

    def __init__(self, steps: Sequence[PipelineStep]):
        self.steps: List[PipelineStep] = list(steps)

    def run(self, ctx: BuildContext) -> PipelineResult:
        """Run every step against ``ctx``.

        KeyboardInterrupt is not caught.
        """
        start_time = time.time()

        for step in self.steps:
            log_step_begin(step.name)
            try:
                step.fn(ctx)
            except ArduSwiftError as e:
                log_step_fail(step.name)
                self._report(e)
                return PipelineResult(
                    success=False,
                    failed_step=step.name,
                    message=str(e),
                    duration=time.time() - start_time,
                    error=e,
                )
            log_step_ok()

        return PipelineResult(
            success=True,
            failed_step=None,
            message="",
            duration=time.time() - start_time,
        )

    @staticmethod
    def _report(error: ArduSwiftError) -> None:
        log.error(str(error))
        if isinstance(error, ExternalToolFailure) and error.tail:
            log_lines(error.tail)
        elif isinstance(error, PortDetectionError) and error.listing:
            log.info("arduino-cli board list:")
            log_lines(error.listing.splitlines())
