"""
Environment verification (``arduino-swift verify``).

Checks everything a build needs without building anything, then writes
``build/.swiftc_path`` and ``build/env.sh`` so later builds and shells pick
up the verified compiler.
"""

import shlex
from typing import List, Optional

from ..build_log import get_logger
from ..errors import MissingFile
from ..packages.arduino_core import ArduinoCli
from ..packages.toolchain import SwiftToolchain, require_command
from .context import BuildContext
from .flag_builder import derive
from .orchestrator import prepend_swiftly_bin, require_config, select_config
from .pipeline import Pipeline, PipelineResult, PipelineStep

log = get_logger(__name__)


def render_env_script(ctx: BuildContext) -> str:
    """Shell exports describing the verified toolchain and target."""
    target = ctx.require_target()
    flags = ctx.require_flags()
    exports = [
        ("SWIFTC", ctx.swiftc),
        ("ARDUINO_BOARD", target.board),
        ("ARDUINO_FQBN", target.fqbn),
        ("ARDUINO_CORE", target.core),
        ("SWIFT_TARGET", flags.swift_target),
        ("SWIFT_CPU", flags.cpu),
    ]
    lines = ["# Auto-generated by arduino-swift verify"]
    lines.extend(f"export {name}={shlex.quote(value)}" for name, value in exports)
    return "\n".join(lines) + "\n"


class Verifier:
    """Runs the verify pipeline."""

    def __init__(
        self,
        arduino_cli: Optional[ArduinoCli] = None,
        toolchain: Optional[SwiftToolchain] = None,
    ):
        self.arduino_cli = arduino_cli or ArduinoCli()
        self._toolchain = toolchain

    def toolchain(self, ctx: BuildContext) -> SwiftToolchain:
        if self._toolchain is None:
            self._toolchain = SwiftToolchain(ctx.swiftc)
        return self._toolchain

    def steps(self) -> List[PipelineStep]:
        return [
            PipelineStep("1) Init + validate layout", self.step_init),
            PipelineStep("2) Read config + select board", self.step_config_select),
            PipelineStep("3) Host deps + Arduino core", self.step_host_deps),
            PipelineStep("4) Swift toolchain check", self.step_swift_toolchain),
            PipelineStep("5) Write exports", self.step_write_exports),
        ]

    def verify(self, ctx: BuildContext) -> PipelineResult:
        result = Pipeline(self.steps()).run(ctx)
        if result.success:
            log.info("verify complete.")
        return result

    def step_init(self, ctx: BuildContext) -> None:
        require_config(ctx)
        if not ctx.boards_path.is_file():
            raise MissingFile(
                ctx.boards_path,
                "boards.json (tool root)",
                hint=f"boards.json must exist at the tool root: {ctx.tool_root}",
            )
        ctx.build_dir.mkdir(parents=True, exist_ok=True)
        ctx.logs_dir.mkdir(parents=True, exist_ok=True)
        prepend_swiftly_bin()

        log.info(f"Project root : {ctx.project_root}")
        log.info(f"Tool root    : {ctx.tool_root}")
        log.info(f"Build dir    : {ctx.build_dir}")
        log.info(f"Logs dir     : {ctx.logs_dir}")

    def step_config_select(self, ctx: BuildContext) -> None:
        select_config(ctx)

    def step_host_deps(self, ctx: BuildContext) -> None:
        self.arduino_cli.ensure_available()
        require_command("python3")
        self.arduino_cli.update_index()
        self.arduino_cli.ensure_core(ctx.require_target().core)

    def step_swift_toolchain(self, ctx: BuildContext) -> None:
        toolchain = self.toolchain(ctx)
        ctx.swiftc = toolchain.resolve()
        # Re-derive now that the runtime inventory can be probed.
        ctx.flags = derive(ctx.require_target(), toolchain.has_embedded_runtime)
        toolchain.ensure_embedded_runtime(ctx.flags.swift_target)

    def step_write_exports(self, ctx: BuildContext) -> None:
        ctx.swiftc_cache_path.write_text(ctx.swiftc + "\n", encoding="utf-8")
        log.info(f"Wrote: {ctx.swiftc_cache_path}")
        ctx.env_script_path.write_text(render_env_script(ctx), encoding="utf-8")
        log.info(f"Wrote: {ctx.env_script_path}")
