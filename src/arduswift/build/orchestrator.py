"""
Build orchestration for arduswift projects.

This module wires the build steps into a Pipeline:

    1) Init + validate environment
    2) Read config + select board (also checks the Arduino core and the
       Embedded Swift runtime for the derived triple)
    3) Prepare sketch workspace
    4) Stage sources + libs
    5) Compile Swift + arduino-cli build

The step helpers ``prepend_swiftly_bin`` and ``select_config`` are shared with
the verify, upload and monitor commands.
"""

import os
from pathlib import Path
from typing import List, Optional

from ..build_log import get_logger
from ..config.target_resolver import load, resolve
from ..errors import MissingFile
from ..packages.arduino_core import ArduinoCli
from ..packages.toolchain import SWIFTLY_BIN, SwiftToolchain, require_command
from .context import BuildContext
from .flag_builder import RuntimeProbe, derive
from .library_stager import LibraryStager
from .pipeline import Pipeline, PipelineResult, PipelineStep
from .process_runner import run_checked
from .workspace import WorkspaceBuilder

log = get_logger(__name__)

SWIFTC_TAIL_LINES = 120
ARDUINO_CLI_TAIL_LINES = 160


def prepend_swiftly_bin() -> None:
    """Put ``~/.swiftly/bin`` first on PATH for this process."""
    old = os.environ.get("PATH", "")
    entry = str(SWIFTLY_BIN)
    if old.split(os.pathsep)[0] == entry:
        return
    os.environ["PATH"] = f"{entry}{os.pathsep}{old}" if old else entry


def require_dir(path: Path, what: str) -> None:
    if not path.is_dir():
        raise MissingFile(path, what, hint="Check --tool-root (or ARDUINO_SWIFT_TOOL_ROOT)")


def require_config(ctx: BuildContext) -> None:
    if not ctx.config_path.is_file():
        raise MissingFile(
            ctx.config_path,
            "config.json",
            hint="Run from your project folder, or set ARDUINO_SWIFT_ROOT",
        )


def select_config(ctx: BuildContext, runtime_available: Optional[RuntimeProbe] = None) -> None:
    """Load config.json and boards.json, resolve the target and derive flags."""
    ctx.config_text, ctx.catalog_text = load(ctx.project_root, ctx.tool_root)
    config, target = resolve(ctx.config_text, ctx.catalog_text, ctx.project_root)

    ctx.board = target.board
    ctx.target = target
    ctx.swift_libs = list(config.lib)
    ctx.arduino_libs = list(config.arduino_lib)
    ctx.user_arduino_lib_dir = config.arduino_lib_dir
    ctx.flags = derive(target, runtime_available)

    log.info(f"board      : {target.board}")
    log.info(f"fqbn       : {target.fqbn}")
    log.info(f"board_opts : {target.board_options_csv or '(none)'}")
    if target.core:
        log.info(f"core       : {target.core}")
    if target.api:
        log.info(f"api        : {target.api}")
    log.info(f"swift_tgt  : {ctx.flags.swift_target}")
    log.info(f"cpu        : {ctx.flags.cpu}")
    if ctx.flags.float_abi:
        log.info(f"float_abi  : {ctx.flags.float_abi}")
    if ctx.flags.fpu:
        log.info(f"fpu        : {ctx.flags.fpu}")


def arduino_compile_command(ctx: BuildContext, executable: str = "arduino-cli") -> List[str]:
    """arduino-cli compile invocation linking the Swift object into the sketch."""
    target = ctx.require_target()
    flags = ctx.require_flags()

    cmd = [
        executable, "compile", "--clean",
        "--fqbn", target.fqbn,
        "--build-path", str(ctx.arduino_build_dir),
    ]
    if target.board_options_csv:
        cmd.extend(["--board-options", target.board_options_csv])
    for prop in flags.build_properties(ctx.swift_obj_path):
        cmd.extend(["--build-property", prop])
    for lib_dir in ctx.native_libraries:
        cmd.extend(["--library", str(lib_dir)])
    cmd.append(str(ctx.sketch_dir))
    return cmd


class BuildOrchestrator:
    """
    Orchestrates the build of one arduswift project.

    Example usage:
        ctx = BuildContext.create(Path("."))
        result = BuildOrchestrator().build(ctx)
        if result.success:
            print(f"Artifacts: {ctx.arduino_build_dir}")
    """

    def __init__(
        self,
        arduino_cli: Optional[ArduinoCli] = None,
        toolchain: Optional[SwiftToolchain] = None,
    ):
        """
        Initialize build orchestrator.

        Args:
            arduino_cli: arduino-cli wrapper (default: ``arduino-cli`` on PATH)
            toolchain: swiftc wrapper (default: created from the context's swiftc)
        """
        self.arduino_cli = arduino_cli or ArduinoCli()
        self._toolchain = toolchain

    def toolchain(self, ctx: BuildContext) -> SwiftToolchain:
        if self._toolchain is None:
            self._toolchain = SwiftToolchain(ctx.swiftc)
        return self._toolchain

    def steps(self) -> List[PipelineStep]:
        return [
            PipelineStep("1) Init + validate environment", self.step_init),
            PipelineStep("2) Read config + select board + parse libs", self.step_config_select),
            PipelineStep("3) Prepare sketch workspace", self.step_workspace_prep),
            PipelineStep("4) Stage sources + libs", self.step_stage_sources),
            PipelineStep("5) Compile + arduino-cli build", self.step_compile_and_link),
        ]

    def build(self, ctx: BuildContext) -> PipelineResult:
        """Run the build pipeline.

        Returns:
            PipelineResult of the run
        """
        log.info("arduino-swift build")
        log.info(f"Project: {ctx.project_root}")
        log.info(f"Tool:    {ctx.tool_root}")
        log.info(f"Build:   {ctx.build_dir}")

        result = Pipeline(self.steps()).run(ctx)
        if result.success:
            log.info("Build complete")
            log.info(f"Artifacts: {ctx.arduino_build_dir}")
        else:
            log.error("Build failed")
            log.error(f"Tip: inspect the logs above and the sketch tree under: {ctx.sketch_dir}")
        return result

    def step_init(self, ctx: BuildContext) -> None:
        require_dir(ctx.runtime_arduino, "Runtime arduino dir")
        require_dir(ctx.runtime_swift, "Runtime swift dir")
        require_config(ctx)
        prepend_swiftly_bin()
        self.arduino_cli.ensure_available()
        require_command("python3")
        ctx.swiftc = self.toolchain(ctx).resolve()

    def step_config_select(self, ctx: BuildContext) -> None:
        toolchain = self.toolchain(ctx)
        select_config(ctx, runtime_available=toolchain.has_embedded_runtime)
        self.arduino_cli.ensure_core(ctx.require_target().core)
        toolchain.ensure_embedded_runtime(ctx.require_flags().swift_target)

    def step_workspace_prep(self, ctx: BuildContext) -> None:
        WorkspaceBuilder(ctx).prepare()

    def step_stage_sources(self, ctx: BuildContext) -> None:
        staged = LibraryStager(ctx).resolve_and_stage(ctx.swift_libs)
        ctx.swift_sources = list(staged.swift_sources)
        ctx.native_libraries = list(staged.native_libraries)

    def step_compile_and_link(self, ctx: BuildContext) -> None:
        if not ctx.main_swift_path.is_file():
            raise MissingFile(ctx.main_swift_path, "main.swift (project root)")

        flags = ctx.require_flags()
        sources = ctx.swift_sources + [ctx.main_swift_path]
        swiftc_cmd = flags.swiftc_command(self.toolchain(ctx).swiftc, sources, ctx.swift_obj_path)
        run_checked(
            "swiftc",
            swiftc_cmd,
            ctx.step_log("build_swiftc"),
            tail_lines=SWIFTC_TAIL_LINES,
        )

        run_checked(
            "arduino-cli compile",
            arduino_compile_command(ctx, self.arduino_cli.executable),
            ctx.step_log("build_arduino_cli"),
            tail_lines=ARDUINO_CLI_TAIL_LINES,
        )
