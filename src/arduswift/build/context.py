"""Build context shared by all pipeline steps."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config.project_config import CONFIG_FILENAME
from ..config.board_catalog import CATALOG_FILENAME
from ..config.target_resolver import TargetDescriptor
from .flag_builder import CompilerFlagSet

ROOT_ENV = "ARDUINO_SWIFT_ROOT"
TOOL_ROOT_ENV = "ARDUINO_SWIFT_TOOL_ROOT"
SWIFTC_ENV = "SWIFTC"

BUNDLED_TOOL_ROOT = Path(__file__).resolve().parent.parent / "assets"
SWIFT_OBJ_NAME = "ArduinoSwiftApp.o"
SWIFTC_CACHE_NAME = ".swiftc_path"


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name, "")
    return Path(value) if value else None


@dataclass
class BuildContext:
    """Mutable state threaded through every pipeline step.

    Paths are derived from ``project_root`` and ``tool_root``; the remaining
    fields are filled in as the steps run.
    """

    project_root: Path
    tool_root: Path
    swiftc: str = "swiftc"

    config_text: str = ""
    catalog_text: str = ""
    board: str = ""
    target: Optional[TargetDescriptor] = None
    flags: Optional[CompilerFlagSet] = None

    swift_libs: List[str] = field(default_factory=list)
    arduino_libs: List[str] = field(default_factory=list)
    user_arduino_lib_dir: Optional[Path] = None

    swift_sources: List[Path] = field(default_factory=list)
    native_libraries: List[Path] = field(default_factory=list)
    last_log_path: Optional[Path] = None

    @classmethod
    def create(
        cls,
        project_dir: Optional[Path] = None,
        tool_root: Optional[Path] = None,
    ) -> "BuildContext":
        """Create a context from the environment and CLI arguments.

        Environment variables take precedence over the arguments:
        ARDUINO_SWIFT_ROOT for the project, ARDUINO_SWIFT_TOOL_ROOT for the
        tool root, SWIFTC for the compiler.
        """
        project_root = _env_path(ROOT_ENV) or project_dir or Path.cwd()
        tool = _env_path(TOOL_ROOT_ENV) or tool_root or BUNDLED_TOOL_ROOT
        ctx = cls(project_root=Path(project_root).resolve(), tool_root=Path(tool).resolve())
        ctx.swiftc = ctx._resolve_swiftc()
        return ctx

    def _resolve_swiftc(self) -> str:
        env = os.environ.get(SWIFTC_ENV, "")
        if env:
            return env
        if self.swiftc_cache_path.is_file():
            cached = self.swiftc_cache_path.read_text(encoding="utf-8").strip()
            if cached:
                return cached
        return "swiftc"

    @property
    def runtime_arduino(self) -> Path:
        return self.tool_root / "arduino"

    @property
    def runtime_swift(self) -> Path:
        return self.tool_root / "swift"

    @property
    def config_path(self) -> Path:
        return self.project_root / CONFIG_FILENAME

    @property
    def boards_path(self) -> Path:
        return self.tool_root / CATALOG_FILENAME

    @property
    def build_dir(self) -> Path:
        return self.project_root / "build"

    @property
    def sketch_dir(self) -> Path:
        return self.build_dir / "sketch"

    @property
    def sketch_libraries_dir(self) -> Path:
        return self.sketch_dir / "libraries"

    @property
    def arduino_build_dir(self) -> Path:
        return self.build_dir / "arduino_build"

    @property
    def logs_dir(self) -> Path:
        return self.build_dir / "logs"

    @property
    def swiftc_cache_path(self) -> Path:
        return self.build_dir / SWIFTC_CACHE_NAME

    @property
    def env_script_path(self) -> Path:
        return self.build_dir / "env.sh"

    @property
    def swift_obj_path(self) -> Path:
        return self.sketch_dir / SWIFT_OBJ_NAME

    @property
    def main_swift_path(self) -> Path:
        return self.project_root / "main.swift"

    def step_log(self, name: str) -> Path:
        """Select ``logs/<name>.log`` as the current step log and return it."""
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.last_log_path = self.logs_dir / f"{name or 'step'}.log"
        return self.last_log_path

    def require_target(self) -> TargetDescriptor:
        if self.target is None:
            raise RuntimeError("target not resolved; run the config step first")
        return self.target

    def require_flags(self) -> CompilerFlagSet:
        if self.flags is None:
            raise RuntimeError("compiler flags not derived; run the config step first")
        return self.flags
