"""Sketch workspace preparation.

Recreates ``build/sketch`` and ``build/arduino_build`` and stages the fixed
runtime files from the tool root:

    sketch.ino                required
    ArduinoSwiftShim.h        required (may be shipped as ArduinoSwiftShimBase.h/.hpp)
    ArduinoSwiftShim.cpp      required (may be shipped as ArduinoSwiftShimBase.cpp)
    Bridge.cpp                required
    SwiftRuntimeSupport.c     optional (.cpp accepted)
    api/<api>/*               optional board API glue
"""

from pathlib import Path
from typing import List, Optional, Sequence

from ..build_log import get_logger
from ..errors import MissingFile
from .build_utils import copy_file, files_with_suffix, safe_rmtree
from .context import BuildContext

log = get_logger(__name__)

SHIM_HEADER_CANDIDATES = (
    "ArduinoSwiftShim.h",
    "ArduinoSwiftShimBase.h",
    "ArduinoSwiftShim.hpp",
    "ArduinoSwiftShimBase.hpp",
)
SHIM_SOURCE_CANDIDATES = ("ArduinoSwiftShim.cpp", "ArduinoSwiftShimBase.cpp")
RUNTIME_SUPPORT_C = ("SwiftRuntimeSupport.c", "SwiftRuntimeSupportBase.c")
RUNTIME_SUPPORT_CPP = (
    "SwiftRuntimeSupport.cpp",
    "SwiftRuntimeSupportBase.cpp",
    "SwiftRuntimeSupport.cxx",
    "SwiftRuntimeSupportBase.cxx",
)
API_SUFFIXES = {".c", ".cpp", ".cc", ".cxx", ".h", ".hpp"}


def first_existing(directory: Path, candidates: Sequence[str]) -> Optional[Path]:
    """First ``directory/<name>`` that is a file, in candidate order."""
    for name in candidates:
        path = directory / name
        if path.is_file():
            return path
    return None


class WorkspaceBuilder:
    """Builds the Arduino sketch directory for one build."""

    def __init__(self, ctx: BuildContext):
        self.ctx = ctx

    @property
    def common_dir(self) -> Path:
        """Directory holding sketch.ino and the shim sources.

        Current runtimes keep them in ``arduino/commom``; older ones put
        them directly in ``arduino``.
        """
        common = self.ctx.runtime_arduino / "commom"
        if not common.is_dir() and (self.ctx.runtime_arduino / "sketch.ino").is_file():
            return self.ctx.runtime_arduino
        return common

    def prepare_dirs(self) -> None:
        ctx = self.ctx
        safe_rmtree(ctx.sketch_dir)
        safe_rmtree(ctx.arduino_build_dir)
        for d in (
            ctx.build_dir,
            ctx.sketch_dir,
            ctx.arduino_build_dir,
            ctx.logs_dir,
            ctx.sketch_libraries_dir,
        ):
            d.mkdir(parents=True, exist_ok=True)

    def prepare(self) -> List[Path]:
        """Recreate the workspace and stage runtime files.

        Returns:
            Paths of the staged files

        Raises:
            MissingFile: If a required runtime file is missing
        """
        self.prepare_dirs()
        log.info(f"Preparing Arduino sketch workspace at: {self.ctx.sketch_dir}")
        log.info(f"Runtime Arduino (common): {self.common_dir}")

        staged = [
            self._stage_required(("sketch.ino",), "sketch.ino"),
            self._stage_required(SHIM_HEADER_CANDIDATES, "ArduinoSwiftShim.h"),
            self._stage_required(SHIM_SOURCE_CANDIDATES, "ArduinoSwiftShim.cpp"),
            self._stage_required(("Bridge.cpp",), "Bridge.cpp"),
        ]

        support = self._stage_runtime_support()
        if support is not None:
            staged.append(support)

        staged.extend(self._stage_api())
        return staged

    def _stage_required(self, candidates: Sequence[str], dst_name: str) -> Path:
        src = first_existing(self.common_dir, candidates)
        if src is None:
            raise MissingFile(
                self.common_dir / dst_name,
                "Runtime file",
                hint="Check --tool-root (or ARDUINO_SWIFT_TOOL_ROOT)",
            )
        if src.name == dst_name:
            log.info(f"Using {dst_name}")
        else:
            log.info(f"Using {dst_name} (from {src.name})")
        return copy_file(src, self.ctx.sketch_dir / dst_name)

    def _support_dirs(self) -> List[Path]:
        ctx = self.ctx
        dirs = [
            self.common_dir,
            ctx.runtime_arduino,
            ctx.runtime_swift,
            ctx.runtime_swift / "common",
            ctx.runtime_swift / "support",
        ]
        unique: List[Path] = []
        for d in dirs:
            if d.is_dir() and d not in unique:
                unique.append(d)
        return unique

    def _stage_runtime_support(self) -> Optional[Path]:
        # C variant wins over C++ across all directories
        for candidates, dst_name in (
            (RUNTIME_SUPPORT_C, "SwiftRuntimeSupport.c"),
            (RUNTIME_SUPPORT_CPP, "SwiftRuntimeSupport.cpp"),
        ):
            for d in self._support_dirs():
                src = first_existing(d, candidates)
                if src is not None:
                    log.info(f"Using {dst_name} (from {src})")
                    return copy_file(src, self.ctx.sketch_dir / dst_name)

        log.warning(
            "SwiftRuntimeSupport.* not found in runtime folders (continuing without it). "
            "If link fails later, add SwiftRuntimeSupport.c/.cpp under arduino/commom "
            "or swift/support."
        )
        return None

    def _stage_api(self) -> List[Path]:
        target = self.ctx.target
        if target is None or not target.api:
            return []

        api_dir = self.ctx.runtime_arduino / "api" / target.api
        if not api_dir.is_dir():
            log.debug(f"no board API directory at {api_dir}")
            return []

        staged = []
        for src in files_with_suffix(api_dir, API_SUFFIXES, recursive=False):
            dst = self.ctx.sketch_dir / src.name
            if dst.exists():
                log.warning(f"API file {src.name} collides with a staged runtime file, skipping")
                continue
            staged.append(copy_file(src, dst))
        log.info(f"Staged {len(staged)} API file(s) from {api_dir}")
        return staged


def prepare_workspace(ctx: BuildContext) -> List[Path]:
    return WorkspaceBuilder(ctx).prepare()
