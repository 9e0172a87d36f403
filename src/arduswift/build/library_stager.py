"""
Library resolution and staging.

A library named in config.json ``lib`` may exist in up to two trees of the
tool root:

    swift/libs/<Name>/      Swift sources (plus optional C/C++ bridge files)
    arduino/libs/<Name>/    Arduino-side C/C++ sources

Names are matched case-insensitively. Swift sources are collected for the
swiftc invocation. C/C++ files are staged into ``sketch/libraries/<Leaf>``
in Arduino 1.5 layout, and then made visible to arduino-cli regardless of
its own library discovery:

- every header gets a forwarding shim header in the sketch root
- every source is copied to the sketch root as ``__asw_<Leaf>__<file>``

Sketchbook libraries (``arduino_lib``) are never copied; they are passed to
arduino-cli with ``--library``.
"""

import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..build_log import get_logger
from ..errors import LibraryError, LibraryNotFound
from .build_utils import copy_file, files_with_suffix, list_tree
from .context import BuildContext

log = get_logger(__name__)

SOURCE_SUFFIXES = {".c", ".cpp", ".cc", ".cxx"}
HEADER_SUFFIXES = {".h", ".hpp", ".hh", ".hxx"}
NATIVE_SUFFIXES = SOURCE_SUFFIXES | HEADER_SUFFIXES
SWIFT_SUFFIXES = {".swift"}

PROMOTED_PREFIX = "__asw_"
SHIM_BANNER = "// Auto-generated by arduino-swift"

LIBRARY_PROPERTIES_TEMPLATE = """\
name={name}
version=0.0.0
author=arduino-swift
maintainer=arduino-swift
sentence=Auto-generated metadata for staged arduino-swift bridge sources.
paragraph=Generated by arduino-swift to keep staged libs in Arduino 1.5 format.
category=Other
url=
architectures=*
"""


def resolve_dir_case_insensitive(base: Path, name: str) -> Optional[Tuple[Path, str]]:
    """Find a subdirectory of ``base`` whose name matches ``name`` ignoring case.

    Entries are scanned in sorted order, so the result is deterministic when
    several directories differ only by case.

    Returns:
        ``(path, actual_leaf)`` or None if nothing matches
    """
    if not name or not base.is_dir():
        return None
    wanted = name.lower()
    for entry in sorted(base.iterdir()):
        if entry.is_dir() and entry.name.lower() == wanted:
            return entry, entry.name
    return None


@dataclass
class LibraryReference:
    """A declared library name and the directories it resolved to."""

    name: str
    swift_dir: Optional[Path] = None
    swift_leaf: str = ""
    native_dir: Optional[Path] = None
    native_leaf: str = ""

    @property
    def language_only(self) -> bool:
        """True when the library has no Arduino-side counterpart."""
        return self.native_dir is None


@dataclass
class StagedLibrarySet:
    """Result of resolving and staging the declared libraries."""

    references: List[LibraryReference] = field(default_factory=list)
    swift_sources: List[Path] = field(default_factory=list)
    staged_dirs: List[Path] = field(default_factory=list)
    shim_headers: List[Path] = field(default_factory=list)
    promoted_sources: List[Path] = field(default_factory=list)
    native_libraries: List[Path] = field(default_factory=list)


class LibraryStager:
    """Resolves declared libraries and stages them into the sketch."""

    def __init__(self, ctx: BuildContext):
        self.ctx = ctx

    @property
    def swift_lib_roots(self) -> List[Path]:
        return [self.ctx.runtime_swift / "libs", self.ctx.project_root / "libs"]

    @property
    def native_lib_root(self) -> Path:
        return self.ctx.runtime_arduino / "libs"

    def core_sources(self) -> List[Path]:
        """Swift core sources of the runtime, sorted.

        Raises:
            LibraryError: If the core directory holds no Swift files
        """
        core_dir = self.ctx.runtime_swift / "core"
        sources = files_with_suffix(core_dir, SWIFT_SUFFIXES)
        if not sources:
            raise LibraryError(
                f"No Swift core sources found in: {core_dir}",
                hint="Check --tool-root (or ARDUINO_SWIFT_TOOL_ROOT)",
            )
        return sources

    def resolve(self, name: str) -> LibraryReference:
        """Resolve one declared library against both trees.

        Raises:
            LibraryNotFound: If no Swift library of that name exists
        """
        ref = LibraryReference(name=name)

        for root in self.swift_lib_roots:
            found = resolve_dir_case_insensitive(root, name)
            if found:
                ref.swift_dir, ref.swift_leaf = found
                if root == self.ctx.project_root / "libs":
                    log.info(f"Using project-local Swift lib: {ref.swift_leaf} ({ref.swift_dir})")
                break
        else:
            raise LibraryNotFound(name, self.swift_lib_roots)

        found = resolve_dir_case_insensitive(self.native_lib_root, name)
        if found:
            ref.native_dir, ref.native_leaf = found
        return ref

    def resolve_and_stage(self, library_names: Optional[Sequence[str]] = None) -> StagedLibrarySet:
        """Resolve and stage libraries, returning the ordered Swift sources.

        Swift sources are ordered core first, then each library in declaration
        order. The project's main.swift is not included.

        Args:
            library_names: Declared Swift library names (default: context swift_libs)

        Raises:
            LibraryError: If core sources are missing or a library has no Swift files
            LibraryNotFound: If a declared library does not exist
        """
        names = list(self.ctx.swift_libs if library_names is None else library_names)
        result = StagedLibrarySet()
        result.swift_sources.extend(self.core_sources())

        if names:
            log.info(f"Including {len(names)} Swift lib(s)")
        else:
            log.info("No Swift libs specified -> core only")

        # leaf -> staged dir, in first-seen order
        staged: Dict[str, Path] = {}

        for name in names:
            if not name:
                continue
            ref = self.resolve(name)
            result.references.append(ref)
            swift_dir = ref.swift_dir
            if swift_dir is None:
                raise LibraryNotFound(name, self.swift_lib_roots)

            swift_files = files_with_suffix(swift_dir, SWIFT_SUFFIXES)
            if not swift_files:
                raise LibraryError(f"No Swift files found in lib dir: {swift_dir}")
            log.info(f"Adding Swift lib: {ref.swift_leaf}")
            result.swift_sources.extend(swift_files)

            bridge_files = files_with_suffix(swift_dir, NATIVE_SUFFIXES)
            if bridge_files:
                log.info(f"Staging Swift bridge sources for lib: {ref.swift_leaf}")

                def copy_bridge(scratch: Path, files=bridge_files, root=swift_dir) -> None:
                    for src in files:
                        copy_file(src, scratch / src.relative_to(root))

                staged.setdefault(ref.swift_leaf, self._merge_staged(ref.swift_leaf, copy_bridge))

            if ref.native_dir is None:
                log.info(f"Swift-only lib (language-only, no Arduino side): {name}")
            else:
                log.info(f"Copying Arduino lib: {ref.native_leaf}")

                def copy_native(scratch: Path, native_dir=ref.native_dir) -> None:
                    shutil.copytree(native_dir, scratch, dirs_exist_ok=True)

                staged.setdefault(ref.native_leaf, self._merge_staged(ref.native_leaf, copy_native))

        for leaf, lib_dir in staged.items():
            ensure_library_properties(lib_dir, leaf)
            result.staged_dirs.append(lib_dir)
            result.shim_headers.extend(self.generate_shim_headers(leaf))
            result.promoted_sources.extend(self.promote_sources(leaf))

        result.native_libraries.extend(self.resolve_sketchbook_libraries())

        log.debug("--- sketch tree ---")
        for entry in list_tree(self.ctx.sketch_dir):
            log.debug(entry)
        log.debug("--- end sketch tree ---")
        return result

    def _merge_staged(self, leaf: str, copy: Callable[[Path], None]) -> Path:
        """Copy one side of a library into a scratch dir, normalize it, merge into the leaf.

        Each side is normalized on its own, so a flat bridge side and an
        Arduino side that already has ``src/`` end up in the same ``src/``.
        """
        dst = self.ctx.sketch_libraries_dir / leaf
        self.ctx.build_dir.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="asw-stage-", dir=self.ctx.build_dir) as tmp:
            scratch = Path(tmp) / leaf
            scratch.mkdir()
            copy(scratch)
            normalize_library_layout(scratch)
            shutil.copytree(scratch, dst, dirs_exist_ok=True)
        return dst

    def generate_shim_headers(self, leaf: str) -> List[Path]:
        """Write a forwarding header in the sketch root for each library header.

        An existing file of the same name is left alone and a warning logged.
        """
        src_dir = self.ctx.sketch_libraries_dir / leaf / "src"
        written = []
        for header in files_with_suffix(src_dir, HEADER_SUFFIXES):
            shim = self.ctx.sketch_dir / header.name
            rel = f"libraries/{leaf}/src/{header.relative_to(src_dir).as_posix()}"
            if shim.exists():
                log.warning(f"Shim header collision: {header.name} already exists (skipping)")
                continue
            shim.write_text(
                f'{SHIM_BANNER}\n#pragma once\n#include "{rel}"\n', encoding="utf-8"
            )
            log.info(f"Shim header: {header.name} -> {rel}")
            written.append(shim)
        return written

    def promote_sources(self, leaf: str) -> List[Path]:
        """Copy library sources to the sketch root so they are always compiled."""
        src_dir = self.ctx.sketch_libraries_dir / leaf / "src"
        promoted = []
        for source in files_with_suffix(src_dir, SOURCE_SUFFIXES):
            dst = self.ctx.sketch_dir / f"{PROMOTED_PREFIX}{leaf}__{source.name}"
            copy_file(source, dst)
            log.info(f"Promoted: {source.name} -> {dst.name}")
            promoted.append(dst)
        return promoted

    def resolve_sketchbook_libraries(self) -> List[Path]:
        """Find ``arduino_lib`` entries in the sketchbook library directory.

        Missing libraries are skipped with a warning.
        """
        names = [n for n in self.ctx.arduino_libs if n]
        lib_dir = self.ctx.user_arduino_lib_dir
        if not names:
            return []
        if lib_dir is None or not lib_dir.is_dir():
            log.warning(
                f"{len(names)} user Arduino lib(s) requested but no sketchbook library "
                "directory is available (set arduino_lib_dir in config.json)"
            )
            return []

        log.info(f"User Arduino libs requested: {len(names)} (sketchbook={lib_dir})")
        found = []
        for name in names:
            match = resolve_dir_case_insensitive(lib_dir, name)
            if match is None:
                log.warning(f"User Arduino lib not found in sketchbook: {name} (skipping)")
                continue
            path, leaf = match
            log.info(f"Using user Arduino lib (sketchbook): {leaf} ({path})")
            found.append(path)
        return found


def normalize_library_layout(lib_dir: Path) -> None:
    """Move root-level sources and headers into ``src/`` (Arduino 1.5 layout).

    Does nothing if ``src/`` already exists or the root has no such files.
    """
    src_dir = lib_dir / "src"
    if src_dir.exists():
        return
    root_files = files_with_suffix(lib_dir, NATIVE_SUFFIXES, recursive=False)
    if not root_files:
        return
    src_dir.mkdir()
    for f in root_files:
        f.rename(src_dir / f.name)


def ensure_library_properties(lib_dir: Path, name: str) -> None:
    """Write a minimal library.properties unless one exists."""
    props = lib_dir / "library.properties"
    if props.exists():
        return
    props.write_text(LIBRARY_PROPERTIES_TEMPLATE.format(name=name), encoding="utf-8")
