"""Toolchain Flag Builder.

This module derives the Swift target triple, CPU and float ABI flags for a
resolved target, and renders them for both sides of the build: the swiftc
invocation and the arduino-cli build properties.

Design:
    - The Swift object and the Arduino core are compiled by different
      toolchains and linked together, so both must agree on enum size and
      float ABI. ``native_flags`` is the single source for those flags.
    - Float ABI is chosen per board family (keyed by the Arduino core),
      not taken verbatim from the catalog.
    - An optional runtime probe rejects triples for which the installed
      swiftc has no Embedded runtime.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..config.target_resolver import TargetDescriptor
from ..errors import ArgumentOverflowError, ToolchainError

# Upper bound on the rendered swiftc argument text, in characters.
SWIFT_ARGS_CAPACITY = 200000

CORE_RENESAS_UNO = "arduino:renesas_uno"
CORE_MBED_GIGA = "arduino:mbed_giga"

BASE_NATIVE_FLAGS = ["-fno-short-enums"]

RuntimeProbe = Callable[[str], bool]


def soft_triple(triple: str) -> str:
    """Return the general (non hard-float) variant of a triple.

    Example:
        >>> soft_triple("armv7em-none-none-eabihf")
        'armv7em-none-none-eabi'
    """
    if triple.endswith("eabihf"):
        return triple[: -len("hf")]
    return triple


@dataclass
class CompilerFlagSet:
    """Flags shared by the swiftc invocation and the Arduino build."""

    swift_target: str
    cpu: str
    float_abi: str = ""
    fpu: str = ""
    native_flags: List[str] = field(default_factory=lambda: list(BASE_NATIVE_FLAGS))

    @property
    def extra_flags(self) -> str:
        return " ".join(self.native_flags)

    def swiftc_args(self) -> List[str]:
        """Target and code generation arguments for swiftc (no sources)."""
        args = [
            "-target", self.swift_target,
            "-O", "-wmo", "-parse-as-library",
            "-Xfrontend", "-enable-experimental-feature", "-Xfrontend", "Embedded",
            "-Xfrontend", "-target-cpu", "-Xfrontend", self.cpu,
            "-Xfrontend", "-disable-stack-protector",
        ]
        for flag in (
            f"-mcpu={self.cpu}",
            "-mthumb",
            "-ffreestanding",
            "-fno-builtin",
            "-fdata-sections",
            "-ffunction-sections",
        ):
            args.extend(["-Xcc", flag])
        for flag in self.native_flags:
            args.extend(["-Xcc", flag])
        return args

    def swiftc_command(
        self, swiftc: str, sources: Sequence[Path], obj_path: Path
    ) -> List[str]:
        """Full swiftc command compiling ``sources`` into one object.

        Raises:
            ArgumentOverflowError: If the argument text exceeds SWIFT_ARGS_CAPACITY
        """
        cmd = [str(swiftc)] + self.swiftc_args()
        cmd.extend(str(src) for src in sources)
        cmd.extend(["-c", "-o", str(obj_path)])

        size = sum(len(arg) + 1 for arg in cmd)
        if size > SWIFT_ARGS_CAPACITY:
            raise ArgumentOverflowError(
                f"swiftc arguments too long ({size} > {SWIFT_ARGS_CAPACITY} characters)",
                hint="Reduce the number of Swift libraries in config.json",
                context={"sources": str(len(sources))},
            )
        return cmd

    def build_properties(self, obj_path: Path) -> List[str]:
        """Values for ``arduino-cli compile --build-property``.

        The Swift object is injected through the ELF link flags, together
        with an ``end`` alias that newlib's sbrk expects.
        """
        return [
            f"compiler.c.extra_flags={self.extra_flags}",
            f"compiler.cpp.extra_flags={self.extra_flags}",
            f'compiler.c.elf.extra_flags="{obj_path}" -Wl,--defsym=end=_end',
        ]


class FlagBuilder:
    """Derives a CompilerFlagSet from a TargetDescriptor.

    Board families:
    - Uno R4 (``arduino:renesas_uno``): swiftc only ships a soft-float
      Embedded runtime for this CPU, so the triple is forced to ``-eabi``
      and the Arduino side is told to use hard float with fpv4-sp-d16.
    - Giga R1 (``arduino:mbed_giga``): softfp, fpv5-d16 on the M7 core and
      fpv4-sp-d16 when ``target_core=cm4``.
    - Anything else: catalog triple, no float flags.
    """

    def __init__(
        self,
        target: TargetDescriptor,
        runtime_available: Optional[RuntimeProbe] = None,
    ):
        """Initialize flag builder.

        Args:
            target: Resolved target
            runtime_available: Optional predicate telling whether swiftc has an
                Embedded runtime for a triple
        """
        self.target = target
        self.runtime_available = runtime_available

    def derive(self) -> CompilerFlagSet:
        """Build the flag set for the target.

        Raises:
            ToolchainError: If no Embedded runtime exists for the triple or its
                soft-float variant
        """
        target = self.target
        triple = target.swift_target
        float_abi = ""
        fpu = ""

        if target.core == CORE_RENESAS_UNO:
            triple = soft_triple(triple)
            float_abi = "hard"
            fpu = "fpv4-sp-d16"
        elif target.core == CORE_MBED_GIGA:
            float_abi = "softfp"
            if target.board_options.get("target_core", "cm7") == "cm4":
                fpu = "fpv4-sp-d16"
            else:
                fpu = "fpv5-d16"

        triple = self._check_runtime(triple)

        native_flags = list(BASE_NATIVE_FLAGS)
        if float_abi:
            native_flags.append(f"-mfloat-abi={float_abi}")
        if fpu:
            native_flags.append(f"-mfpu={fpu}")

        return CompilerFlagSet(
            swift_target=triple,
            cpu=target.cpu,
            float_abi=float_abi,
            fpu=fpu,
            native_flags=native_flags,
        )

    def _check_runtime(self, triple: str) -> str:
        if self.runtime_available is None or self.runtime_available(triple):
            return triple

        fallback = soft_triple(triple)
        if fallback != triple and self.runtime_available(fallback):
            return fallback

        raise ToolchainError(
            f"swiftc has no Embedded runtime for target {triple}",
            hint="Install a Swift toolchain with Embedded support (e.g. a swiftly main-snapshot)",
            context={"board": self.target.board},
        )


def derive(
    target: TargetDescriptor, runtime_available: Optional[RuntimeProbe] = None
) -> CompilerFlagSet:
    """Shorthand for ``FlagBuilder(target, runtime_available).derive()``."""
    return FlagBuilder(target, runtime_available).derive()
