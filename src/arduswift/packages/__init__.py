"""External tool wrappers for arduswift (swiftc, arduino-cli)."""

from .arduino_core import ArduinoCli
from .toolchain import SwiftToolchain, require_command, which

__all__ = [
    "ArduinoCli",
    "SwiftToolchain",
    "require_command",
    "which",
]
