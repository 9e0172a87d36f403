"""Error taxonomy for arduswift.

Every pipeline step raises one of these exceptions on failure. The pipeline
driver catches ``ArduSwiftError`` and turns it into a failed step result; the
CLI turns that into a non-zero exit code.
"""

from pathlib import Path
from typing import Dict, List, Mapping, Optional


class ArduSwiftError(Exception):
    """Base error carrying an optional remediation hint and context lines."""

    def __init__(
        self,
        message: str,
        hint: Optional[str] = None,
        context: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.context: Dict[str, str] = dict(context or {})

    def __str__(self) -> str:
        parts = [self.message]
        for key, value in self.context.items():
            if value:
                parts.append(f"  {key}: {value}")
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)


class ConfigError(ArduSwiftError):
    """Missing or invalid project configuration or board catalog."""

    pass


class MissingFile(ConfigError):
    """A required configuration file does not exist."""

    def __init__(self, path: Path, what: str, hint: Optional[str] = None):
        super().__init__(
            f"{what} not found at: {path}",
            hint=hint,
        )
        self.path = Path(path)


class MissingTargetName(ConfigError):
    """The project configuration does not name a board."""

    def __init__(self, config_path: Optional[Path] = None):
        super().__init__(
            "config.json missing required key: board",
            hint='Add e.g. "board": "due" to config.json',
            context={"config": str(config_path) if config_path else ""},
        )


class InvalidConfig(ConfigError):
    """A configuration file is not valid JSON or has the wrong shape."""

    pass


class TargetError(ArduSwiftError):
    """The requested target could not be resolved."""

    pass


class UnknownTarget(TargetError):
    """The requested board name is not present in the catalog."""

    def __init__(self, board: str, known: Optional[List[str]] = None):
        super().__init__(
            f"Invalid board: {board}",
            hint="Pick one of the boards listed in boards.json",
            context={"known boards": ", ".join(known or [])},
        )
        self.board = board
        self.known = list(known or [])


class LibraryError(ArduSwiftError):
    """A declared library could not be resolved or staged."""

    pass


class LibraryNotFound(LibraryError):
    """A declared Swift library does not exist in any Swift library root."""

    def __init__(self, name: str, searched: Optional[List[Path]] = None):
        super().__init__(
            f"Swift lib not found: {name}",
            hint='Check the "lib" array in config.json',
            context={"searched": ", ".join(str(p) for p in searched or [])},
        )
        self.name = name


class ToolchainError(ArduSwiftError):
    """A required tool is missing or cannot build for the selected target."""

    pass


class ArgumentOverflowError(ArduSwiftError):
    """The accumulated compiler argument text exceeded its capacity."""

    pass


class ExternalToolFailure(ArduSwiftError):
    """An external tool exited with a non-zero status."""

    def __init__(
        self,
        tool: str,
        returncode: int,
        log_path: Optional[Path] = None,
        tail: Optional[List[str]] = None,
    ):
        super().__init__(
            f"{tool} failed with exit code {returncode}",
            context={"log": str(log_path) if log_path else ""},
        )
        self.tool = tool
        self.returncode = returncode
        self.log_path = log_path
        self.tail = list(tail or [])


class PortDetectionError(ArduSwiftError):
    """No attached device passed the port filters."""

    def __init__(self, fqbn: str, listing: str = ""):
        super().__init__(
            f"No suitable serial port detected for FQBN: {fqbn}",
            hint="Set PORT explicitly, e.g. PORT=/dev/cu.usbmodemXXXX arduino-swift upload",
        )
        self.fqbn = fqbn
        self.listing = listing
