"""
Board catalog loader for boards.json.

The catalog maps short board names to everything needed to build for them:
the arduino-cli FQBN, the Arduino core that must be installed, the Swift
target triple and CPU, and optional float ABI settings.

Example boards.json entry:
    "giga": {
        "fqbn": "arduino:mbed_giga:giga",
        "core": "arduino:mbed_giga",
        "api": "giga_mbed",
        "swift_target": "armv7em-none-none-eabi",
        "cpu": "cortex-m7",
        "float_abi": "softfp",
        "fpu": "fpv5-d16",
        "default_board_options": {"target_core": "cm7", "split": "100_0"}
    }

Usage:
    catalog = BoardCatalog.from_file(Path("boards.json"))
    profile = catalog.get("giga")
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ConfigError, InvalidConfig, UnknownTarget
from .project_config import parse_json_object, read_text

CATALOG_FILENAME = "boards.json"
DEFAULT_SWIFT_TARGET = "armv7-none-none-eabi"
DEFAULT_CPU = "cortex-m3"

BUNDLED_CATALOG = Path(__file__).resolve().parent.parent / "assets" / CATALOG_FILENAME


def core_from_fqbn(fqbn: str) -> str:
    """Return the ``vendor:arch`` prefix of an FQBN.

    Example:
        >>> core_from_fqbn("arduino:renesas_uno:minima")
        'arduino:renesas_uno'
    """
    parts = fqbn.split(":")
    if len(parts) < 2:
        return ""
    return ":".join(parts[:2])


@dataclass(frozen=True)
class TargetProfile:
    """One board entry of the catalog with defaults applied."""

    name: str
    fqbn: str
    core: str = ""
    api: str = ""
    swift_target: str = DEFAULT_SWIFT_TARGET
    cpu: str = DEFAULT_CPU
    float_abi: str = ""
    fpu: str = ""
    default_board_options: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "TargetProfile":
        """Create a profile from a raw catalog entry.

        Raises:
            ConfigError: If the entry has no ``fqbn``
            InvalidConfig: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise InvalidConfig(f"boards.json entry for {name} must be an object")

        fqbn = _optional_str(data, "fqbn", name)
        if not fqbn:
            raise ConfigError(
                f"boards.json missing fqbn for board: {name}",
                hint='Add e.g. "fqbn": "arduino:sam:arduino_due_x" to the entry',
            )

        options = data.get("default_board_options") or {}
        if not isinstance(options, dict):
            raise InvalidConfig(
                f"boards.json default_board_options for {name} must be an object"
            )

        return cls(
            name=name,
            fqbn=fqbn,
            core=_optional_str(data, "core", name) or core_from_fqbn(fqbn),
            api=_optional_str(data, "api", name),
            swift_target=_optional_str(data, "swift_target", name) or DEFAULT_SWIFT_TARGET,
            cpu=_optional_str(data, "cpu", name) or DEFAULT_CPU,
            float_abi=_optional_str(data, "float_abi", name),
            fpu=_optional_str(data, "fpu", name),
            default_board_options={str(k): str(v) for k, v in options.items()},
        )


def _optional_str(data: Dict[str, Any], key: str, board: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidConfig(f"boards.json field {key} for {board} must be a string")
    return value.strip()


class BoardCatalog:
    """Collection of TargetProfiles keyed by board name."""

    def __init__(self, entries: Dict[str, Dict[str, Any]], source: Optional[Path] = None):
        self._entries = entries
        self.source = source

    @classmethod
    def from_text(cls, text: str, source: Optional[Path] = None) -> "BoardCatalog":
        """Parse boards.json text.

        Raises:
            InvalidConfig: If the text is not a JSON object
        """
        return cls(parse_json_object(text, CATALOG_FILENAME), source)

    @classmethod
    def from_file(cls, path: Path) -> "BoardCatalog":
        text = read_text(
            path,
            CATALOG_FILENAME,
            hint="Point --tool-root (or ARDUINO_SWIFT_TOOL_ROOT) at a directory containing boards.json",
        )
        return cls.from_text(text, path)

    @classmethod
    def bundled(cls) -> "BoardCatalog":
        """Load the catalog shipped with the package."""
        return cls.from_file(BUNDLED_CATALOG)

    def names(self) -> List[str]:
        return sorted(self._entries)

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def get(self, name: str) -> TargetProfile:
        """Look up a board by name.

        Raises:
            UnknownTarget: If the name is not in the catalog
        """
        if name not in self._entries:
            raise UnknownTarget(name, self.names())
        return TargetProfile.from_dict(name, self._entries[name])
