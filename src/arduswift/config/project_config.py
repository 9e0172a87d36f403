"""
Project configuration loader for config.json.

A project directory holds a ``config.json`` that names the target board and
the libraries the sketch needs:

    {
        "board": "giga",
        "lib": ["I2C", "wifi"],
        "arduino_lib": ["Adafruit_GFX"],
        "arduino_lib_dir": "~/Documents/Arduino/libraries",
        "board_options": {"target_core": "cm4"}
    }

Only ``board`` is required.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import InvalidConfig, MissingFile, MissingTargetName

CONFIG_FILENAME = "config.json"
DEFAULT_ARDUINO_LIB_DIR = Path.home() / "Documents" / "Arduino" / "libraries"


def read_text(path: Path, what: str, hint: Optional[str] = None) -> str:
    """Read a required text file.

    Raises:
        MissingFile: If the file does not exist
    """
    if not path.is_file():
        raise MissingFile(path, what, hint=hint)
    return path.read_text(encoding="utf-8")


def parse_json_object(text: str, source: str) -> Dict[str, Any]:
    """Parse JSON text that must hold an object at top level.

    Args:
        text: Raw JSON text
        source: File name used in error messages

    Raises:
        InvalidConfig: If the text is not valid JSON or not an object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidConfig(
            f"Invalid JSON in {source}: {e.msg} (line {e.lineno}, column {e.colno})"
        ) from e
    if not isinstance(data, dict):
        raise InvalidConfig(f"{source} must contain a JSON object at top level")
    return data


def _string_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidConfig(f'config.json key "{key}" must be an array of strings')
    return [v for v in value if v]


def _string_map(data: Dict[str, Any], key: str) -> Dict[str, str]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InvalidConfig(f'config.json key "{key}" must be an object')
    return {str(k): str(v) for k, v in value.items()}


@dataclass
class ProjectConfig:
    """Parsed contents of a project's config.json."""

    board: str
    lib: List[str] = field(default_factory=list)
    arduino_lib: List[str] = field(default_factory=list)
    arduino_lib_dir: Optional[Path] = None
    board_options: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_text(
        cls, text: str, project_root: Optional[Path] = None
    ) -> "ProjectConfig":
        """Parse config.json text.

        Args:
            text: Raw config.json contents
            project_root: Directory used to resolve a relative arduino_lib_dir

        Returns:
            ProjectConfig instance

        Raises:
            InvalidConfig: If the JSON is malformed or a key has the wrong type
            MissingTargetName: If ``board`` is absent or empty
        """
        data = parse_json_object(text, CONFIG_FILENAME)

        board = data.get("board")
        if not isinstance(board, str) or not board.strip():
            config_path = project_root / CONFIG_FILENAME if project_root else None
            raise MissingTargetName(config_path)

        return cls(
            board=board.strip(),
            lib=_string_list(data, "lib"),
            arduino_lib=_string_list(data, "arduino_lib"),
            arduino_lib_dir=cls._lib_dir(data.get("arduino_lib_dir"), project_root),
            board_options=_string_map(data, "board_options"),
        )

    @classmethod
    def from_file(cls, project_root: Path) -> "ProjectConfig":
        """Load config.json from a project directory."""
        text = read_text(
            project_root / CONFIG_FILENAME,
            CONFIG_FILENAME,
            hint='Create config.json with at least {"board": "due"}',
        )
        return cls.from_text(text, project_root)

    @staticmethod
    def _lib_dir(value: Any, project_root: Optional[Path]) -> Optional[Path]:
        if value is None or value == "":
            if DEFAULT_ARDUINO_LIB_DIR.is_dir():
                return DEFAULT_ARDUINO_LIB_DIR
            return None
        if not isinstance(value, str):
            raise InvalidConfig('config.json key "arduino_lib_dir" must be a string')
        path = Path(value).expanduser()
        if not path.is_absolute() and project_root is not None:
            path = project_root / path
        return path
