"""
Target resolution.

Combines a project's config.json with the board catalog into a single
TargetDescriptor. The FQBN is always the catalog's base identifier; board
options are carried separately and passed to arduino-cli with
``--board-options``.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from ..build_log import get_logger
from ..errors import ConfigError
from .board_catalog import CATALOG_FILENAME, BoardCatalog
from .project_config import CONFIG_FILENAME, ProjectConfig, read_text

log = get_logger(__name__)

# Emission order of board options. Keys outside this tuple are ignored.
BOARD_OPTION_KEYS = ("target_core", "split", "security")


@dataclass
class TargetDescriptor:
    """Fully resolved build target."""

    board: str
    fqbn: str
    core: str
    api: str
    swift_target: str
    cpu: str
    float_abi: str = ""
    fpu: str = ""
    board_options: Dict[str, str] = field(default_factory=dict)

    @property
    def board_options_csv(self) -> str:
        """Board options as ``k=v,k=v`` (empty when there are none)."""
        return ",".join(f"{k}={v}" for k, v in self.board_options.items())

    @property
    def fqbn_leaf(self) -> str:
        """Last ``:`` segment of the FQBN (e.g. ``giga``)."""
        return self.fqbn.rsplit(":", 1)[-1]

    def validate(self) -> None:
        """Check that every required field is populated.

        Raises:
            ConfigError: If a required field is empty
        """
        for name in ("board", "fqbn", "swift_target", "cpu"):
            if not getattr(self, name):
                raise ConfigError(f"Resolved target {self.board or '?'} has no {name}")


def merge_board_options(
    defaults: Mapping[str, str], overrides: Mapping[str, str]
) -> Dict[str, str]:
    """Merge catalog defaults with project overrides in canonical key order.

    A key present in neither mapping is omitted. Non-canonical keys are
    dropped.
    """
    for key in list(defaults) + list(overrides):
        if key not in BOARD_OPTION_KEYS:
            log.debug(f"ignoring unsupported board option: {key}")

    merged: Dict[str, str] = {}
    for key in BOARD_OPTION_KEYS:
        if key in overrides and overrides[key] != "":
            merged[key] = overrides[key]
        elif key in defaults and defaults[key] != "":
            merged[key] = defaults[key]
    return merged


def load(project_root: Path, tool_root: Path) -> Tuple[str, str]:
    """Read the raw config.json and boards.json texts.

    Raises:
        MissingFile: Naming whichever of the two files is missing
    """
    config_text = read_text(
        project_root / CONFIG_FILENAME,
        CONFIG_FILENAME,
        hint='Create config.json with at least {"board": "due"}',
    )
    catalog_text = read_text(
        tool_root / CATALOG_FILENAME,
        f"{CATALOG_FILENAME} (tool root)",
        hint="Point --tool-root (or ARDUINO_SWIFT_TOOL_ROOT) at a directory containing boards.json",
    )
    return config_text, catalog_text


def resolve(
    raw_config: str, raw_catalog: str, project_root: Optional[Path] = None
) -> Tuple[ProjectConfig, TargetDescriptor]:
    """Parse both documents and resolve the selected board.

    Returns:
        The parsed ProjectConfig and the resolved TargetDescriptor

    Raises:
        ConfigError: On malformed JSON, a missing board or a missing fqbn
        UnknownTarget: If the board is not in the catalog
    """
    config = ProjectConfig.from_text(raw_config, project_root)
    catalog = BoardCatalog.from_text(raw_catalog)
    profile = catalog.get(config.board)

    descriptor = TargetDescriptor(
        board=profile.name,
        fqbn=profile.fqbn,
        core=profile.core,
        api=profile.api,
        swift_target=profile.swift_target,
        cpu=profile.cpu,
        float_abi=profile.float_abi,
        fpu=profile.fpu,
        board_options=merge_board_options(
            profile.default_board_options, config.board_options
        ),
    )
    descriptor.validate()
    return config, descriptor


def select_target(raw_config: str, raw_catalog: str) -> TargetDescriptor:
    """Resolve the board named by config.json against the catalog."""
    _, descriptor = resolve(raw_config, raw_catalog)
    return descriptor
