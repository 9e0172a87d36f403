"""Configuration parsing modules for arduswift."""

from .board_catalog import BoardCatalog, TargetProfile, core_from_fqbn
from .project_config import ProjectConfig
from .target_resolver import (
    BOARD_OPTION_KEYS,
    TargetDescriptor,
    load,
    merge_board_options,
    resolve,
    select_target,
)

__all__ = [
    "BOARD_OPTION_KEYS",
    "BoardCatalog",
    "ProjectConfig",
    "TargetDescriptor",
    "TargetProfile",
    "core_from_fqbn",
    "load",
    "merge_board_options",
    "resolve",
    "select_target",
]
