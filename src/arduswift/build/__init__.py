"""
Build system components for arduswift.

This package provides:
- Build context and sketch workspace preparation
- Toolchain flag derivation (triple, CPU, float ABI)
- Library resolution and staging
- The step pipeline and the build/verify orchestrators
"""

from .context import BuildContext
from .flag_builder import CompilerFlagSet, FlagBuilder
from .library_stager import (
    LibraryReference,
    LibraryStager,
    StagedLibrarySet,
    resolve_dir_case_insensitive,
)
from .pipeline import Pipeline, PipelineResult, PipelineStep

__all__ = [
    "BuildContext",
    "CompilerFlagSet",
    "FlagBuilder",
    "LibraryReference",
    "LibraryStager",
    "Pipeline",
    "PipelineResult",
    "PipelineStep",
    "StagedLibrarySet",
    "resolve_dir_case_insensitive",
]
