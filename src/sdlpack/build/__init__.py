"""
Build system components for sdlpack.

This module provides:
- SDL version extraction from CMake configure output
- CMake configure/compile orchestration
"""

from .orchestrator import (
    BuildOrchestrator,
    BuildOrchestratorError,
    BuildResult,
    SourceDirectoryNotFoundError,
    VersionNotFoundError,
)
from .version import BuildVersion, VersionLatch, extract_version_string

__all__ = [
    "BuildOrchestrator",
    "BuildOrchestratorError",
    "BuildResult",
    "SourceDirectoryNotFoundError",
    "VersionNotFoundError",
    "BuildVersion",
    "VersionLatch",
    "extract_version_string",
]
