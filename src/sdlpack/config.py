"""Pipeline configuration for sdlpack.

All settings are collected once, at process start, into an immutable
:class:`PipelineConfig` which is then handed to every component. Directory
roots can be overridden through environment variables.

Layout:
    {working_dir}/
    ├── SDL/                        # SDL source checkout (SDLPACK_SOURCE_DIR)
    └── artifacts/                  # SDLPACK_ARTIFACTS_DIR
        ├── build/                  # CMake build tree
        │   └── {config}/           # Per-configuration build output
        ├── package/                # Consolidated package tree
        ├── artifact-{rid}.zip      # One per platform
        └── SDLPInvokeRedist.{version}.nupkg
"""

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional


class ConfigurationError(Exception):
    """Base class for fatal configuration and programmer errors.

    These abort the pipeline immediately and are never retried.
    """

    pass


DEFAULT_CMAKE_OPTIONS: Mapping[str, str] = MappingProxyType(
    {
        "SDL_STATIC": "OFF",
        "SDL_SHARED": "ON",
        "SDL_TEST": "OFF",
    }
)

PACKAGE_ID = "SDLPInvokeRedist"
PACKAGE_AUTHORS = ("Nora Beda",)
PACKAGE_DESCRIPTION = "SDL2 redistributables for P/Invoke"
REPOSITORY_TYPE = "git"
REPOSITORY_URL = "https://github.com/yodasoda1219/sdl-pinvoke-redist"

_TRUTHY = ("1", "true", "yes", "on")


def is_debugger_attached() -> bool:
    """Return True when a tracing debugger (pdb, IDE) is attached."""
    return sys.gettrace() is not None


def _env_flag(name: str) -> Optional[bool]:
    value = os.environ.get(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in _TRUTHY


def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}")


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable settings shared by every pipeline component.

    Attributes:
        working_dir: Directory the tool was started from
        source_dir: SDL source checkout passed to CMake
        artifacts_dir: Root for build output, artifacts and packages
        build_config: CMake configuration to compile (e.g. "Release")
        cmake_options: Ordered -D definitions for the configure step
        base_library_name: Library name without platform prefix/suffix
        version_file_name: Name of the version marker inside artifacts
        dry_run_installs: Preview dependency installer commands only
        command_timeout: Optional per-command timeout in seconds
        show_progress: Whether to show progress bars
    """

    working_dir: Path
    source_dir: Path
    artifacts_dir: Path
    build_config: str = "Release"
    cmake_options: Mapping[str, str] = field(default_factory=lambda: DEFAULT_CMAKE_OPTIONS)
    base_library_name: str = "SDL2"
    version_file_name: str = "version.txt"
    dry_run_installs: bool = False
    command_timeout: Optional[float] = None
    show_progress: bool = True

    @property
    def build_dir(self) -> Path:
        """CMake build tree."""
        return self.artifacts_dir / "build"

    @property
    def package_dir(self) -> Path:
        """Directory that artifacts are consolidated into."""
        return self.artifacts_dir / "package"

    @classmethod
    def from_environment(
        cls,
        working_dir: Optional[Path] = None,
        source_dir: Optional[Path] = None,
        artifacts_dir: Optional[Path] = None,
        build_config: str = "Release",
        command_timeout: Optional[float] = None,
        show_progress: bool = True,
    ) -> "PipelineConfig":
        """Build the configuration from arguments, environment and defaults.

        Explicit arguments win over environment variables, which win over
        the defaults relative to ``working_dir``.

        Args:
            working_dir: Base directory (defaults to the current directory)
            source_dir: SDL source directory override
            artifacts_dir: Artifacts directory override
            build_config: CMake configuration name
            command_timeout: Per-command timeout in seconds
            show_progress: Whether to show progress bars

        Returns:
            A frozen PipelineConfig

        Raises:
            ConfigurationError: If an environment override is malformed
        """
        if working_dir is None:
            working_dir = Path.cwd()
        working_dir = Path(working_dir).resolve()

        if source_dir is None:
            env_source = os.environ.get("SDLPACK_SOURCE_DIR")
            source_dir = Path(env_source) if env_source else working_dir / "SDL"

        if artifacts_dir is None:
            env_artifacts = os.environ.get("SDLPACK_ARTIFACTS_DIR")
            artifacts_dir = Path(env_artifacts) if env_artifacts else working_dir / "artifacts"

        dry_run = _env_flag("SDLPACK_DRY_RUN")
        if dry_run is None:
            dry_run = is_debugger_attached()

        if command_timeout is None:
            command_timeout = _env_float("SDLPACK_COMMAND_TIMEOUT")

        if not build_config:
            raise ConfigurationError("Build configuration name must not be empty")

        return cls(
            working_dir=working_dir,
            source_dir=Path(source_dir).resolve(),
            artifacts_dir=Path(artifacts_dir).resolve(),
            build_config=build_config,
            dry_run_installs=dry_run,
            command_timeout=command_timeout,
            show_progress=show_progress,
        )
