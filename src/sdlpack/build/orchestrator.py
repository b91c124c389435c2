"""
Build orchestration for SDL.

This module drives CMake through the two build phases:
1. Configure: generate the build tree and read the SDL version from the
   configure output while it is being relayed
2. Compile: build the requested configuration

Execution failures (non-zero exit codes) are returned as an unsuccessful
BuildResult. Problems that make the build meaningless (missing sources, no
version in the configure output) raise instead.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from sdlpack.build.version import BuildVersion, VersionLatch
from sdlpack.config import DEFAULT_CMAKE_OPTIONS, ConfigurationError
from sdlpack.packages.platform_utils import HostPlatform
from sdlpack.process import ProcessRunner

logger = logging.getLogger(__name__)

# Single-config generators (Unix Makefiles) ignore --config at build time.
MULTI_CONFIG_GENERATOR = "Ninja Multi-Config"


@dataclass
class BuildResult:
    """Result of a complete build operation."""

    success: bool
    version: Optional[BuildVersion]
    library_path: Optional[Path]
    build_time: float
    message: str


class BuildOrchestratorError(ConfigurationError):
    """Exception raised for build orchestration errors."""
    pass


class SourceDirectoryNotFoundError(BuildOrchestratorError):
    """The SDL source directory does not exist."""
    pass


class VersionNotFoundError(BuildOrchestratorError):
    """CMake configured successfully but never printed the SDL revision."""
    pass


class BuildOrchestrator:
    """
    Orchestrates configuring and compiling SDL with CMake.

    Example usage:
        orchestrator = BuildOrchestrator(runner, host)
        result = orchestrator.build_artifact(
            source_dir=Path("SDL"),
            build_dir=Path("artifacts/build"),
            config="Release",
        )
        if result.success:
            print(f"Built SDL {result.version}: {result.library_path}")
    """

    def __init__(
        self,
        runner: ProcessRunner,
        host: HostPlatform,
        cmake_options: Mapping[str, str] = DEFAULT_CMAKE_OPTIONS,
        base_library_name: str = "SDL2",
        timeout: Optional[float] = None,
    ):
        """
        Initialize build orchestrator.

        Args:
            runner: Process runner for the CMake invocations
            host: Platform being built on
            cmake_options: Ordered -D definitions for the configure step
            base_library_name: Library name without platform decoration
            timeout: Optional per-command timeout in seconds
        """
        self.runner = runner
        self.host = host
        self.cmake_options = cmake_options
        self.base_library_name = base_library_name
        self.timeout = timeout

    def configure_command(self, source_dir: Path, build_dir: Path) -> str:
        """Build the CMake configure command line."""
        quote = self.host.quote_argument
        parts = ["cmake", quote(str(source_dir)), "-B", quote(str(build_dir))]
        if not self.host.is_windows:
            parts.extend(["-G", f'"{MULTI_CONFIG_GENERATOR}"'])
        for key, value in self.cmake_options.items():
            parts.append(f"-D{key}={value}")
        return " ".join(parts)

    def compile_command(self, build_dir: Path, config: str) -> str:
        """Build the CMake compile command line."""
        quote = self.host.quote_argument
        return f"cmake --build {quote(str(build_dir))} --config {quote(config)}"

    def library_output_name(self) -> str:
        """File name CMake gives the shared library.

        Outside Windows SDL appends its API version, e.g. ``libSDL2-2.0.so``.
        """
        name = self.base_library_name
        if not self.host.is_windows:
            name += "-2.0"
        return self.host.shared_library_name(name)

    def library_path(self, build_dir: Path, config: str) -> Path:
        """Location of the built shared library for a configuration."""
        return Path(build_dir) / config / self.library_output_name()

    def build_artifact(self, source_dir: Path, build_dir: Path, config: str) -> BuildResult:
        """
        Configure and compile SDL.

        Args:
            source_dir: SDL source checkout
            build_dir: CMake build tree to create or reuse
            config: CMake configuration to compile (e.g. "Release")

        Returns:
            BuildResult; ``success`` is False when a CMake command fails

        Raises:
            SourceDirectoryNotFoundError: If source_dir does not exist
            VersionNotFoundError: If configure succeeds without printing the SDL revision
        """
        start_time = time.time()
        source_dir = Path(source_dir)
        build_dir = Path(build_dir)

        if not source_dir.is_dir():
            raise SourceDirectoryNotFoundError(f"{source_dir} does not exist!")

        latch = VersionLatch()
        configure_result = self.runner.run(
            self.configure_command(source_dir, build_dir),
            on_line=latch.offer,
            timeout=self.timeout,
        )

        if configure_result != 0:
            return BuildResult(
                success=False,
                version=None,
                library_path=None,
                build_time=time.time() - start_time,
                message=f"CMake configure failed with exit code {configure_result}",
            )

        version = latch.version
        if version is None:
            raise VersionNotFoundError("Failed to find a version from CMake output!")

        logger.info(f"Configured SDL {version} in {build_dir}")

        build_result = self.runner.run(
            self.compile_command(build_dir, config),
            timeout=self.timeout,
        )
        if build_result != 0:
            return BuildResult(
                success=False,
                version=version,
                library_path=None,
                build_time=time.time() - start_time,
                message=f"CMake build failed with exit code {build_result}",
            )

        return BuildResult(
            success=True,
            version=version,
            library_path=self.library_path(build_dir, config),
            build_time=time.time() - start_time,
            message=f"Built SDL {version} ({config})",
        )
