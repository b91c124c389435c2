"""
Pipeline sequencing for sdlpack.

Build side (one run per platform):
    DependencyInstaller -> BuildOrchestrator -> ArtifactPackager

Publish side (once, after all platform artifacts are collected):
    ArtifactConsolidator -> PackageBuilder -> FeedPublisher

Each phase that fails stops the pipeline and the run returns exit code 1.
Configuration errors propagate to the caller.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from sdlpack.artifacts import ArtifactConsolidator, ArtifactPackager
from sdlpack.build import BuildOrchestrator
from sdlpack.config import PipelineConfig
from sdlpack.packages import (
    DependencyInstaller,
    HostPlatform,
    PlatformPackageSpec,
    load_dependency_specs,
)
from sdlpack.process import ProcessRunner
from sdlpack.publish import FeedConfig, FeedPublisher, PackageBuilder

logger = logging.getLogger(__name__)


@dataclass
class CompilePipeline:
    """Installs prerequisites, builds SDL and packages the artifact."""

    config: PipelineConfig
    host: HostPlatform
    runner: ProcessRunner
    dependency_specs: Optional[Mapping[str, PlatformPackageSpec]] = None
    dependencies_path: Optional[Path] = None

    def run(self) -> int:
        """Run the build side of the pipeline.

        Returns:
            0 on success, 1 if a phase failed
        """
        specs = self.dependency_specs
        if specs is None:
            specs = load_dependency_specs(self.dependencies_path)

        installer = DependencyInstaller(
            self.runner,
            self.host,
            dry_run=self.config.dry_run_installs,
            timeout=self.config.command_timeout,
        )
        if not installer.install_platform_dependencies(specs):
            logger.error("Dependency installation failed")
            return 1

        orchestrator = BuildOrchestrator(
            self.runner,
            self.host,
            cmake_options=self.config.cmake_options,
            base_library_name=self.config.base_library_name,
            timeout=self.config.command_timeout,
        )
        result = orchestrator.build_artifact(
            self.config.source_dir,
            self.config.build_dir,
            self.config.build_config,
        )
        if not result.success or result.version is None or result.library_path is None:
            logger.error(result.message)
            return 1

        packager = ArtifactPackager(
            self.config.artifacts_dir,
            self.host,
            base_library_name=self.config.base_library_name,
            version_file_name=self.config.version_file_name,
            show_progress=self.config.show_progress,
        )
        packager.package_artifact(result.library_path, result.version, self.host.runtime_identifier)

        print(f"Successfully built SDL v{result.version} artifact!")
        return 0


@dataclass
class PublishPipeline:
    """Consolidates artifacts, assembles the package and pushes it."""

    config: PipelineConfig
    runner: ProcessRunner
    publisher: Optional[FeedPublisher] = None

    def run(self, feed: FeedConfig) -> int:
        """Run the publish side of the pipeline.

        The feed configuration is validated before any file is touched.

        Returns:
            0 on success, 1 if the push failed
        """
        feed.validate()

        consolidator = ArtifactConsolidator(
            version_file_name=self.config.version_file_name,
            show_progress=self.config.show_progress,
        )
        consolidation = consolidator.consolidate(self.config.artifacts_dir, self.config.package_dir)
        print(f"Consolidated {consolidation.count} artifact(s)")

        version = consolidator.read_version(consolidation.output_dir)

        print("Building package...")
        builder = PackageBuilder(self.config.artifacts_dir)
        package_path = builder.assemble(consolidation.output_dir, version)

        print("Package built! Pushing package...")
        publisher = self.publisher or FeedPublisher(self.runner, timeout=self.config.command_timeout)
        result = publisher.publish(package_path, feed)
        if not result.success:
            logger.error(result.message)
            print(result.message)
            return 1

        print("Successfully pushed package!")
        return 0
