"""Artifact Consolidator.

Reverses the packager: every ``artifact-*.zip`` in the artifacts directory
is expanded into one shared output tree. Each platform contributes its own
``runtimes/{rid}/`` subtree; files present in several archives (the version
marker) are overwritten by the archive expanded last.
"""

import logging
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from sdlpack.artifacts.archive_utils import (
    ARTIFACT_GLOB,
    ArtifactError,
    NoArtifactsError,
    copy_stream,
    safe_entry_parts,
)
from sdlpack.build.version import BuildVersion

logger = logging.getLogger(__name__)


@dataclass
class ConsolidationResult:
    """Result of expanding all artifacts."""

    output_dir: Path
    count: int
    archives: list[Path]


class ArtifactConsolidator:
    """Merges per-platform artifacts into a single directory tree."""

    def __init__(self, version_file_name: str = "version.txt", show_progress: bool = True):
        """Initialize artifact consolidator.

        Args:
            version_file_name: Name of the version marker inside each artifact
            show_progress: Whether to show a progress bar while expanding
        """
        self.version_file_name = version_file_name
        self.show_progress = show_progress

    @staticmethod
    def discover(artifacts_dir: Path) -> list[Path]:
        """List artifact archives in a directory, sorted by name."""
        artifacts_dir = Path(artifacts_dir)
        if not artifacts_dir.is_dir():
            return []
        return sorted(path for path in artifacts_dir.glob(ARTIFACT_GLOB) if path.is_file())

    def consolidate(self, artifacts_dir: Path, output_dir: Path) -> ConsolidationResult:
        """Expand every artifact archive into ``output_dir``.

        ``output_dir`` is emptied first, but only once at least one archive
        has been found.

        Args:
            artifacts_dir: Directory containing ``artifact-*.zip`` files
            output_dir: Directory to expand into

        Returns:
            ConsolidationResult with the output directory and archive count

        Raises:
            NoArtifactsError: If no archives are found
            ArtifactError: If an archive is corrupt or holds an unsafe path
        """
        archives = self.discover(artifacts_dir)
        if not archives:
            raise NoArtifactsError("No artifacts to consolidate!")

        output_dir = Path(output_dir)
        if output_dir.exists():
            shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True)

        versions: dict[str, str] = {}
        progress_bar = None
        if self.show_progress:
            progress_bar = tqdm(total=len(archives), unit="artifact", desc="Extracting artifacts")

        try:
            for archive_path in archives:
                version = self._expand(archive_path, output_dir)
                if version is not None:
                    versions[archive_path.name] = version
                if progress_bar:
                    progress_bar.update(1)
        finally:
            if progress_bar:
                progress_bar.close()

        if len(set(versions.values())) > 1:
            logger.warning(
                "Artifacts declare different SDL versions; using the last one: "
                + ", ".join(f"{name}={version}" for name, version in versions.items())
            )

        return ConsolidationResult(output_dir=output_dir, count=len(archives), archives=archives)

    def _expand(self, archive_path: Path, output_dir: Path) -> Optional[str]:
        """Expand one archive; returns its version marker text, if any."""
        version: Optional[str] = None
        try:
            with zipfile.ZipFile(archive_path, "r") as archive:
                for info in archive.infolist():
                    parts = safe_entry_parts(info.filename)
                    if not parts:
                        continue

                    target = output_dir.joinpath(*parts)
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue

                    target.parent.mkdir(parents=True, exist_ok=True)
                    with archive.open(info, "r") as source, open(target, "wb") as destination:
                        copy_stream(source, destination)

                    if info.filename == self.version_file_name:
                        version = target.read_text(encoding="utf-8").strip()
        except zipfile.BadZipFile as e:
            raise ArtifactError(f"Corrupt artifact {archive_path}: {e}") from e

        logger.debug(f"Expanded {archive_path.name} into {output_dir}")
        return version

    def read_version(self, output_dir: Path) -> BuildVersion:
        """Read the version marker from a consolidated tree.

        Raises:
            ArtifactError: If the marker is missing or not a version
        """
        version_path = Path(output_dir) / self.version_file_name
        try:
            content = version_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ArtifactError(f"Version marker not found: {version_path}") from e

        try:
            return BuildVersion.parse(content)
        except ValueError as e:
            raise ArtifactError(f"Invalid version marker {version_path}: {e}") from e
