"""Artifact Packager.

Writes the per-platform artifact: a zip archive holding the SDL version
marker and the shared library under its runtime-namespaced path. The library
is streamed through a fixed-size buffer and renamed on the way in, so the
build output ``libSDL2-2.0.so`` is packaged as ``libSDL2.so``.
"""

import logging
import zipfile
from pathlib import Path

from sdlpack.artifacts.archive_utils import (
    ArtifactError,
    artifact_name,
    copy_stream,
    runtime_entry_name,
)
from sdlpack.build.version import BuildVersion
from sdlpack.packages.platform_utils import HostPlatform

logger = logging.getLogger(__name__)


class ArtifactPackager:
    """Creates ``artifact-{rid}.zip`` archives."""

    def __init__(
        self,
        artifacts_dir: Path,
        host: HostPlatform,
        base_library_name: str = "SDL2",
        version_file_name: str = "version.txt",
        show_progress: bool = True,
    ):
        """Initialize artifact packager.

        Args:
            artifacts_dir: Directory the archive is written to
            host: Platform that decides the packaged library name
            base_library_name: Library name without platform decoration
            version_file_name: Name of the version marker entry
            show_progress: Whether to print a summary line
        """
        self.artifacts_dir = Path(artifacts_dir)
        self.host = host
        self.base_library_name = base_library_name
        self.version_file_name = version_file_name
        self.show_progress = show_progress

    @property
    def packaged_library_name(self) -> str:
        return self.host.shared_library_name(self.base_library_name)

    def archive_path(self, runtime_id: str) -> Path:
        return self.artifacts_dir / artifact_name(runtime_id)

    def package_artifact(self, library_path: Path, version: BuildVersion, runtime_id: str) -> Path:
        """Package a built library into its artifact archive.

        Any archive already at the target path is deleted first.

        Args:
            library_path: Shared library produced by the build
            version: SDL version written to the marker entry
            runtime_id: Runtime identifier namespacing the library

        Returns:
            Path to the created archive

        Raises:
            ArtifactError: If the library is missing or the archive cannot be written
        """
        library_path = Path(library_path)
        if not library_path.is_file():
            raise ArtifactError(f"Built library not found: {library_path}")

        archive_path = self.archive_path(runtime_id)
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        if archive_path.exists():
            logger.debug(f"Removing previous artifact {archive_path}")
            archive_path.unlink()

        entry_name = runtime_entry_name(runtime_id, self.packaged_library_name)

        try:
            with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                archive.writestr(self.version_file_name, str(version).encode("utf-8"))

                with open(library_path, "rb") as source, archive.open(entry_name, "w") as destination:
                    size = copy_stream(source, destination)
        except OSError as e:
            raise ArtifactError(f"Failed to write artifact {archive_path}: {e}") from e

        logger.info(f"Packaged {library_path.name} as {entry_name} ({size} bytes)")
        if self.show_progress:
            print(f"Created {archive_path.name}: {size:,} bytes of {self.packaged_library_name}")

        return archive_path
