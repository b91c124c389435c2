"""Archive Utilities.

Shared helpers for writing and reading per-platform artifact archives.

Artifact layout:
    artifact-{rid}.zip
    ├── version.txt                 # SDL version, plain text
    └── runtimes/
        └── {rid}/
            └── {library}           # SDL2.dll, libSDL2.so or libSDL2.dylib
"""

from pathlib import PurePosixPath
from typing import IO

from sdlpack.config import ConfigurationError

ARTIFACT_PREFIX = "artifact-"
ARTIFACT_SUFFIX = ".zip"
ARTIFACT_GLOB = f"{ARTIFACT_PREFIX}*{ARTIFACT_SUFFIX}"

# Fixed copy buffer; memory use does not depend on file size.
COPY_BUFFER_SIZE = 8192


class ArtifactError(ConfigurationError):
    """Raised when an artifact cannot be written or read."""

    pass


class NoArtifactsError(ArtifactError):
    """Raised when there is nothing to consolidate."""

    pass


def artifact_name(runtime_id: str) -> str:
    """Archive file name for a runtime identifier."""
    return f"{ARTIFACT_PREFIX}{runtime_id}{ARTIFACT_SUFFIX}"


def runtime_entry_name(runtime_id: str, library_name: str) -> str:
    """Archive entry path of a packaged library."""
    return f"runtimes/{runtime_id}/{library_name}"


def copy_stream(source: IO[bytes], destination: IO[bytes], buffer_size: int = COPY_BUFFER_SIZE) -> int:
    """Copy one binary stream into another through a fixed-size buffer.

    Args:
        source: Readable binary stream
        destination: Writable binary stream
        buffer_size: Bytes read per iteration

    Returns:
        Total number of bytes copied
    """
    total = 0
    for chunk in iter(lambda: source.read(buffer_size), b""):
        destination.write(chunk)
        total += len(chunk)
    return total


def safe_entry_parts(entry_name: str) -> tuple[str, ...]:
    """Split an archive entry name into path components.

    Raises:
        ArtifactError: If the entry is absolute or escapes its root
    """
    path = PurePosixPath(entry_name.replace("\\", "/"))
    if path.is_absolute() or ".." in path.parts or (path.parts and path.parts[0].endswith(":")):
        raise ArtifactError(f"Refusing to extract unsafe archive entry: {entry_name}")
    return path.parts
