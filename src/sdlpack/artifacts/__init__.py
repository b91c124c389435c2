"""Per-platform artifact archives: creation and consolidation."""

from .archive_utils import (
    ARTIFACT_GLOB,
    COPY_BUFFER_SIZE,
    ArtifactError,
    NoArtifactsError,
    artifact_name,
    copy_stream,
)
from .consolidator import ArtifactConsolidator, ConsolidationResult
from .packager import ArtifactPackager

__all__ = [
    "ARTIFACT_GLOB",
    "COPY_BUFFER_SIZE",
    "ArtifactError",
    "NoArtifactsError",
    "artifact_name",
    "copy_stream",
    "ArtifactConsolidator",
    "ConsolidationResult",
    "ArtifactPackager",
]
