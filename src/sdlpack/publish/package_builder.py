"""NuGet package assembly.

A ``.nupkg`` is a zip file following the Open Packaging Conventions:

    SDLPInvokeRedist.{version}.nupkg
    ├── _rels/.rels                 # Points at the manifest
    ├── [Content_Types].xml         # Content type per file extension
    ├── SDLPInvokeRedist.nuspec     # Package manifest (metadata)
    ├── README.md
    └── runtimes/{rid}/{library}    # One subtree per platform

The consolidated package tree supplies ``runtimes/``; the README is a
bundled resource copied into the tree before packing.
"""

import hashlib
import logging
import posixpath
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Iterator

from sdlpack.artifacts.archive_utils import ArtifactError, copy_stream
from sdlpack.build.version import BuildVersion
from sdlpack.config import (
    PACKAGE_AUTHORS,
    PACKAGE_DESCRIPTION,
    PACKAGE_ID,
    REPOSITORY_TYPE,
    REPOSITORY_URL,
)

logger = logging.getLogger(__name__)

NUSPEC_NAMESPACE = "http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd"
CONTENT_TYPES_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/content-types"
RELATIONSHIPS_NAMESPACE = "http://schemas.openxmlformats.org/package/2006/relationships"
MANIFEST_RELATIONSHIP = "http://schemas.microsoft.com/packaging/2010/07/manifest"

RELATIONSHIPS_CONTENT_TYPE = "application/vnd.openxmlformats-package.relationships+xml"
DEFAULT_CONTENT_TYPE = "application/octet"

README_RESOURCE = "README.md"
README_NAME = "README.md"
RUNTIMES_DIR = "runtimes"


@dataclass(frozen=True)
class PackageMetadata:
    """Static metadata written to the package manifest."""

    id: str = PACKAGE_ID
    authors: tuple[str, ...] = field(default_factory=lambda: PACKAGE_AUTHORS)
    description: str = PACKAGE_DESCRIPTION
    readme: str = README_NAME
    repository_type: str = REPOSITORY_TYPE
    repository_url: str = REPOSITORY_URL


def _qualified(namespace: str, tag: str) -> str:
    return f"{{{namespace}}}{tag}"


def _to_xml(root: ET.Element, namespace: str) -> bytes:
    ET.register_namespace("", namespace)
    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


def build_nuspec(metadata: PackageMetadata, version: BuildVersion) -> bytes:
    """Render the ``.nuspec`` manifest."""
    package = ET.Element(_qualified(NUSPEC_NAMESPACE, "package"))
    meta = ET.SubElement(package, _qualified(NUSPEC_NAMESPACE, "metadata"))

    ET.SubElement(meta, _qualified(NUSPEC_NAMESPACE, "id")).text = metadata.id
    ET.SubElement(meta, _qualified(NUSPEC_NAMESPACE, "version")).text = str(version)
    ET.SubElement(meta, _qualified(NUSPEC_NAMESPACE, "authors")).text = ", ".join(metadata.authors)
    ET.SubElement(meta, _qualified(NUSPEC_NAMESPACE, "description")).text = metadata.description
    ET.SubElement(meta, _qualified(NUSPEC_NAMESPACE, "readme")).text = metadata.readme
    ET.SubElement(
        meta,
        _qualified(NUSPEC_NAMESPACE, "repository"),
        {"type": metadata.repository_type, "url": metadata.repository_url},
    )

    return _to_xml(package, NUSPEC_NAMESPACE)


def build_content_types(part_names: list[str]) -> bytes:
    """Render ``[Content_Types].xml`` for the given package parts."""
    types = ET.Element(_qualified(CONTENT_TYPES_NAMESPACE, "Types"))
    ET.SubElement(
        types,
        _qualified(CONTENT_TYPES_NAMESPACE, "Default"),
        {"Extension": "rels", "ContentType": RELATIONSHIPS_CONTENT_TYPE},
    )

    extensions: list[str] = []
    for name in part_names:
        extension = posixpath.splitext(name)[1].lstrip(".").lower()
        if not extension:
            ET.SubElement(
                types,
                _qualified(CONTENT_TYPES_NAMESPACE, "Override"),
                {"PartName": f"/{name}", "ContentType": DEFAULT_CONTENT_TYPE},
            )
        elif extension != "rels" and extension not in extensions:
            extensions.append(extension)

    for extension in extensions:
        ET.SubElement(
            types,
            _qualified(CONTENT_TYPES_NAMESPACE, "Default"),
            {"Extension": extension, "ContentType": DEFAULT_CONTENT_TYPE},
        )

    return _to_xml(types, CONTENT_TYPES_NAMESPACE)


def build_relationships(nuspec_name: str) -> bytes:
    """Render ``_rels/.rels`` pointing at the manifest."""
    relationship_id = "R" + hashlib.sha256(nuspec_name.encode("utf-8")).hexdigest()[:16].upper()
    relationships = ET.Element(_qualified(RELATIONSHIPS_NAMESPACE, "Relationships"))
    ET.SubElement(
        relationships,
        _qualified(RELATIONSHIPS_NAMESPACE, "Relationship"),
        {"Type": MANIFEST_RELATIONSHIP, "Target": f"/{nuspec_name}", "Id": relationship_id},
    )
    return _to_xml(relationships, RELATIONSHIPS_NAMESPACE)


class PackageBuilder:
    """Assembles the redistributable NuGet package from a consolidated tree."""

    def __init__(self, artifacts_dir: Path, metadata: PackageMetadata = PackageMetadata()):
        """Initialize package builder.

        Args:
            artifacts_dir: Directory the package file is written to
            metadata: Manifest metadata
        """
        self.artifacts_dir = Path(artifacts_dir)
        self.metadata = metadata

    def package_path(self, version: BuildVersion) -> Path:
        return self.artifacts_dir / f"{self.metadata.id}.{version}.nupkg"

    def write_readme(self, output_dir: Path) -> Path:
        """Copy the bundled README resource into the package tree."""
        readme_path = Path(output_dir) / README_NAME
        resource = resources.files("sdlpack.resources").joinpath(README_RESOURCE)
        try:
            with resource.open("rb") as source, open(readme_path, "wb") as destination:
                copy_stream(source, destination)
        except FileNotFoundError as e:
            raise ArtifactError("Unable to find bundled README resource!") from e
        return readme_path

    @staticmethod
    def _iter_runtime_files(output_dir: Path) -> Iterator[tuple[Path, str]]:
        runtimes_dir = output_dir / RUNTIMES_DIR
        if not runtimes_dir.is_dir():
            return
        for path in sorted(runtimes_dir.rglob("*")):
            if path.is_file():
                yield path, path.relative_to(output_dir).as_posix()

    def assemble(self, output_dir: Path, version: BuildVersion) -> Path:
        """Write the ``.nupkg`` for a consolidated package tree.

        Args:
            output_dir: Consolidated tree containing ``runtimes/``
            version: Package version

        Returns:
            Path to the written package (replaces any existing file)

        Raises:
            ArtifactError: If the tree has no runtime libraries or cannot be packed
        """
        output_dir = Path(output_dir)
        files = list(self._iter_runtime_files(output_dir))
        if not files:
            raise ArtifactError(f"No runtime libraries found under {output_dir / RUNTIMES_DIR}")

        readme_path = self.write_readme(output_dir)
        files.append((readme_path, README_NAME))

        nuspec_name = f"{self.metadata.id}.nuspec"
        package_path = self.package_path(version)
        package_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with zipfile.ZipFile(package_path, "w", compression=zipfile.ZIP_DEFLATED) as package:
                package.writestr("_rels/.rels", build_relationships(nuspec_name))
                package.writestr(nuspec_name, build_nuspec(self.metadata, version))

                for source_path, part_name in files:
                    with open(source_path, "rb") as source, package.open(part_name, "w") as destination:
                        copy_stream(source, destination)

                part_names = [nuspec_name] + [part_name for _, part_name in files]
                package.writestr("[Content_Types].xml", build_content_types(part_names))
        except OSError as e:
            raise ArtifactError(f"Failed to write package {package_path}: {e}") from e

        logger.info(f"Assembled {package_path.name} with {len(files)} files")
        return package_path
