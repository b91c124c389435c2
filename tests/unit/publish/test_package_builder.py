"""Unit tests for NuGet package assembly."""

import xml.etree.ElementTree as ET
import zipfile

import pytest

from sdlpack.artifacts import ArtifactError
from sdlpack.build import BuildVersion
from sdlpack.publish import PackageBuilder, PackageMetadata
from sdlpack.publish.package_builder import (
    NUSPEC_NAMESPACE,
    build_content_types,
    build_nuspec,
    build_relationships,
)

NS = {"nu": NUSPEC_NAMESPACE}


@pytest.fixture
def package_tree(tmp_path):
    """A consolidated tree with two platforms."""
    root = tmp_path / "package"
    (root / "runtimes" / "linux-x64").mkdir(parents=True)
    (root / "runtimes" / "win-x64").mkdir(parents=True)
    (root / "runtimes" / "linux-x64" / "libSDL2.so").write_bytes(b"\x7fELF")
    (root / "runtimes" / "win-x64" / "SDL2.dll").write_bytes(b"MZ")
    (root / "version.txt").write_text("2.28.0")
    return root


class TestManifest:
    """Tests for the XML parts of the package."""

    def test_nuspec_metadata(self):
        root = ET.fromstring(build_nuspec(PackageMetadata(), BuildVersion(2, 28, 0)))
        metadata = root.find("nu:metadata", NS)

        assert metadata.find("nu:id", NS).text == "SDLPInvokeRedist"
        assert metadata.find("nu:version", NS).text == "2.28.0"
        assert metadata.find("nu:authors", NS).text == "Nora Beda"
        assert metadata.find("nu:readme", NS).text == "README.md"
        repository = metadata.find("nu:repository", NS)
        assert repository.get("type") == "git"
        assert repository.get("url").startswith("https://")

    def test_custom_metadata(self):
        metadata = PackageMetadata(id="Custom.Redist", authors=("A", "B"))
        root = ET.fromstring(build_nuspec(metadata, BuildVersion(1, 0)))
        assert root.find("nu:metadata/nu:id", NS).text == "Custom.Redist"
        assert root.find("nu:metadata/nu:authors", NS).text == "A, B"
        assert root.find("nu:metadata/nu:version", NS).text == "1.0"

    def test_content_types_cover_extensions(self):
        xml = build_content_types(["pkg.nuspec", "runtimes/win-x64/SDL2.dll", "runtimes/osx-x64/libSDL2.dylib"])
        root = ET.fromstring(xml)
        extensions = {element.get("Extension") for element in root if element.get("Extension")}
        assert extensions == {"rels", "nuspec", "dll", "dylib"}

    def test_content_types_override_for_extensionless_parts(self):
        root = ET.fromstring(build_content_types(["LICENSE"]))
        overrides = [element.get("PartName") for element in root if element.get("PartName")]
        assert overrides == ["/LICENSE"]

    def test_relationships_target_manifest(self):
        root = ET.fromstring(build_relationships("SDLPInvokeRedist.nuspec"))
        (relationship,) = list(root)
        assert relationship.get("Target") == "/SDLPInvokeRedist.nuspec"
        assert relationship.get("Id").startswith("R")


class TestAssemble:
    """Tests for PackageBuilder.assemble."""

    def test_package_contents(self, tmp_path, package_tree):
        builder = PackageBuilder(tmp_path / "artifacts")
        package_path = builder.assemble(package_tree, BuildVersion(2, 28, 0))

        assert package_path == tmp_path / "artifacts" / "SDLPInvokeRedist.2.28.0.nupkg"
        with zipfile.ZipFile(package_path) as package:
            names = set(package.namelist())
            assert names == {
                "_rels/.rels",
                "[Content_Types].xml",
                "SDLPInvokeRedist.nuspec",
                "README.md",
                "runtimes/linux-x64/libSDL2.so",
                "runtimes/win-x64/SDL2.dll",
            }
            assert package.read("runtimes/win-x64/SDL2.dll") == b"MZ"
            assert b"SDLPInvokeRedist" in package.read("README.md")

    def test_version_marker_not_packaged(self, tmp_path, package_tree):
        package_path = PackageBuilder(tmp_path).assemble(package_tree, BuildVersion(2, 28, 0))
        with zipfile.ZipFile(package_path) as package:
            assert "version.txt" not in package.namelist()

    def test_readme_copied_into_tree(self, tmp_path, package_tree):
        PackageBuilder(tmp_path).assemble(package_tree, BuildVersion(2, 28, 0))
        assert (package_tree / "README.md").is_file()

    def test_replaces_existing_package(self, tmp_path, package_tree):
        builder = PackageBuilder(tmp_path)
        first = builder.assemble(package_tree, BuildVersion(2, 28, 0))
        second = builder.assemble(package_tree, BuildVersion(2, 28, 0))

        assert first == second
        with zipfile.ZipFile(second) as package:
            assert package.namelist().count("README.md") == 1

    def test_no_runtimes(self, tmp_path):
        empty = tmp_path / "package"
        empty.mkdir()
        with pytest.raises(ArtifactError, match="No runtime libraries"):
            PackageBuilder(tmp_path).assemble(empty, BuildVersion(2, 28, 0))
