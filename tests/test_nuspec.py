"""Tests for nuspec manifest parsing."""

import io
import zipfile

import pytest

from common.errors import CorruptPackage, ManifestError
from registry.nuget.nuspec import parse_nuspec, read_package_manifest
from versioning.parser import parse_version
from versioning.models import ResolutionMode

from conftest import build_nupkg_bytes, render_nuspec, write_nupkg


class TestParseNuspec:
    """Parsing nuspec documents."""

    def test_reads_identity_and_metadata(self):
        manifest = parse_nuspec(render_nuspec("testPackage", "1.0.0-RC1"))

        assert manifest.id == "testPackage"
        assert manifest.version == parse_version("1.0.0-RC1")
        assert manifest.authors == "Microsoft"
        assert manifest.description == "A description"
        assert manifest.dependencies == []

    def test_reads_flat_dependencies(self):
        manifest = parse_nuspec(render_nuspec(
            "dependentPackage", "1.0.0",
            dependencies=[("testPackage", "1.0.0-RC1"), ("other", None), ("ranged", "[1.0,2.0)")],
        ))

        deps = {d.id: d for d in manifest.dependencies}
        assert deps["testPackage"].mode == ResolutionMode.EXACT
        assert deps["testPackage"].exact_version == parse_version("1.0.0-RC1")
        assert deps["other"].constraint is None
        assert deps["other"].mode == ResolutionMode.LATEST
        assert deps["other"].exact_version is None
        assert deps["ranged"].mode == ResolutionMode.RANGE
        assert deps["ranged"].exact_version is None

    def test_flattens_framework_groups_first_declaration_wins(self):
        manifest = parse_nuspec(render_nuspec(
            "grouped", "2.0.0",
            groups={
                "net45": [("A", "1.0.0"), ("B", "2.0.0")],
                "netstandard2.0": [("A", "1.5.0"), ("C", None)],
            },
        ))

        assert [d.id for d in manifest.dependencies] == ["A", "B", "C"]
        assert manifest.dependencies[0].exact_version == parse_version("1.0.0")

    def test_document_without_namespace(self):
        xml = "<package><metadata><id>plain</id><version>1.0</version></metadata></package>"
        manifest = parse_nuspec(xml)
        assert manifest.id == "plain"
        assert manifest.version == parse_version("1.0.0")

    def test_malformed_xml(self):
        with pytest.raises(ManifestError):
            parse_nuspec("<package><metadata>")

    def test_missing_metadata(self):
        with pytest.raises(ManifestError):
            parse_nuspec("<package />")

    def test_missing_version(self):
        with pytest.raises(ManifestError):
            parse_nuspec("<package><metadata><id>x</id></metadata></package>")

    def test_invalid_package_version(self):
        with pytest.raises(ManifestError):
            parse_nuspec("<package><metadata><id>x</id><version>banana</version></metadata></package>")

    def test_dependency_without_id(self):
        xml = (
            "<package><metadata><id>x</id><version>1.0.0</version>"
            "<dependencies><dependency version=\"1.0.0\" /></dependencies></metadata></package>"
        )
        with pytest.raises(ManifestError):
            parse_nuspec(xml)

    def test_dependency_with_invalid_version(self):
        with pytest.raises(ManifestError):
            parse_nuspec(render_nuspec("x", "1.0.0", dependencies=[("y", "[1.0")]))


class TestReadPackageManifest:
    """Reading the nuspec embedded in a .nupkg."""

    def test_from_bytes(self):
        manifest = read_package_manifest(build_nupkg_bytes("pkg", "0.9.0", [("dep", "1.0.0")]))
        assert str(manifest.identity) == "pkg.0.9.0"
        assert manifest.dependencies[0].id == "dep"

    def test_from_path(self, tmp_path):
        path = write_nupkg(str(tmp_path), "pkg", "1.0.0")
        assert read_package_manifest(path).id == "pkg"

    def test_not_a_zip(self):
        with pytest.raises(CorruptPackage):
            read_package_manifest(b"definitely not a zip")

    def test_zip_without_nuspec(self):
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("content/readme.txt", "hello")
        with pytest.raises(CorruptPackage):
            read_package_manifest(buffer.getvalue())
