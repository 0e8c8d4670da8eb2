"""Nuspec manifest reader: package identity and declared dependencies."""
from __future__ import annotations

import io
import logging
import os
import xml.etree.ElementTree as ET
import zipfile
from typing import List, Optional, Union

from constants import Constants
from common.errors import CorruptPackage, InvalidVersionError, ManifestError
from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import DependencySpec, PackageManifest
from versioning.parser import parse_version, parse_version_spec

logger = logging.getLogger(__name__)


def _strip_namespaces(root: ET.Element) -> None:
    # Nuspec schemas change namespace between NuGet releases
    for elem in root.iter():
        if '}' in elem.tag:
            elem.tag = elem.tag.split('}')[1]


def _text(parent: ET.Element, tag: str) -> Optional[str]:
    elem = parent.find(tag)
    if elem is None or elem.text is None:
        return None
    value = elem.text.strip()
    return value or None


def _parse_dependency(elem: ET.Element, source: Optional[str]) -> DependencySpec:
    dep_id = (elem.get("id") or "").strip()
    if not dep_id:
        raise ManifestError("Dependency element without an id", path=source)
    try:
        constraint = parse_version_spec(elem.get("version"))
    except InvalidVersionError as exc:
        raise ManifestError(f"Dependency {dep_id} has an invalid version: {exc}", path=source) from exc
    return DependencySpec(id=dep_id, constraint=constraint)


def _collect_dependencies(metadata: ET.Element, source: Optional[str]) -> List[DependencySpec]:
    """Flatten ungrouped and per-framework dependency groups, first declaration wins."""
    deps_elem = metadata.find("dependencies")
    if deps_elem is None:
        return []

    elements = list(deps_elem.findall("dependency"))
    for group in deps_elem.findall("group"):
        elements.extend(group.findall("dependency"))

    seen = set()
    dependencies: List[DependencySpec] = []
    for elem in elements:
        dep = _parse_dependency(elem, source)
        if dep.id.lower() in seen:
            continue
        seen.add(dep.id.lower())
        dependencies.append(dep)
    return dependencies


def parse_nuspec(content: Union[str, bytes], source: Optional[str] = None) -> PackageManifest:
    """Parse nuspec XML into a PackageManifest.

    Args:
        content: The nuspec document.
        source: Where the document came from, used in error messages.

    Raises:
        ManifestError: if the document is malformed or lacks id/version.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        raise ManifestError(f"Malformed nuspec: {exc}", path=source) from exc
    _strip_namespaces(root)

    metadata = root.find("metadata")
    if metadata is None:
        raise ManifestError("Nuspec has no <metadata> element", path=source)

    package_id = _text(metadata, "id")
    raw_version = _text(metadata, "version")
    if not package_id or not raw_version:
        raise ManifestError("Nuspec is missing <id> or <version>", path=source)
    try:
        version = parse_version(raw_version)
    except InvalidVersionError as exc:
        raise ManifestError(f"Nuspec version is invalid: {exc}", path=source) from exc

    manifest = PackageManifest(
        id=package_id,
        version=version,
        dependencies=_collect_dependencies(metadata, source),
        title=_text(metadata, "title"),
        authors=_text(metadata, "authors"),
        description=_text(metadata, "description"),
    )
    if is_debug_enabled(logger):
        logger.debug("Parsed nuspec", extra=extra_context(
            event="parse", component="nuspec", target=str(manifest.identity),
            count=len(manifest.dependencies)
        ))
    return manifest


def find_nuspec_file(directory: str) -> Optional[str]:
    """Return the path of the nuspec at the root of an extracted package."""
    try:
        names = sorted(os.listdir(directory))
    except OSError:
        return None
    for name in names:
        if name.lower().endswith(Constants.MANIFEST_FILE_EXT):
            return os.path.join(directory, name)
    return None


def read_nuspec_file(path: str) -> PackageManifest:
    """Read and parse a nuspec file from disk."""
    try:
        with open(path, "rb") as fh:
            return parse_nuspec(fh.read(), source=path)
    except OSError as exc:
        raise ManifestError(f"Couldn't read nuspec {path}: {exc}", path=path) from exc


def read_package_manifest(package: Union[bytes, str]) -> PackageManifest:
    """Read the nuspec embedded at the root of a .nupkg archive.

    Args:
        package: Archive bytes or a path to a .nupkg file.

    Raises:
        CorruptPackage: if the archive can't be opened or has no nuspec.
        ManifestError: if the nuspec itself is invalid.
    """
    source = package if isinstance(package, str) else None
    handle = package if isinstance(package, str) else io.BytesIO(package)
    try:
        with zipfile.ZipFile(handle) as archive:
            nuspec_names = [
                name for name in archive.namelist()
                if '/' not in name and name.lower().endswith(Constants.MANIFEST_FILE_EXT)
            ]
            if not nuspec_names:
                raise CorruptPackage(f"Package has no nuspec: {source or '<stream>'}")
            content = archive.read(nuspec_names[0])
    except (zipfile.BadZipFile, OSError) as exc:
        raise CorruptPackage(f"Unreadable package archive {source or '<stream>'}: {exc}") from exc
    return parse_nuspec(content, source=source)
