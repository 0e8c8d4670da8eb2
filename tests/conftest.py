"""Shared fixtures: build real .nupkg archives for local feeds."""

import io
import logging
import os
import zipfile
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from constants import Constants
from common.http_client import clear_cache

NUSPEC_NS = "http://schemas.microsoft.com/packaging/2013/05/nuspec.xsd"


def render_nuspec(
    package_id: str,
    version: str,
    dependencies: Optional[Sequence[Tuple[str, Optional[str]]]] = None,
    groups: Optional[Dict[str, Sequence[Tuple[str, Optional[str]]]]] = None,
) -> str:
    """Render a nuspec document with optional flat or grouped dependencies."""

    def _dep(dep_id, dep_version):
        attr = f' version="{dep_version}"' if dep_version is not None else ""
        return f'<dependency id="{dep_id}"{attr} />'

    deps_xml = ""
    if dependencies is not None or groups is not None:
        inner = "".join(_dep(i, v) for i, v in (dependencies or []))
        for framework, group_deps in (groups or {}).items():
            inner += f'<group targetFramework="{framework}">'
            inner += "".join(_dep(i, v) for i, v in group_deps)
            inner += "</group>"
        deps_xml = f"<dependencies>{inner}</dependencies>"

    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<package xmlns="{NUSPEC_NS}"><metadata>'
        f"<id>{package_id}</id><version>{version}</version>"
        "<authors>Microsoft</authors><description>A description</description>"
        f"{deps_xml}</metadata></package>"
    )


def build_nupkg_bytes(package_id: str, version: str, dependencies=None, groups=None) -> bytes:
    """Return the bytes of a minimal .nupkg: nuspec, one content file, OPC parts."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(f"{package_id}.nuspec", render_nuspec(package_id, version, dependencies, groups))
        archive.writestr("content/dummy.txt", "content")
        archive.writestr("[Content_Types].xml", "<Types />")
        archive.writestr("_rels/.rels", "<Relationships />")
    return buffer.getvalue()


def write_nupkg(directory: str, package_id: str, version: str, dependencies=None, groups=None) -> str:
    """Write ``{id}.{version}.nupkg`` into ``directory`` and return its path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, f"{package_id}.{version}{Constants.PACKAGE_FILE_EXT}")
    with open(path, "wb") as fh:
        fh.write(build_nupkg_bytes(package_id, version, dependencies, groups))
    return path


@pytest.fixture
def remote_dir(tmp_path):
    """Directory acting as the remote package source."""
    path = tmp_path / "nuget.remote"
    path.mkdir()
    return str(path)


@pytest.fixture
def target_dir(tmp_path):
    """Directory packages are installed into."""
    return str(tmp_path / "nuget.target")


@pytest.fixture
def add_package(remote_dir):
    """Add a package to the remote source: add_package(id, version, deps=None)."""

    def _add(package_id: str, version: str, dependencies: Optional[List[Tuple[str, Optional[str]]]] = None):
        return write_nupkg(remote_dir, package_id, version, dependencies)

    return _add


@pytest.fixture(autouse=True)
def restore_constants():
    """Snapshot and restore Constants so config tests don't leak settings."""
    saved = {k: v for k, v in vars(Constants).items() if k.isupper()}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handlers and level changes made by CLI logging setup."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture(autouse=True)
def fresh_http_cache():
    """Start every test with an empty HTTP response cache."""
    clear_cache()
    yield
    clear_cache()
