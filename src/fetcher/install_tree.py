"""Local install tree: one ``{id}.{version}`` directory per installed package.

An install extracts into a temporary sibling directory, drops a marker file
and renames the directory into place, so a half-extracted package is never
seen as installed. Installs of the same identity are serialized and the
second one is a no-op.
"""
from __future__ import annotations

import io
import json
import logging
import os
import shutil
import tempfile
import threading
import zipfile
from typing import Dict, Optional, Tuple

from constants import Constants
from common.errors import CorruptPackage, ManifestError
from common.logging_utils import extra_context, Timer
from registry.nuget.nuspec import find_nuspec_file, read_nuspec_file
from versioning.models import PackageIdentity, PackageManifest

logger = logging.getLogger(__name__)

# OPC bookkeeping entries NuGet does not install
_SKIPPED_ENTRIES = ("_rels/", "package/", "[Content_Types].xml")

_locks_guard = threading.Lock()
_identity_locks: Dict[Tuple[str, str], threading.Lock] = {}


def _lock_for(root: str, identity: PackageIdentity) -> threading.Lock:
    key = (root, str(identity).lower())
    with _locks_guard:
        lock = _identity_locks.get(key)
        if lock is None:
            lock = _identity_locks[key] = threading.Lock()
        return lock


def _safe_member_path(base: str, name: str) -> Optional[str]:
    """Resolve an archive entry below ``base``; None when it would escape."""
    target = os.path.normpath(os.path.join(base, name))
    if os.path.commonpath([base, target]) != base:
        return None
    return target


class LocalInstallTree:
    """Directory of installed packages keyed by ``{id}.{version}``."""

    def __init__(self, root: str):
        self.root = os.path.abspath(root)

    def path_for(self, identity: PackageIdentity) -> str:
        """Install directory for ``identity``, reusing an existing differently-cased one."""
        existing = self._locate(identity)
        return existing or os.path.join(self.root, str(identity))

    def _locate(self, identity: PackageIdentity) -> Optional[str]:
        direct = os.path.join(self.root, str(identity))
        if os.path.isdir(direct):
            return direct
        if not os.path.isdir(self.root):
            return None
        wanted = str(identity).lower()
        for name in os.listdir(self.root):
            if name.lower() == wanted:
                return os.path.join(self.root, name)
        return None

    def exists(self, identity: PackageIdentity) -> bool:
        path = self._locate(identity)
        return path is not None and os.path.isfile(os.path.join(path, Constants.INSTALL_MARKER))

    def install(self, identity: PackageIdentity, content: bytes) -> str:
        """Extract ``content`` (a .nupkg archive) as ``identity``; return its directory.

        The directory is named after the id and version written in the
        package's own nuspec, which may differ in case from ``identity``.

        Raises:
            CorruptPackage: if the archive is invalid or holds another package.
        """
        with _lock_for(self.root, identity):
            if self.exists(identity):
                return self.path_for(identity)

            os.makedirs(self.root, exist_ok=True)
            staging = tempfile.mkdtemp(prefix=Constants.TEMP_DIR_PREFIX, dir=self.root)
            try:
                with Timer() as t:
                    self._extract(identity, content, staging)
                    installed = self._verify(identity, staging).identity
                    # Keep the original archive next to its contents, as NuGet does
                    with open(os.path.join(staging, f"{installed}{Constants.PACKAGE_FILE_EXT}"), "wb") as fh:
                        fh.write(content)
                    with open(os.path.join(staging, Constants.INSTALL_MARKER), "w", encoding="utf-8") as fh:
                        json.dump({"id": installed.id, "version": str(installed.version)}, fh)
                    stale = self._locate(identity)
                    if stale is not None:
                        # Leftover directory without a marker is not a valid install
                        shutil.rmtree(stale)
                    target = os.path.join(self.root, str(installed))
                    os.rename(staging, target)
            except BaseException:
                shutil.rmtree(staging, ignore_errors=True)
                raise

            logger.info("Installed %s", installed, extra=extra_context(
                event="install", component="install_tree", target=target, duration_ms=t.duration_ms()
            ))
            return target

    def _extract(self, identity: PackageIdentity, content: bytes, staging: str) -> None:
        try:
            with zipfile.ZipFile(io.BytesIO(content)) as archive:
                bad_entry = archive.testzip()
                if bad_entry is not None:
                    raise CorruptPackage(f"Package {identity} has a corrupt entry: {bad_entry}", identity=identity)
                for info in archive.infolist():
                    if info.filename.startswith(_SKIPPED_ENTRIES) or info.is_dir():
                        continue
                    dest = _safe_member_path(staging, info.filename)
                    if dest is None:
                        raise CorruptPackage(
                            f"Package {identity} has an entry outside the package root: {info.filename}",
                            identity=identity,
                        )
                    os.makedirs(os.path.dirname(dest), exist_ok=True)
                    with archive.open(info) as src, open(dest, "wb") as out:
                        shutil.copyfileobj(src, out)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError, EOFError) as exc:
            raise CorruptPackage(f"Couldn't extract package {identity}: {exc}", identity=identity) from exc

    def _verify(self, identity: PackageIdentity, staging: str) -> PackageManifest:
        """Return the staged nuspec, which must describe ``identity``."""
        nuspec_path = find_nuspec_file(staging)
        if nuspec_path is None:
            raise CorruptPackage(f"Package {identity} has no nuspec", identity=identity)
        try:
            manifest = read_nuspec_file(nuspec_path)
        except ManifestError as exc:
            raise CorruptPackage(f"Package {identity} has an invalid nuspec: {exc}", identity=identity) from exc
        if manifest.identity != identity:
            raise CorruptPackage(
                f"Expected package {identity} but archive contains {manifest.identity}",
                identity=identity,
            )
        return manifest

    def read_manifest(self, identity: PackageIdentity) -> PackageManifest:
        """Read the nuspec of an installed package.

        Raises:
            ManifestError: if the package is not installed or has no nuspec.
        """
        path = self._locate(identity)
        nuspec_path = find_nuspec_file(path) if path else None
        if nuspec_path is None:
            raise ManifestError(f"No manifest found for {identity}", path=path)
        return read_nuspec_file(nuspec_path)
