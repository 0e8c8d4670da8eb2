"""Directory-backed NuGet source: a folder of .nupkg files."""
from __future__ import annotations

import logging
import os
from glob import glob
from typing import Dict, List, Optional

from constants import Constants
from common.errors import CorruptPackage, ManifestError, RepositoryUnavailable
from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import NuGetVersion, PackageIdentity
from registry.base import Repository
from .nuspec import read_package_manifest

logger = logging.getLogger(__name__)


class LocalFeed(Repository):
    """Serve packages from a directory, identified by their embedded nuspec.

    Both flat (``Id.1.0.0.nupkg``) and nested (``Id.1.0.0/Id.1.0.0.nupkg``)
    layouts are found. The index is built on first use; call ``refresh``
    after adding packages.
    """

    def __init__(self, directory: str):
        self.source = os.path.abspath(directory)
        self._index: Optional[Dict[str, Dict[NuGetVersion, str]]] = None

    def refresh(self) -> None:
        """Forget the current index so the next lookup rescans the directory."""
        self._index = None

    def _build_index(self) -> Dict[str, Dict[NuGetVersion, str]]:
        if not os.path.isdir(self.source):
            raise RepositoryUnavailable(f"Package source directory not found: {self.source}", source=self.source)

        index: Dict[str, Dict[NuGetVersion, str]] = {}
        pattern = os.path.join(self.source, "**", "*" + Constants.PACKAGE_FILE_EXT)
        for path in sorted(glob(pattern, recursive=True)):
            try:
                manifest = read_package_manifest(path)
            except (CorruptPackage, ManifestError) as e:
                logger.warning("Skipping unreadable package %s: %s", path, e)
                continue
            index.setdefault(manifest.id.lower(), {}).setdefault(manifest.version, path)

        if is_debug_enabled(logger):
            logger.debug("Indexed local feed", extra=extra_context(
                event="index", component="local_feed", target=self.source, count=len(index)
            ))
        return index

    def _packages(self) -> Dict[str, Dict[NuGetVersion, str]]:
        if self._index is None:
            self._index = self._build_index()
        return self._index

    def list_versions(self, package_id: str) -> List[NuGetVersion]:
        return list(self._packages().get(package_id.lower(), {}))

    def fetch_content(self, identity: PackageIdentity) -> bytes:
        path = self._packages().get(identity.key, {}).get(identity.version)
        if path is None:
            raise RepositoryUnavailable(f"Package {identity} is not in {self.source}", source=self.source)
        try:
            with open(path, "rb") as fh:
                return fh.read()
        except OSError as exc:
            raise RepositoryUnavailable(f"Couldn't read {path}: {exc}", source=self.source) from exc
