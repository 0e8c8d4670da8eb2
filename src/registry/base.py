"""Repository interface consumed by the package fetcher."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from versioning.models import NuGetVersion, PackageIdentity


class Repository(ABC):
    """A source of packages: lists versions and hands out package archives."""

    #: Human-readable location (URL or directory) used in logs and reports
    source: str = ""

    @abstractmethod
    def list_versions(self, package_id: str) -> List[NuGetVersion]:
        """Return every known version of ``package_id``; empty when unknown.

        Raises:
            RepositoryUnavailable: on transport failures.
        """

    @abstractmethod
    def fetch_content(self, identity: PackageIdentity) -> bytes:
        """Return the .nupkg archive bytes for ``identity``.

        Raises:
            RepositoryUnavailable: on transport failures or a vanished package.
        """
