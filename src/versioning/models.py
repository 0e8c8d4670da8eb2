"""Data models for versioning and package resolution."""

import functools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import semantic_version


class ResolutionMode(Enum):
    """How a version constraint restricts selection."""
    EXACT = "exact"
    RANGE = "range"
    LATEST = "latest"


@functools.total_ordering
class NuGetVersion:
    """A NuGet package version.

    ``major.minor.patch``, the pre-release label and build metadata are held
    in a ``semantic_version.Version``; NuGet's optional fourth part is kept
    as ``revision``. Equality and ordering follow NuGet rather than SemVer:
    the revision takes part, pre-release labels compare case-insensitively
    and build metadata is ignored.

    ``str()`` gives the normalized form (``1.0.0``, ``1.0.0.1``,
    ``1.0.0-RC1``) with the label casing as written.
    """

    __slots__ = ("semver", "revision")

    def __init__(self, semver: semantic_version.Version, revision: int = 0):
        self.semver = semver
        self.revision = revision

    @property
    def major(self) -> int:
        return self.semver.major

    @property
    def minor(self) -> int:
        return self.semver.minor

    @property
    def patch(self) -> int:
        return self.semver.patch

    @property
    def prerelease(self) -> Tuple[str, ...]:
        return tuple(self.semver.prerelease or ())

    @property
    def build(self) -> Tuple[str, ...]:
        return tuple(self.semver.build or ())

    def _label_key(self) -> Tuple[Any, ...]:
        # A release sorts above every pre-release of the same numbers
        if not self.prerelease:
            return (1,)
        return (0,) + tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
            for part in self.prerelease
        )

    @property
    def sort_key(self) -> Tuple[Any, ...]:
        return (self.major, self.minor, self.patch, self.revision, self._label_key())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.sort_key == other.sort_key

    def __lt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __hash__(self) -> int:
        return hash(self.sort_key)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text += f".{self.revision}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        return text

    def __repr__(self) -> str:
        return f"NuGetVersion({str(self)!r})"


@dataclass(frozen=True)
class VersionRange:
    """NuGet interval: bounds are optional, each inclusive or exclusive."""
    min_version: Optional[NuGetVersion] = None
    min_inclusive: bool = True
    max_version: Optional[NuGetVersion] = None
    max_inclusive: bool = False

    def contains(self, version: NuGetVersion) -> bool:
        if self.min_version is not None:
            if version < self.min_version:
                return False
            if version == self.min_version and not self.min_inclusive:
                return False
        if self.max_version is not None:
            if version > self.max_version:
                return False
            if version == self.max_version and not self.max_inclusive:
                return False
        return True


@dataclass(frozen=True)
class VersionSpec:
    """Normalized representation of a dependency version constraint."""
    raw: str
    mode: ResolutionMode
    exact: Optional[NuGetVersion] = None
    range: Optional[VersionRange] = None


@dataclass(frozen=True, eq=False)
class PackageIdentity:
    """A package id pinned to one version.

    NuGet ids are case-insensitive, so equality and hashing use the
    lowercased id and NuGet version equality, while ``id`` and ``version``
    keep the casing they were read with.
    """
    id: str
    version: NuGetVersion

    @property
    def key(self) -> str:
        return self.id.lower()

    @property
    def is_prerelease(self) -> bool:
        return bool(self.version.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PackageIdentity):
            return NotImplemented
        return self.key == other.key and self.version == other.version

    def __hash__(self) -> int:
        return hash((self.key, self.version))

    def __str__(self) -> str:
        return f"{self.id}.{self.version}"


@dataclass(frozen=True)
class DependencySpec:
    """One declared dependency of a package."""
    id: str
    constraint: Optional[VersionSpec] = None

    @property
    def mode(self) -> ResolutionMode:
        """LATEST when the dependency declares no version at all."""
        return self.constraint.mode if self.constraint is not None else ResolutionMode.LATEST

    @property
    def exact_version(self) -> Optional[NuGetVersion]:
        if self.mode == ResolutionMode.EXACT:
            return self.constraint.exact
        return None


@dataclass
class PackageRequest:
    """A top-level fetch request as given on the command line."""
    identifier: str
    requested_version: Optional[NuGetVersion]
    raw_token: Optional[str] = None


@dataclass
class PackageManifest:
    """Metadata read from a package's nuspec document."""
    id: str
    version: NuGetVersion
    dependencies: List[DependencySpec] = field(default_factory=list)
    title: Optional[str] = None
    authors: Optional[str] = None
    description: Optional[str] = None

    @property
    def identity(self) -> PackageIdentity:
        return PackageIdentity(self.id, self.version)


@dataclass
class ResolvedPackage:
    """Outcome of selection plus installation for one package."""
    identity: PackageIdentity
    dependencies: List[DependencySpec]
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.identity.id,
            "version": str(self.identity.version),
            "path": self.path,
            "dependencies": [
                {"id": dep.id, "constraint": dep.constraint.raw if dep.constraint else None}
                for dep in self.dependencies
            ],
        }


@dataclass
class FetchReport:
    """Everything a top-level fetch resolved, in resolution order."""
    root: ResolvedPackage
    packages: List[ResolvedPackage] = field(default_factory=list)
    already_installed: List[PackageIdentity] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": self.root.to_dict(),
            "packages": [pkg.to_dict() for pkg in self.packages],
            "already_installed": [str(identity) for identity in self.already_installed],
        }
