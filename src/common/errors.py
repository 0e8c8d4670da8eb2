"""Exception hierarchy for package fetching.

A missing package is not an error: selection and fetch calls return None for
that case. Everything here is a hard failure that aborts the enclosing fetch.
"""
from __future__ import annotations

from typing import Optional, Sequence


class FetchError(Exception):
    """Base class for hard failures while resolving or installing packages."""


class RepositoryUnavailable(FetchError):
    """The package repository could not be reached or answered unexpectedly."""

    def __init__(self, message: str, *, source: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class CorruptPackage(FetchError):
    """Downloaded package content failed integrity checks or extraction."""

    def __init__(self, message: str, *, identity=None):
        super().__init__(message)
        self.identity = identity


class ManifestError(FetchError):
    """A package manifest is missing, malformed, or lacks required fields."""

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class DependencyCycleError(FetchError):
    """A dependency chain leads back to a package already on the chain."""

    def __init__(self, cycle: Sequence[str]):
        self.cycle = list(cycle)
        super().__init__("Dependency cycle detected: " + " -> ".join(self.cycle))


class PrereleaseDependencyError(FetchError):
    """A released package resolved a pre-release dependency in strict mode."""

    def __init__(self, parent, dependency):
        self.parent = parent
        self.dependency = dependency
        super().__init__(
            f"Released package {parent} depends on pre-release package {dependency}"
        )


class InvalidVersionError(ValueError):
    """A version string could not be parsed as a package version."""
