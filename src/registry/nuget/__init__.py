"""NuGet registry package.

This package provides NuGet package source support:
- client.py: NuGet V3 feed (service index + flat container) over HTTP
- local.py: directory of .nupkg files used as a package source
- nuspec.py: nuspec manifest parsing, from files or package archives
"""

from .client import NuGetFeed  # noqa: F401
from .local import LocalFeed  # noqa: F401
from .nuspec import parse_nuspec, read_nuspec_file, read_package_manifest  # noqa: F401

__all__ = [
    "NuGetFeed",
    "LocalFeed",
    "parse_nuspec",
    "read_nuspec_file",
    "read_package_manifest",
]
