"""Package fetching: dependency walk and local install tree."""

from .install_tree import LocalInstallTree  # noqa: F401
from .service import PackageFetcher  # noqa: F401

__all__ = ["LocalInstallTree", "PackageFetcher"]
