"""Package sources."""
from __future__ import annotations

import os
from typing import Optional

from constants import Constants


def open_repository(source: Optional[str] = None):
    """Return a repository for ``source``: an http(s) feed URL or a local directory.

    Defaults to the configured feed (Constants.DEFAULT_SOURCE).
    """
    # pylint: disable=import-outside-toplevel
    from registry.nuget import LocalFeed, NuGetFeed

    source = source or Constants.DEFAULT_SOURCE
    if source.lower().startswith(("http://", "https://")):
        return NuGetFeed(source)
    if source.lower().startswith("file://"):
        source = source[len("file://"):]
    return LocalFeed(os.path.expanduser(source))
