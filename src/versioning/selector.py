"""Version selection policy.

Without an explicit version the newest released version wins; only a
package that has never had a release falls back to its newest pre-release.
An explicit version must be among the candidates under NuGet equality
(label case ignored); there is no nearest-match.
"""

import logging
from typing import Iterable, List, Optional

from common.logging_utils import extra_context, is_debug_enabled
from .models import NuGetVersion, VersionRange
from .parser import is_released

logger = logging.getLogger(__name__)


def _pick_preferring_released(versions: List[NuGetVersion]) -> Optional[NuGetVersion]:
    """Highest released version, else highest of all; None for an empty list."""
    if not versions:
        return None
    stable_versions = [ver for ver in versions if is_released(ver)]
    if stable_versions:
        return max(stable_versions)
    return max(versions)


def select_version(
    candidates: Iterable[NuGetVersion],
    explicit_version: Optional[NuGetVersion] = None,
) -> Optional[NuGetVersion]:
    """Pick exactly one version from ``candidates`` or return None (not found).

    Args:
        candidates: Versions available for one package id, in any order.
        explicit_version: Version the caller asked for, if any.

    Returns:
        The selected version, or None when nothing qualifies.
    """
    versions = list(candidates)
    if not versions:
        return None

    if explicit_version is not None:
        for ver in versions:
            if ver == explicit_version:
                return ver
        if is_debug_enabled(logger):
            logger.debug(
                "Requested version not among candidates",
                extra=extra_context(
                    event="decision", component="selector", action="select_version",
                    target=str(explicit_version), outcome="not_found", count=len(versions)
                ),
            )
        return None

    selected = _pick_preferring_released(versions)
    if is_debug_enabled(logger):
        logger.debug(
            "Selected version",
            extra=extra_context(
                event="decision", component="selector", action="select_version",
                target=str(selected), outcome="release" if is_released(selected) else "prerelease",
                count=len(versions)
            ),
        )
    return selected


def select_in_range(
    candidates: Iterable[NuGetVersion],
    version_range: VersionRange,
) -> Optional[NuGetVersion]:
    """Apply the released-first policy to the versions inside ``version_range``."""
    return _pick_preferring_released([ver for ver in candidates if version_range.contains(ver)])
