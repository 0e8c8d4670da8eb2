"""NuGet V3 feed client: list package versions and download .nupkg archives."""
from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional

from constants import Constants
from common.errors import InvalidVersionError, RepositoryUnavailable
from common.http_client import get_bytes, get_json
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.cache import TTLCache
from versioning.models import NuGetVersion, PackageIdentity
from versioning.parser import parse_version
from registry.base import Repository

logger = logging.getLogger(__name__)

# Shared HTTP JSON headers for this module
HEADERS_JSON = {"Accept": "application/json"}


def _fetch_v3_service_index(index_url: str) -> Dict[str, Any]:
    """Fetch and parse a NuGet V3 service index.

    Raises:
        RepositoryUnavailable: if the index can't be retrieved or parsed.
    """
    status_code, _, data = get_json(index_url, headers=HEADERS_JSON)
    if status_code != 200 or not isinstance(data, dict):
        raise RepositoryUnavailable(
            f"NuGet service index unavailable (HTTP {status_code})",
            source=safe_url(index_url),
            status_code=status_code,
        )
    return data


def _get_v3_resource_url(service_index: Dict[str, Any], resource_type: str) -> Optional[str]:
    """Return the @id of the first resource of ``resource_type``, with a trailing slash."""
    for resource in service_index.get("resources", []):
        if resource.get("@type") == resource_type:
            base_url = resource.get("@id")
            if base_url:
                return base_url if base_url.endswith("/") else base_url + "/"
    return None


def _flat_container_versions_url(base_url: str, package_id: str) -> str:
    encoded_id = urllib.parse.quote(package_id.lower(), safe="")
    return f"{base_url}{encoded_id}/index.json"


def _flat_container_package_url(base_url: str, identity: PackageIdentity) -> str:
    lower_id = urllib.parse.quote(identity.key, safe="")
    lower_version = urllib.parse.quote(str(identity.version).lower(), safe="")
    return f"{base_url}{lower_id}/{lower_version}/{lower_id}.{lower_version}{Constants.PACKAGE_FILE_EXT}"


class NuGetFeed(Repository):
    """Remote NuGet V3 feed accessed through its flat container resource."""

    def __init__(self, index_url: Optional[str] = None, cache: Optional[TTLCache] = None):
        self.source = index_url or Constants.DEFAULT_SOURCE
        self.cache = cache if cache is not None else TTLCache(Constants.VERSION_LIST_CACHE_TTL_SEC)
        self._base_url: Optional[str] = None

    def _package_base_url(self) -> str:
        if self._base_url is None:
            service_index = _fetch_v3_service_index(self.source)
            base_url = _get_v3_resource_url(service_index, Constants.PACKAGE_BASE_ADDRESS_TYPE)
            if not base_url:
                raise RepositoryUnavailable(
                    f"Service index has no {Constants.PACKAGE_BASE_ADDRESS_TYPE} resource",
                    source=safe_url(self.source),
                )
            self._base_url = base_url
        return self._base_url

    def list_versions(self, package_id: str) -> List[NuGetVersion]:
        """List versions from ``{PackageBaseAddress}/{lower_id}/index.json``.

        A 404 means the id is unknown and yields an empty list.
        """
        cache_key = f"nuget:{package_id.lower()}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return list(cached)

        url = _flat_container_versions_url(self._package_base_url(), package_id)
        status_code, _, data = get_json(url, headers=HEADERS_JSON)
        if status_code == 404:
            versions: List[NuGetVersion] = []
        elif status_code != 200 or not isinstance(data, dict):
            raise RepositoryUnavailable(
                f"Unexpected response listing versions of {package_id} (HTTP {status_code})",
                source=safe_url(url),
                status_code=status_code,
            )
        else:
            versions = []
            for raw in data.get("versions", []):
                try:
                    versions.append(parse_version(raw))
                except InvalidVersionError:
                    logger.warning("Ignoring unparseable version %r of %s", raw, package_id)

        if is_debug_enabled(logger):
            logger.debug("Listed package versions", extra=extra_context(
                event="list_versions", component="client", target=package_id,
                count=len(versions), package_manager="nuget"
            ))
        self.cache.set(cache_key, versions)
        return list(versions)

    def fetch_content(self, identity: PackageIdentity) -> bytes:
        url = _flat_container_package_url(self._package_base_url(), identity)
        logger.info("Downloading %s", identity, extra=extra_context(
            event="download", component="client", target=safe_url(url), package_manager="nuget"
        ))
        status_code, content = get_bytes(url)
        if status_code != 200:
            raise RepositoryUnavailable(
                f"Download of {identity} failed (HTTP {status_code})",
                source=safe_url(url),
                status_code=status_code,
            )
        return content
