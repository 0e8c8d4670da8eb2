"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    NOT_FOUND = 3
    PACKAGE_ERROR = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_SOURCE = "https://api.nuget.org/v3/index.json"
    PACKAGE_BASE_ADDRESS_TYPE = "PackageBaseAddress/3.0.0"
    PACKAGE_FILE_EXT = ".nupkg"
    MANIFEST_FILE_EXT = ".nuspec"
    INSTALL_MARKER = ".feedfetch-installed"
    TEMP_DIR_PREFIX = ".feedfetch-tmp-"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    VERSION_LIST_CACHE_TTL_SEC = 600

    # Resolution behavior toggles
    STRICT_PRERELEASE = False
    HONOR_DEPENDENCY_RANGES = False

    CONFIG_FILE_NAMES = ("feedfetch.yml", "feedfetch.yaml")
    ENV_CONFIG = "FEEDFETCH_CONFIG"
    ENV_SOURCE = "FEEDFETCH_SOURCE"
    ENV_REQUEST_TIMEOUT = "FEEDFETCH_REQUEST_TIMEOUT"
    ENV_STRICT_PRERELEASE = "FEEDFETCH_STRICT_PRERELEASE"
    ENV_HONOR_RANGES = "FEEDFETCH_HONOR_RANGES"


# YAML keys mapped onto Constants attributes, with the coercion applied
_CONFIG_KEYS = {
    ("feed", "source"): ("DEFAULT_SOURCE", str),
    ("http", "request_timeout"): ("REQUEST_TIMEOUT", int),
    ("http", "retry_max"): ("HTTP_RETRY_MAX", int),
    ("http", "cache_ttl_sec"): ("HTTP_CACHE_TTL_SEC", int),
    ("feed", "version_cache_ttl_sec"): ("VERSION_LIST_CACHE_TTL_SEC", int),
    ("resolution", "strict_prerelease"): ("STRICT_PRERELEASE", bool),
    ("resolution", "honor_dependency_ranges"): ("HONOR_DEPENDENCY_RANGES", bool),
}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _coerce(value: Any, kind: type) -> Any:
    if kind is bool:
        return _parse_bool(value)
    return kind(value)


def _config_candidates() -> list:
    """Return config file paths in priority order."""
    paths = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        paths.append(env_path)
    paths.extend(os.path.join(os.getcwd(), name) for name in Constants.CONFIG_FILE_NAMES)
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    paths.extend(os.path.join(xdg, "feedfetch", name) for name in Constants.CONFIG_FILE_NAMES)
    return paths


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first available YAML config file and return its mapping.

    Returns an empty dict when no file exists or it cannot be parsed.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = [path] if path else _config_candidates()
    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Couldn't read config file %s: %s", candidate, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config file %s: top level must be a mapping", candidate)
            return {}
        logger.debug("Loaded config file %s", candidate)
        return data
    return {}


def apply_config(data: Dict[str, Any]) -> None:
    """Apply known keys from a config mapping onto Constants."""
    for (section, key), (attr, kind) in _CONFIG_KEYS.items():
        block = data.get(section)
        if not isinstance(block, dict) or key not in block:
            continue
        try:
            setattr(Constants, attr, _coerce(block[key], kind))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid config value %s.%s=%r", section, key, block[key])


def apply_env_overrides() -> None:
    """Apply FEEDFETCH_* environment variables onto Constants."""
    source = os.environ.get(Constants.ENV_SOURCE)
    if source:
        Constants.DEFAULT_SOURCE = source.strip()
    timeout = os.environ.get(Constants.ENV_REQUEST_TIMEOUT)
    if timeout:
        try:
            Constants.REQUEST_TIMEOUT = int(timeout)
        except ValueError:
            logger.warning("Ignoring invalid %s=%r", Constants.ENV_REQUEST_TIMEOUT, timeout)
    strict = os.environ.get(Constants.ENV_STRICT_PRERELEASE)
    if strict is not None:
        Constants.STRICT_PRERELEASE = _parse_bool(strict)
    ranges = os.environ.get(Constants.ENV_HONOR_RANGES)
    if ranges is not None:
        Constants.HONOR_DEPENDENCY_RANGES = _parse_bool(ranges)


def load_settings(path: Optional[str] = None) -> None:
    """Load YAML config then environment overrides (env wins)."""
    apply_config(_load_yaml_config(path))
    apply_env_overrides()
