"""Shared HTTP helpers used by the feed clients.

Encapsulates common request/timeout error handling so modules avoid
duplicating try/except blocks. Transport failures surface as
RepositoryUnavailable; callers decide what a status code means.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from constants import Constants
from common.errors import RepositoryUnavailable
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


# Text responses keyed by request, with the time they were stored
_http_cache: Dict[str, Tuple[Any, float]] = {}


def clear_cache() -> None:
    """Drop every cached response."""
    _http_cache.clear()


def _cache_key(url: str, headers: Optional[Dict[str, str]]) -> str:
    header_part = str(sorted(headers.items())) if headers else ""
    return f"GET:{url}:{header_part}"


def _cached(key: str) -> Optional[Tuple[int, Dict[str, str], str]]:
    entry = _http_cache.get(key)
    if entry is None:
        return None
    value, stored_at = entry
    if time.time() - stored_at >= Constants.HTTP_CACHE_TTL_SEC:
        return None
    return value


def _trace(message: str, target: str, **fields: Any) -> None:
    if is_debug_enabled(logger):
        logger.debug(message, extra=extra_context(component="http_client", action="GET", target=target, **fields))


def _request_with_retries(url: str, *, headers: Optional[Dict[str, str]], **kwargs: Any) -> requests.Response:
    """GET with bounded retries on transport errors and 5xx responses.

    The delay doubles after each failed attempt, starting from
    HTTP_RETRY_BASE_DELAY_SEC. Raises RepositoryUnavailable once
    HTTP_RETRY_MAX attempts have failed.
    """
    target = safe_url(url)
    last_error = "no attempt made"
    for attempt in range(1, Constants.HTTP_RETRY_MAX + 1):
        if attempt > 1:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 2)))
        _trace("HTTP request", target, event="http_request", attempt=attempt)
        with Timer() as timer:
            try:
                response = requests.get(url, timeout=Constants.REQUEST_TIMEOUT, headers=headers, **kwargs)
            except requests.Timeout:
                last_error = "timeout"
                _trace("HTTP timeout", target, event="http_exception", outcome="timeout", attempt=attempt)
                continue
            except requests.RequestException as exc:
                last_error = str(exc)
                _trace("HTTP request exception", target, event="http_exception",
                       outcome="request_exception", attempt=attempt)
                continue

        if response.status_code >= 500:
            last_error = f"HTTP {response.status_code}"
            _trace("HTTP server error", target, event="http_response", outcome="retry",
                   status_code=response.status_code, attempt=attempt)
            continue

        _trace("HTTP response", target, event="http_response", outcome="success",
               status_code=response.status_code, duration_ms=timer.duration_ms())
        return response

    logger.warning(
        "Request failed after %d attempts",
        Constants.HTTP_RETRY_MAX,
        extra=extra_context(event="http_exception", component="http_client", target=target, error=last_error),
    )
    raise RepositoryUnavailable(
        f"Request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_error}",
        source=target,
    )


def robust_get(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], str]:
    """GET ``url`` with retries; responses are cached for HTTP_CACHE_TTL_SEC.

    Returns:
        Tuple of (status_code, headers_dict, text)
    """
    key = _cache_key(url, headers)
    hit = _cached(key)
    if hit is not None:
        _trace("HTTP cache hit", safe_url(url), event="cache_hit")
        return hit

    response = _request_with_retries(url, headers=headers, **kwargs)
    result = (response.status_code, dict(response.headers), response.text)
    _http_cache[key] = (result, time.time())
    return result


def get_json(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, Dict[str, str], Optional[Any]]:
    """GET ``url`` and decode a JSON body.

    The parsed value is None for non-200 responses, empty bodies and
    bodies that are not valid JSON.
    """
    status_code, response_headers, text = robust_get(url, headers=headers, **kwargs)
    if status_code != 200 or not text:
        return status_code, response_headers, None
    try:
        return status_code, response_headers, json.loads(text)
    except json.JSONDecodeError:
        _trace("JSON decode error", safe_url(url), event="parse", outcome="json_decode_error",
               status_code=status_code)
        return status_code, response_headers, None


def get_bytes(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Tuple[int, bytes]:
    """Download a response body as bytes (never cached)."""
    response = _request_with_retries(url, headers=headers, **kwargs)
    return response.status_code, response.content
