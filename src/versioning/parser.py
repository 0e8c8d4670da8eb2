"""Version, constraint and token parsing utilities for package resolution."""

import re
from typing import Optional, Tuple

import semantic_version

from common.errors import InvalidVersionError
from .models import NuGetVersion, PackageRequest, ResolutionMode, VersionRange, VersionSpec

# NuGet accepts 1 to 4 numeric parts plus optional SemVer labels
_NUGET_VERSION_RE = re.compile(
    r'^(?P<numbers>\d+(?:\.\d+){0,3})'
    r'(?:-(?P<label>[0-9A-Za-z.-]+))?'
    r'(?:\+(?P<metadata>[0-9A-Za-z.-]+))?$'
)


def parse_version(text: str) -> NuGetVersion:
    """Parse a NuGet version string.

    Shorter forms are padded (``1.0`` -> ``1.0.0``) and a fourth part
    becomes the revision, so ``1.2.3.0`` equals ``1.2.3``.

    Raises:
        InvalidVersionError: if the string is not a version.
    """
    if text is None:
        raise InvalidVersionError("Version string is empty")
    s = str(text).strip()
    if s[:1] in ('v', 'V'):
        s = s[1:]
    m = _NUGET_VERSION_RE.match(s)
    if not m:
        raise InvalidVersionError(f"Invalid version: {text!r}")

    numbers = [int(part) for part in m.group('numbers').split('.')]
    numbers += [0] * (4 - len(numbers))
    label, metadata = m.group('label'), m.group('metadata')
    try:
        semver = semantic_version.Version(
            major=numbers[0],
            minor=numbers[1],
            patch=numbers[2],
            prerelease=tuple(label.split('.')) if label else (),
            build=tuple(metadata.split('.')) if metadata else (),
        )
    except ValueError as exc:
        raise InvalidVersionError(f"Invalid version: {text!r}") from exc
    return NuGetVersion(semver, revision=numbers[3])


def is_released(version: NuGetVersion) -> bool:
    """A version is released iff it carries no pre-release label."""
    return not version.prerelease


def _parse_bound(text: str) -> Optional[NuGetVersion]:
    text = text.strip()
    return parse_version(text) if text else None


def parse_version_spec(raw: Optional[str]) -> Optional[VersionSpec]:
    """Parse a NuGet dependency version attribute.

    A bare version (``1.0.0-RC1``) or a single-version interval (``[1.0.0]``)
    pins that exact version. Other intervals (``[1.0,2.0)``, ``(,3.0]``)
    become ranges. Empty values and ``*`` mean no constraint (None).

    Raises:
        InvalidVersionError: on malformed intervals or versions.
    """
    if raw is None:
        return None
    spec = raw.strip()
    if spec in ('', '*') or spec.lower() == 'latest':
        return None

    if spec[0] not in '[(':
        return VersionSpec(raw=spec, mode=ResolutionMode.EXACT, exact=parse_version(spec))

    if len(spec) < 3 or spec[-1] not in '])':
        raise InvalidVersionError(f"Invalid version range: {raw!r}")
    min_inclusive = spec[0] == '['
    max_inclusive = spec[-1] == ']'
    body = spec[1:-1]

    if ',' not in body:
        # Only [x] is meaningful without a comma
        if not (min_inclusive and max_inclusive):
            raise InvalidVersionError(f"Invalid version range: {raw!r}")
        return VersionSpec(raw=spec, mode=ResolutionMode.EXACT, exact=parse_version(body))

    parts = body.split(',')
    if len(parts) != 2:
        raise InvalidVersionError(f"Invalid version range: {raw!r}")
    low, high = _parse_bound(parts[0]), _parse_bound(parts[1])
    if low is None and high is None:
        raise InvalidVersionError(f"Invalid version range: {raw!r}")
    if low is not None and high is not None and low > high:
        raise InvalidVersionError(f"Invalid version range: {raw!r}")

    version_range = VersionRange(
        min_version=low,
        min_inclusive=min_inclusive if low is not None else True,
        max_version=high,
        max_inclusive=max_inclusive if high is not None else False,
    )
    return VersionSpec(raw=spec, mode=ResolutionMode.RANGE, range=version_range)


def tokenize_rightmost_colon(s: str) -> Tuple[str, Optional[str]]:
    """Return (identifier, spec or None) using the rightmost-colon rule."""
    s = s.strip()
    if ':' not in s:
        return s, None
    parts = s.rsplit(':', 1)
    identifier = parts[0].strip()
    spec_part = parts[1].strip() if len(parts) > 1 else ''
    spec = spec_part if spec_part else None
    return identifier, spec


def parse_cli_token(token: str) -> PackageRequest:
    """Parse a CLI token of the form ``Id`` or ``Id:Version``.

    ``Id:latest`` is the same as ``Id``.
    """
    identifier, spec = tokenize_rightmost_colon(token)
    if not identifier:
        raise InvalidVersionError(f"Missing package id in {token!r}")
    version = None
    if spec is not None and spec.lower() != 'latest':
        version = parse_version(spec)
    return PackageRequest(identifier=identifier, requested_version=version, raw_token=token)
