"""Tests for version, constraint and CLI token parsing."""

import pytest

from common.errors import InvalidVersionError
from versioning.models import ResolutionMode
from versioning.parser import (
    is_released,
    parse_cli_token,
    parse_version,
    parse_version_spec,
    tokenize_rightmost_colon,
)

V = parse_version


class TestParseVersion:
    """Strict and NuGet-style version strings."""

    def test_strict_semver(self):
        parsed = parse_version("1.0.0-RC1")
        assert (parsed.major, parsed.minor, parsed.patch, parsed.revision) == (1, 0, 0, 0)
        assert parsed.prerelease == ("RC1",)
        assert str(parsed) == "1.0.0-RC1"

    def test_pads_short_versions(self):
        assert str(parse_version("1.0")) == "1.0.0"
        assert str(parse_version("2")) == "2.0.0"

    def test_short_version_keeps_prerelease(self):
        assert str(parse_version("1.0-beta")) == "1.0.0-beta"

    def test_zero_revision_is_dropped(self):
        assert parse_version("1.2.3.0") == V("1.2.3")
        assert str(parse_version("1.2.3.0")) == "1.2.3"

    def test_nonzero_revision_is_kept(self):
        parsed = parse_version("1.2.3.4")
        assert parsed.revision == 4
        assert parsed.build == ()
        assert str(parsed) == "1.2.3.4"
        assert parsed != V("1.2.3")

    def test_revision_orders_versions(self):
        assert V("1.0.0.1") < V("1.0.0.2") < V("1.0.1")
        assert V("1.0.0") < V("1.0.0.1")
        assert V("1.0.0.1-beta") < V("1.0.0.1")

    def test_prerelease_label_case_is_ignored_for_equality(self):
        assert V("1.0.0-RC1") == V("1.0.0-rc1")
        assert hash(V("1.0.0-RC1")) == hash(V("1.0.0-rc1"))
        assert str(V("1.0.0-rc1")) == "1.0.0-rc1"

    def test_prerelease_label_case_is_ignored_for_ordering(self):
        assert V("1.0.0-alpha") < V("1.0.0-BETA") < V("1.0.0-rc")

    def test_prerelease_identifiers_follow_semver_precedence(self):
        assert V("1.0.0-beta.2") < V("1.0.0-beta.10")
        assert V("1.0.0-beta") < V("1.0.0-beta.1")
        assert V("1.0.0-1") < V("1.0.0-alpha")
        assert V("1.0.0-rc1") < V("1.0.0")

    def test_build_metadata_is_ignored(self):
        parsed = parse_version("1.0.0+sha.abc")
        assert parsed.build == ("sha", "abc")
        assert parsed == V("1.0.0")
        assert str(parsed) == "1.0.0"

    def test_leading_v_is_accepted(self):
        assert parse_version("v1.2.3") == V("1.2.3")

    @pytest.mark.parametrize("raw", ["", "abc", "1.2.3.4.5", "1..2", "1.0.0-", "1.0.0-rc..1", "1.0.0-01", None])
    def test_rejects_garbage(self, raw):
        with pytest.raises(InvalidVersionError):
            parse_version(raw)

    def test_invalid_version_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_version("not-a-version")

    def test_is_released(self):
        assert is_released(V("1.0.0"))
        assert is_released(V("1.0.0.5"))
        assert not is_released(V("1.0.0-rc1"))


class TestParseVersionSpec:
    """NuGet dependency version attributes."""

    def test_missing_or_empty_is_unconstrained(self):
        assert parse_version_spec(None) is None
        assert parse_version_spec("") is None
        assert parse_version_spec("  ") is None
        assert parse_version_spec("*") is None

    def test_bare_version_is_exact(self):
        spec = parse_version_spec("1.0.0-RC1")
        assert spec.mode == ResolutionMode.EXACT
        assert spec.exact == V("1.0.0-RC1")
        assert spec.raw == "1.0.0-RC1"

    def test_bracketed_single_version_is_exact(self):
        spec = parse_version_spec("[2.1.0]")
        assert spec.mode == ResolutionMode.EXACT
        assert spec.exact == V("2.1.0")

    def test_closed_open_range(self):
        spec = parse_version_spec("[1.0,2.0)")
        assert spec.mode == ResolutionMode.RANGE
        assert spec.exact is None
        rng = spec.range
        assert rng.contains(V("1.0.0"))
        assert rng.contains(V("1.9.9"))
        assert not rng.contains(V("2.0.0"))
        assert not rng.contains(V("0.9.0"))

    def test_open_lower_bound(self):
        rng = parse_version_spec("(,3.0]").range
        assert rng.min_version is None
        assert rng.contains(V("0.0.1"))
        assert rng.contains(V("3.0.0"))
        assert not rng.contains(V("3.0.1"))

    def test_exclusive_minimum(self):
        rng = parse_version_spec("(1.0,)").range
        assert not rng.contains(V("1.0.0"))
        assert rng.contains(V("1.0.1"))
        assert rng.max_version is None

    @pytest.mark.parametrize("raw", ["(1.0)", "[1.0", "[,]", "[2.0,1.0]", "[1.0,2.0,3.0]", "[x,2.0]"])
    def test_rejects_malformed_ranges(self, raw):
        with pytest.raises(InvalidVersionError):
            parse_version_spec(raw)


class TestCliTokens:
    """Id[:Version] tokens from the command line."""

    def test_tokenize_rightmost_colon(self):
        assert tokenize_rightmost_colon("Newtonsoft.Json:13.0.1") == ("Newtonsoft.Json", "13.0.1")
        assert tokenize_rightmost_colon("Newtonsoft.Json") == ("Newtonsoft.Json", None)
        assert tokenize_rightmost_colon("Newtonsoft.Json:") == ("Newtonsoft.Json", None)

    def test_parse_cli_token_with_version(self):
        req = parse_cli_token("package.id.1:1.0.0-rc1")
        assert req.identifier == "package.id.1"
        assert req.requested_version == V("1.0.0-rc1")
        assert req.raw_token == "package.id.1:1.0.0-rc1"

    def test_parse_cli_token_latest(self):
        assert parse_cli_token("package.id.1:latest").requested_version is None
        assert parse_cli_token("package.id.1").requested_version is None

    def test_parse_cli_token_rejects_missing_id(self):
        with pytest.raises(InvalidVersionError):
            parse_cli_token(":1.0.0")
