"""Tests for npm/Bower to Maven version translation."""

import pytest

from common.errors import InvalidReferenceError
from versioning.translate import (
    UNBOUNDED,
    canonical_version,
    is_exact_version,
    match_version,
    to_maven_range,
    vless,
    vwith,
)


class TestTagPrefix:
    """Leading ``v`` handling."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("v1.0.0", "1.0.0"),
            ("1.0.0", "1.0.0"),
            ("^v1.0.0", "^1.0.0"),
            ("~v1.2.0", "~1.2.0"),
            (">=v1.0.0 <v2.0.0", ">=1.0.0 <2.0.0"),
            ("vendor", "vendor"),
            ("", ""),
        ],
    )
    def test_vless(self, raw, expected):
        assert vless(raw) == expected

    @pytest.mark.parametrize("raw", ["v1.0.0", "vv1.0.0", "^v2.1", "v", "1.0.0", "org/repo#v1.0.10"])
    def test_canonical_version_is_idempotent(self, raw):
        once = canonical_version(raw)
        assert canonical_version(once) == once

    def test_vwith(self):
        assert vwith("1.0.0") == "v1.0.0"
        assert vwith("v1.0.0") == "v1.0.0"


class TestCanonicalVersion:
    """Exact version extraction."""

    def test_repository_without_fragment_is_unbounded(self):
        assert canonical_version("PolymerElements/iron-elements") == UNBOUNDED

    def test_repository_fragment_is_the_version(self):
        assert canonical_version("PolymerElements/iron-elements#v1.0.10") == "1.0.10"

    def test_plain_version(self):
        assert canonical_version("v3.2.1") == "3.2.1"


class TestToMavenRange:
    """Range translation."""

    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("^1.0.0", "[1.0.0,2)"),
            ("^0.5.1", "[0.5.1,1)"),
            ("~1.2.3", "[1.2.3,1.3)"),
            ("~>1.2.3", "[1.2.3,1.3)"),
            ("~1", "[1,2)"),
            ("1.0.0", "1.0.0"),
            ("v3.2.1", "3.2.1"),
            ("=1.0.0", "1.0.0"),
            ("1.x", "[1,2)"),
            ("1.2.x", "[1.2,1.3)"),
            (">=1.2.0", "[1.2.0,)"),
            (">1.2.0", "(1.2.0,)"),
            ("<2.0.0", "(,2.0.0)"),
            ("<=2.0.0", "(,2.0.0]"),
            (">=1.2.0 <2.0.0", "[1.2.0,2.0.0)"),
            (">= 1.2.0 < 2.0.0", "[1.2.0,2.0.0)"),
            ("1.2.3 - 2.3.4", "[1.2.3,2.3.4]"),
            ("^1.0.0 || ^2.0.0", "[1.0.0,2),[2.0.0,3)"),
            ("1.0.0 || 2.0.0", "[1.0.0],[2.0.0]"),
            ("1.0.0 || ^2.0.0", "[1.0.0],[2.0.0,3)"),
            ("master", "master"),
        ],
    )
    def test_ranges(self, spec, expected):
        assert to_maven_range(spec) == expected

    @pytest.mark.parametrize("spec", ["*", "", "x", "latest", "^1.0.0 || *"])
    def test_wildcards_are_unbounded(self, spec):
        assert to_maven_range(spec) == "[0,)"

    def test_repository_without_fragment(self):
        assert to_maven_range("PolymerElements/iron-elements") == "[0,)"
        assert to_maven_range("https://github.com/jquery/jquery") == "[0,)"

    def test_repository_with_fragment(self):
        assert to_maven_range("PolymerElements/iron-elements#v1.0.10") == "1.0.10"
        assert to_maven_range("PolymerElements/iron-validator-behavior#^1.0.0") == "[1.0.0,2)"

    @pytest.mark.parametrize("spec", ["^foo", "~bar", ">=abc"])
    def test_operator_on_non_version(self, spec):
        with pytest.raises(InvalidReferenceError):
            to_maven_range(spec)


class TestMatchVersion:
    """Resolving ranges against known tags."""

    TAGS = ["2.0.0", "1.0.5", "1.0.4", "0.9"]

    @pytest.mark.parametrize(
        "spec, expected",
        [
            ("^1.0.0", "1.0.5"),
            ("~1.0.4", "1.0.5"),
            ("<1.0.5", "1.0.4"),
            (">=1.0.0", "2.0.0"),
            ("^v2.0.0", "2.0.0"),
            ("^3.0.0", None),
        ],
    )
    def test_newest_match_wins(self, spec, expected):
        assert match_version(spec, self.TAGS) == expected

    def test_non_semver_tags_are_skipped(self):
        assert match_version("^1.0.0", ["latest", "v1.2.0"]) == "v1.2.0"

    def test_not_a_range(self):
        with pytest.raises(InvalidReferenceError):
            match_version("^master", self.TAGS)

    @pytest.mark.parametrize(
        "ref, expected",
        [("1.0.0", True), ("v1.0.0", True), ("1.0.0-beta.1", True), ("^1.0.0", False), ("1.0", False), ("master", False)],
    )
    def test_is_exact_version(self, ref, expected):
        assert is_exact_version(ref) is expected
