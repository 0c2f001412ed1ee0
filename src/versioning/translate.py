"""Translation of npm/Bower version syntax into Maven versions and ranges.

npm and Bower versions are often written as git tags (``v1.2.3``) and
dependency versions as semver ranges (``^1.2.3``, ``~1.2``, ``>=1 <2``).
Maven only understands exact versions and interval notation
(``[1.2.3,2)``), so every range is rewritten into an interval.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple

import semantic_version

from constants import Constants
from common.errors import InvalidReferenceError
from .parser import is_repository_reference, split_fragment

UNBOUNDED = "*"

_TAG_PREFIX = re.compile(r"^v(?=\d)")
_OPERATOR_TAG_PREFIX = re.compile(r"(\^|~>?|[<>]=?|=)\s*v(?=\d)")
_PARTIAL = re.compile(
    r"^(?P<major>\d+|[xX*])(?:\.(?P<minor>\d+|[xX*]))?(?:\.(?P<patch>\d+|[xX*]))?"
    r"(?P<pre>-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)
_COMPARATOR = re.compile(r"^(?P<op>\^|~>?|>=|<=|>|<|=)?(?P<version>.+)$")
_HYPHEN = re.compile(r"^\s*(?P<low>\S+)\s+-\s+(?P<high>\S+)\s*$")
_WILDCARDS = {"", "*", "x", "X", "latest"}

# (version, inclusive) or None for an open end
Bound = Optional[Tuple[str, bool]]


def vless(version: str) -> str:
    """Drop a single leading ``v`` tag prefix, also after a range operator.

    ``vless("v1.0.0") == "1.0.0"``, ``vless("^v1.0.0") == "^1.0.0"``.
    Idempotent: the prefix is only removed when followed by a digit.
    """
    s = (version or "").strip()
    s = _TAG_PREFIX.sub("", s)
    return _OPERATOR_TAG_PREFIX.sub(lambda m: m.group(1), s)


def vwith(version: str) -> str:
    """Inverse of ``vless`` for building git tag names."""
    return version if version.startswith("v") else f"v{version}"


def canonical_version(spec: str) -> str:
    """Return the canonical exact version (or range text) for a version spec.

    For ``locator#fragment`` the fragment is the version; a locator without a
    fragment yields ``UNBOUNDED``.
    """
    s = (spec or "").strip()
    if is_repository_reference(s):
        _, fragment = split_fragment(s)
        if fragment is None:
            return UNBOUNDED
        s = fragment
    return vless(s)


def _parse_partial(text: str) -> Tuple[int, Optional[int], Optional[int], str]:
    """Parse ``1``, ``1.2``, ``1.2.3``, ``1.x``, ``1.2.3-beta.1`` into parts.

    Returns ``(major, minor, patch, literal)``; missing or wildcard parts are
    None and ``literal`` is the version text without wildcard parts.
    """
    match = _PARTIAL.match(text.strip())
    if not match or match.group("major") in ("x", "X", "*"):
        raise InvalidReferenceError(f"Can not parse version '{text}'")
    parts: List[Optional[int]] = [int(match.group("major"))]
    for key in ("minor", "patch"):
        raw = match.group(key)
        if raw is None or raw in ("x", "X", "*") or parts[-1] is None:
            parts.append(None)
        else:
            parts.append(int(raw))
    major, minor, patch = parts
    literal = ".".join(str(p) for p in (major, minor, patch) if p is not None)
    if patch is not None and match.group("pre"):
        literal += match.group("pre")
    return major, minor, patch, literal  # type: ignore[return-value]


def _coerce(version: str) -> semantic_version.Version:
    try:
        return semantic_version.Version.coerce(version)
    except ValueError as exc:
        raise InvalidReferenceError(f"Can not parse version '{version}'") from exc


def _comparator_bounds(comparator: str) -> Tuple[Bound, Bound]:
    """Lower and upper bound implied by one npm comparator."""
    match = _COMPARATOR.match(comparator)
    if not match:
        raise InvalidReferenceError(f"Can not parse version range '{comparator}'")
    op = match.group("op") or ""
    text = match.group("version").strip()
    if text in _WILDCARDS:
        return None, None
    major, minor, patch, literal = _parse_partial(text)
    _coerce(literal)

    if op == "^":
        return (literal, True), (str(major + 1), False)
    if op in ("~", "~>"):
        if minor is None:
            return (literal, True), (str(major + 1), False)
        return (literal, True), (f"{major}.{minor + 1}", False)
    if op == ">=":
        return (literal, True), None
    if op == ">":
        return (literal, False), None
    if op == "<=":
        return None, (literal, True)
    if op == "<":
        return None, (literal, False)

    # bare or "=" version; partial versions behave like x-ranges
    if minor is None:
        return (literal, True), (str(major + 1), False)
    if patch is None:
        return (literal, True), (f"{major}.{minor + 1}", False)
    return (literal, True), (literal, True)


def _tighter(current: Bound, candidate: Bound, lower: bool) -> Bound:
    if current is None:
        return candidate
    if candidate is None:
        return current
    a, b = _coerce(current[0]), _coerce(candidate[0])
    if a == b:
        return current if not current[1] else candidate
    if lower:
        return candidate if b > a else current
    return candidate if b < a else current


def _interval(lower: Bound, upper: Bound) -> str:
    if lower is None and upper is None:
        return Constants.UNBOUNDED_RANGE
    if lower is not None and upper is not None and lower == upper and lower[1]:
        return f"[{lower[0]}]"
    left = "[" if lower is not None and lower[1] else "("
    right = "]" if upper is not None and upper[1] else ")"
    low = "" if lower is None else lower[0]
    high = "" if upper is None else upper[0]
    return f"{left}{low},{high}{right}"


def _is_exact(text: str) -> bool:
    match = _PARTIAL.match(text)
    return bool(match) and all(
        (match.group(key) or "x").isdigit() for key in ("major", "minor", "patch")
    )


def _translate_alternative(alternative: str) -> str:
    """Translate one ``||``-free npm range into Maven syntax."""
    text = alternative.strip()
    if text in _WILDCARDS:
        return Constants.UNBOUNDED_RANGE

    hyphen = _HYPHEN.match(text)
    if hyphen:
        low = _parse_partial(hyphen.group("low"))[3]
        high = _parse_partial(hyphen.group("high"))[3]
        return f"[{low},{high}]"

    # "> = 1.0" style spacing glued back onto the version
    text = re.sub(r"(\^|~>?|>=|<=|>|<|=)\s+", r"\1", text)
    comparators = [c[1:] if c.startswith("=") else c for c in text.split()]

    if len(comparators) == 1 and comparators[0][0] not in "^~<>=":
        single = comparators[0]
        # exact versions and non-semver literals (tags, branches) map to themselves
        if _is_exact(single) or not _PARTIAL.match(single):
            return single

    lower: Bound = None
    upper: Bound = None
    for comparator in comparators:
        low, high = _comparator_bounds(comparator)
        lower = _tighter(lower, low, lower=True)
        upper = _tighter(upper, high, lower=False)
    return _interval(lower, upper)


def to_maven_range(spec: str) -> str:
    """Convert an npm/Bower version or range (or ``locator#fragment``) to Maven syntax.

    Examples:
        ``^1.0.0`` -> ``[1.0.0,2)``; ``~1.2.3`` -> ``[1.2.3,1.3)``;
        ``org/repo`` -> ``[0,)``; ``org/repo#v1.0.10`` -> ``1.0.10``.

    Raises:
        InvalidReferenceError: When a range operator is applied to something
            that is not a version.
    """
    version = canonical_version(spec)
    if version == UNBOUNDED:
        return Constants.UNBOUNDED_RANGE

    translated = [_translate_alternative(alt) for alt in version.split("||")]
    if Constants.UNBOUNDED_RANGE in translated:
        return Constants.UNBOUNDED_RANGE
    if len(translated) > 1:
        # a union only holds ranges; exact alternatives become [v]
        translated = [t if t[0] in "[(" else f"[{t}]" for t in translated]
    return ",".join(translated)


def is_exact_version(ref: str) -> bool:
    """True for a full semver version, with or without the ``v`` tag prefix."""
    try:
        semantic_version.Version(vless(ref))
    except ValueError:
        return False
    return True


def match_version(spec: str, versions: Iterable[str]) -> Optional[str]:
    """First of ``versions`` satisfying the npm-style range ``spec``.

    ``versions`` is expected newest first, so the newest match wins. Versions
    that are not semver-like are skipped.

    Raises:
        InvalidReferenceError: If ``spec`` is not a version range.
    """
    try:
        npm_spec = semantic_version.NpmSpec(vless(spec))
    except ValueError as exc:
        raise InvalidReferenceError(f"Can not parse version range '{spec}'") from exc
    for version in versions:
        try:
            candidate = semantic_version.Version.coerce(vless(version))
        except ValueError:
            continue
        if npm_spec.match(candidate):
            return version
    return None
