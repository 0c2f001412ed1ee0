"""Parsing of package locators and dependency declarations.

Accepted locator forms:

- bare registry names: ``jquery``, ``jQuery``, ``@polymer/polymer``
- GitHub short references: ``PolymerElements/iron-elements``, ``github:org/repo``
- GitHub URLs: ``https://github.com/org/repo(.git)``, ``git://``, ``git+https://``,
  ``git@github.com:org/repo.git``

Any form may carry a ``#ref`` fragment except bare names.
"""

import re
from typing import Optional, Tuple

from common.errors import InvalidReferenceError
from .models import LocatorKind, PackageLocator

_SEGMENT = r"[A-Za-z0-9_.-]+?"

_GITHUB_URL_PATTERN = re.compile(
    r"^(?:git\+)?(?:https?|git|ssh)://(?:[^@/]+@)?(?:www\.)?github\.com[/:]"
    rf"(?P<org>{_SEGMENT})/(?P<repo>{_SEGMENT})(?:\.git)?/?(?:#(?P<ref>.*))?$",
    re.IGNORECASE,
)
_GITHUB_SCP_PATTERN = re.compile(
    rf"^git@github\.com:(?P<org>{_SEGMENT})/(?P<repo>{_SEGMENT})(?:\.git)?(?:#(?P<ref>.*))?$",
    re.IGNORECASE,
)
_GITHUB_SHORT_PATTERN = re.compile(
    rf"^(?:github:)?(?P<org>[A-Za-z0-9][A-Za-z0-9_.-]*?)/(?P<repo>{_SEGMENT})(?:\.git)?(?:#(?P<ref>.*))?$"
)
_BARE_NAME_PATTERN = re.compile(r"^(?:@[A-Za-z0-9][A-Za-z0-9_.-]*/)?[A-Za-z0-9_][A-Za-z0-9_.-]*$")


def _repository(raw: str, match: "re.Match[str]") -> PackageLocator:
    ref = match.group("ref") or None
    return PackageLocator(
        kind=LocatorKind.REPOSITORY,
        raw=raw,
        org=match.group("org"),
        repo=match.group("repo"),
        ref=ref,
    )


def parse_locator(name_or_urlish: str) -> PackageLocator:
    """Parse a name-or-URL string into a ``PackageLocator``.

    Raises:
        InvalidReferenceError: When the text is neither a bare name nor a
            recognized GitHub reference.
    """
    raw = (name_or_urlish or "").strip()
    if not raw:
        raise InvalidReferenceError("Package name or URL must not be empty")

    for pattern in (_GITHUB_URL_PATTERN, _GITHUB_SCP_PATTERN, _GITHUB_SHORT_PATTERN):
        match = pattern.match(raw)
        if match:
            return _repository(raw, match)

    if "://" in raw or "#" in raw:
        raise InvalidReferenceError(f"Unsupported repository reference: {raw}")

    if _BARE_NAME_PATTERN.match(raw):
        return PackageLocator(kind=LocatorKind.NAME, raw=raw, name=raw)

    raise InvalidReferenceError(f"Can not parse package reference: {raw}")


def is_repository_reference(versionish: str) -> bool:
    """True when a dependency's version field actually points at a repository."""
    return "/" in (versionish or "")


def split_fragment(versionish: str) -> Tuple[str, Optional[str]]:
    """Split ``locator#fragment`` into ``(locator, fragment or None)``."""
    urlish, sep, fragment = versionish.partition("#")
    return urlish, (fragment if sep and fragment else None)


def parse_dependency(name: str, versionish: str) -> Tuple[str, str]:
    """Return the ``(name_or_urlish, version)`` to deploy for one dependency entry.

    A dependency pinned to a repository (``"org/repo#^1.0.0"``) is deployed
    from that repository at the fragment; otherwise the declared name is used.
    """
    from .translate import vless  # pylint: disable=import-outside-toplevel

    if is_repository_reference(versionish):
        urlish, fragment = split_fragment(versionish)
        return urlish, vless(fragment or "")
    return name, vless(versionish)
