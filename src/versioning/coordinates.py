"""Maven coordinate derivation from package locators."""

from __future__ import annotations

from typing import Union

from constants import Constants, WebJarType
from .models import MavenCoordinate, PackageLocator
from .parser import parse_locator

LocatorLike = Union[str, PackageLocator]


def _as_locator(locator: LocatorLike) -> PackageLocator:
    return locator if isinstance(locator, PackageLocator) else parse_locator(locator)


def resolve_group_id(locator: LocatorLike, webjar_type: WebJarType) -> str:
    """``org.webjars.<type>`` for bare names, ``org.webjars.<type>.<org>`` for repositories.

    Raises:
        InvalidReferenceError: When ``locator`` is a string that can not be parsed.
    """
    parsed = _as_locator(locator)
    base = f"{Constants.GROUP_ID_NAMESPACE}.{webjar_type.value}"
    if parsed.is_repository:
        return f"{base}.{parsed.org.lower()}"  # type: ignore[union-attr]
    return base


def resolve_artifact_id(locator: LocatorLike) -> str:
    """Lowercase repository name, or lowercase bare name.

    Scoped npm names (``@scope/name``) become ``scope__name``.
    """
    parsed = _as_locator(locator)
    if parsed.is_repository:
        return parsed.repo.lower()  # type: ignore[union-attr]
    name = parsed.name or ""
    if name.startswith("@"):
        name = name[1:].replace("/", "__")
    return name.lower()


def resolve_coordinate(locator: LocatorLike, webjar_type: WebJarType, version: str) -> MavenCoordinate:
    """Full coordinate for ``locator`` at ``version``."""
    parsed = _as_locator(locator)
    return MavenCoordinate(
        group_id=resolve_group_id(parsed, webjar_type),
        artifact_id=resolve_artifact_id(parsed),
        version=version,
    )
