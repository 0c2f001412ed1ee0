"""NPM registry client: packuments, version documents and tarballs."""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

import semantic_version

from constants import Constants
from common.errors import ArchiveFetchError, HttpError, MetadataNotFoundError, NotFoundError
from common.http_client import HttpClient
from common.logging_utils import extra_context
from versioning.models import PackageInfo
from versioning.translate import vless

logger = logging.getLogger(__name__)


def _parse_repository_field(version_info: dict) -> Tuple[Optional[str], Optional[str]]:
    """Parse repository field from version info, handling string or object formats.

    Args:
        version_info: Version dictionary from packument

    Returns:
        Tuple of (candidate_url, directory) where directory may be None
    """
    repo = version_info.get("repository")
    if not repo:
        return None, None

    if isinstance(repo, str):
        return repo, None
    if isinstance(repo, dict):
        return repo.get("url"), repo.get("directory")

    return None, None


def _extract_bugs_url(version_info: dict) -> Optional[str]:
    bugs = version_info.get("bugs")
    if isinstance(bugs, str):
        return bugs
    if isinstance(bugs, dict):
        return bugs.get("url")
    return None


def _extract_licenses(version_info: dict) -> List[str]:
    """Collect license identifiers from ``license`` and the legacy ``licenses`` list."""
    found: List[str] = []
    raw = version_info.get("license")
    if isinstance(raw, dict):
        raw = raw.get("type")
    if isinstance(raw, str) and raw.strip():
        found.append(raw.strip())
    for item in version_info.get("licenses") or []:
        value = item.get("type") if isinstance(item, dict) else item
        if isinstance(value, str) and value.strip() and value.strip() not in found:
            found.append(value.strip())
    return found


def package_info_from_npm(version_info: Dict[str, Any]) -> PackageInfo:
    """Build a ``PackageInfo`` from an npm version document (or package.json)."""
    repo_url, _ = _parse_repository_field(version_info)
    return PackageInfo(
        name=version_info.get("name", ""),
        version=vless(str(version_info.get("version", ""))),
        source_connection_uri=repo_url,
        homepage_url=version_info.get("homepage"),
        issues_url=_extract_bugs_url(version_info),
        description=version_info.get("description"),
        licenses=_extract_licenses(version_info),
        dependencies=dict(version_info.get("dependencies") or {}),
        optional_dependencies=dict(version_info.get("optionalDependencies") or {}),
    )


def _sorted_versions(versions: List[str]) -> List[semantic_version.Version]:
    parsed = []
    for v in versions:
        try:
            parsed.append(semantic_version.Version(v))
        except ValueError:
            continue  # Skip invalid versions
    parsed.sort(reverse=True)
    return parsed


class NpmRegistryClient:
    """Read-only access to the npm registry."""

    def __init__(self, http: HttpClient, base_url: str = Constants.REGISTRY_URL_NPM):
        self._http = http
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"

    def _package_url(self, name: str) -> str:
        return self._base_url + urllib.parse.quote(name, safe="@")

    async def packument(self, name: str) -> Dict[str, Any]:
        """Fetch the full packument for ``name``.

        Raises:
            MetadataNotFoundError: If the package does not exist or the registry fails.
        """
        try:
            return await self._http.get_json(self._package_url(name), context="npm")
        except NotFoundError as exc:
            raise MetadataNotFoundError(f"npm package '{name}' does not exist") from exc
        except HttpError as exc:
            raise MetadataNotFoundError(f"Could not fetch npm metadata for '{name}': {exc}") from exc

    async def versions(self, name: str) -> List[str]:
        """All published versions, newest first."""
        packument = await self.packument(name)
        return [str(v) for v in _sorted_versions(list((packument.get("versions") or {}).keys()))]

    async def version_info(self, name: str, version: Optional[str] = None) -> Dict[str, Any]:
        """Version document for an exact version, a dist-tag or a semver range.

        Without ``version`` the ``latest`` dist-tag is used.
        """
        packument = await self.packument(name)
        versions: Dict[str, Any] = packument.get("versions") or {}
        dist_tags: Dict[str, str] = packument.get("dist-tags") or {}
        wanted = vless(version or "latest")

        if wanted in versions:
            return versions[wanted]
        if wanted in dist_tags and dist_tags[wanted] in versions:
            return versions[dist_tags[wanted]]

        try:
            spec = semantic_version.NpmSpec(wanted)
        except ValueError as exc:
            raise MetadataNotFoundError(f"npm package '{name}' has no version '{version}'") from exc
        for candidate in _sorted_versions(list(versions.keys())):
            if spec.match(candidate):
                logger.debug(
                    "Resolved npm range",
                    extra=extra_context(event="resolve", component="npm", target=name,
                                        spec=wanted, resolved=str(candidate)),
                )
                return versions[str(candidate)]
        raise MetadataNotFoundError(f"npm package '{name}' has no version matching '{version}'")

    async def tarball(self, name: str, version: str) -> bytes:
        """Download the published tarball of ``name`` at ``version``.

        Raises:
            ArchiveFetchError: If the tarball is missing or the download fails.
        """
        info = await self.version_info(name, version)
        url = (info.get("dist") or {}).get("tarball")
        if not url:
            raise ArchiveFetchError(f"npm package '{name}@{version}' has no tarball")
        try:
            return await self._http.get_bytes(url, context="npm")
        except HttpError as exc:
            raise ArchiveFetchError(f"Could not download {name}@{version}: {exc}") from exc
