"""Bower packages: registered names resolve to GitHub repositories holding a bower.json."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from constants import Constants, WebJarType
from common.errors import InvalidReferenceError, MetadataNotFoundError
from common.logging_utils import extra_context
from registry.bower import BowerRegistryClient
from registry.github import GitHubClient, sort_tags
from versioning.coordinates import resolve_artifact_id, resolve_group_id
from versioning.models import PackageInfo, PackageLocator
from versioning.parser import parse_locator
from versioning.translate import vless
from .base import Deployable

logger = logging.getLogger(__name__)


def _bower_licenses(data: Dict[str, Any]) -> List[str]:
    raw = data.get("license") or data.get("licenses") or []
    items = raw if isinstance(raw, list) else [raw]
    found: List[str] = []
    for item in items:
        value = item.get("type") if isinstance(item, dict) else item
        if isinstance(value, str) and value.strip() and value.strip() not in found:
            found.append(value.strip())
    return found


class BowerDeployable(Deployable):
    """Classic Bower WebJars under ``org.webjars.bower``."""

    webjar_type = WebJarType.BOWER
    name = "Bower"
    metadata_file = Constants.BOWER_METADATA_FILE
    contents_in_subdir = True

    def __init__(self, bower: BowerRegistryClient, github: GitHubClient):
        super().__init__()
        self._bower = bower
        self._github = github

    async def _repository(self, name_or_urlish: str) -> PackageLocator:
        """GitHub repository behind a bare Bower name or a repository reference.

        Raises:
            InvalidReferenceError: If the package does not live on GitHub.
        """
        locator = parse_locator(name_or_urlish)
        if locator.is_repository:
            return locator
        url = await self._bower.lookup(name_or_urlish)
        try:
            return parse_locator(url)
        except InvalidReferenceError as exc:
            raise InvalidReferenceError(f"Bower package '{name_or_urlish}' is not hosted on GitHub: {url}") from exc

    async def group_id(self, name_or_urlish: str) -> str:
        return resolve_group_id(name_or_urlish, self.webjar_type)

    async def artifact_id(self, name_or_urlish: str) -> str:
        return resolve_artifact_id(name_or_urlish)

    async def _bower_json(self, locator: PackageLocator, ref: Optional[str]) -> Dict[str, Any]:
        try:
            return await self._github.json_file(
                locator.org, locator.repo, self.metadata_file, ref  # type: ignore[arg-type]
            )
        except MetadataNotFoundError:
            logger.debug(
                "No bower.json, using repository defaults",
                extra=extra_context(event="info", component="bower", target=locator.org_repo, outcome="fallback"),
            )
            return {}

    async def _fetch_info(self, name_or_urlish: str, version: Optional[str]) -> PackageInfo:
        requested = parse_locator(name_or_urlish)
        locator = await self._repository(name_or_urlish)
        ref = await self._resolve_ref(name_or_urlish, version or requested.ref)
        data = await self._bower_json(locator, ref)

        if ref is None:
            # default branch: label it with a tag when one matches
            declared = vless(str(data.get("version") or ""))
            tags = await self.versions(name_or_urlish)
            tagged = [tag for tag in tags if vless(tag) == declared]
            if declared and tagged:
                ref = tagged[0]
            elif not declared and tags:
                ref = tags[0]
                data = await self._bower_json(locator, ref)

        if ref:
            release = vless(ref)
        elif data.get("version"):
            release = vless(str(data["version"]))
        else:
            raise MetadataNotFoundError(f"{locator.org_repo} has no version tags")

        return PackageInfo(
            name=data.get("name") or requested.name or locator.repo,  # type: ignore[arg-type]
            version=release,
            source_connection_uri=f"{locator.url}.git",
            homepage_url=data.get("homepage") or locator.url,
            issues_url=f"{locator.url}/issues",
            description=data.get("description"),
            licenses=_bower_licenses(data),
            dependencies=dict(data.get("dependencies") or {}),
            ignore=list(data.get("ignore") or []),
            github_org_repo=locator.org_repo,
            source_ref=ref,
        )

    async def archive(self, name_or_urlish: str, version: str) -> bytes:
        locator = await self._repository(name_or_urlish)
        info = await self.info(name_or_urlish, version or None)
        return await self._github.zipball(locator.org, locator.repo, info.source_ref)  # type: ignore[arg-type]

    async def excludes(self, name_or_urlish: str, version: str) -> List[str]:
        info = await self.info(name_or_urlish, version or None)
        return list(info.ignore)

    async def path_prefix(self, name_or_urlish: str, release_version: str, info: PackageInfo) -> str:
        return f"{await self.artifact_id(name_or_urlish)}/{release_version}/"

    async def versions(self, name_or_urlish: str) -> List[str]:
        locator = await self._repository(name_or_urlish)
        return sort_tags(await self._github.tags(locator.org, locator.repo))  # type: ignore[arg-type]
