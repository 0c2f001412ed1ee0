"""npm packages, from the npm registry or straight from a GitHub repository."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from constants import Constants, WebJarType
from common.errors import MetadataNotFoundError
from registry.github import GitHubClient, sort_tags
from registry.npm import NpmRegistryClient, package_info_from_npm
from versioning.coordinates import resolve_artifact_id, resolve_group_id
from versioning.models import PackageInfo
from versioning.parser import is_repository_reference, parse_locator, split_fragment
from versioning.translate import vless
from .base import Deployable

logger = logging.getLogger(__name__)


class NpmDeployable(Deployable):
    """WebJars under ``org.webjars.npm``."""

    webjar_type = WebJarType.NPM
    name = "NPM"
    metadata_file = Constants.NPM_METADATA_FILE
    contents_in_subdir = True

    def __init__(self, npm: NpmRegistryClient, github: GitHubClient):
        super().__init__()
        self._npm = npm
        self._github = github

    async def group_id(self, name_or_urlish: str) -> str:
        return resolve_group_id(name_or_urlish, self.webjar_type)

    async def artifact_id(self, name_or_urlish: str) -> str:
        return resolve_artifact_id(name_or_urlish)

    async def _fetch_info(self, name_or_urlish: str, version: Optional[str]) -> PackageInfo:
        locator = parse_locator(name_or_urlish)
        if not locator.is_repository:
            return package_info_from_npm(await self._npm.version_info(name_or_urlish, version))

        ref = await self._resolve_ref(name_or_urlish, version or locator.ref)
        data = await self._github.json_file(
            locator.org, locator.repo, self.metadata_file, ref  # type: ignore[arg-type]
        )
        info = package_info_from_npm(data)
        if not info.name:
            info.name = locator.repo  # type: ignore[assignment]
        if not info.version:
            if not ref:
                raise MetadataNotFoundError(f"{locator.org_repo} declares no version in {self.metadata_file}")
            info.version = vless(ref)
        info.source_connection_uri = info.source_connection_uri or locator.url
        info.github_org_repo = locator.org_repo
        info.source_ref = ref
        return info

    async def archive(self, name_or_urlish: str, version: str) -> bytes:
        locator = parse_locator(name_or_urlish)
        if locator.is_repository:
            info = await self.info(name_or_urlish, version or None)
            return await self._github.zipball(locator.org, locator.repo, info.source_ref)  # type: ignore[arg-type]
        return await self._npm.tarball(name_or_urlish, version)

    async def excludes(self, name_or_urlish: str, version: str) -> List[str]:
        return list(Constants.NPM_DEFAULT_EXCLUDES)

    async def path_prefix(self, name_or_urlish: str, release_version: str, info: PackageInfo) -> str:
        return f"{await self.artifact_id(name_or_urlish)}/{release_version}/"

    async def versions(self, name_or_urlish: str) -> List[str]:
        locator = parse_locator(name_or_urlish)
        if locator.is_repository:
            return sort_tags(await self._github.tags(locator.org, locator.repo))  # type: ignore[arg-type]
        return await self._npm.versions(name_or_urlish)

    def parse_dep(self, name: str, versionish: str) -> Tuple[str, str]:
        """npm dependencies pinned to a fork keep their registry name; the fragment is the version."""
        if is_repository_reference(versionish):
            _, fragment = split_fragment(versionish)
            return name, vless(fragment or "")
        return name, vless(versionish)
