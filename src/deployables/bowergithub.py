"""Bower packages grouped by their GitHub organization."""
from __future__ import annotations

from constants import WebJarType
from versioning.coordinates import resolve_artifact_id, resolve_group_id
from versioning.models import PackageInfo
from .bower import BowerDeployable


class BowerGitHubDeployable(BowerDeployable):
    """WebJars under ``org.webjars.bowergithub.<org>``.

    Bare Bower names are resolved to their repository first, so ``jQuery`` and
    ``jquery/jquery`` end up with the same coordinates. Files are served from
    ``<name>/`` using the name declared in bower.json, without a version.
    """

    webjar_type = WebJarType.BOWER_GITHUB
    name = "BowerGitHub"

    async def group_id(self, name_or_urlish: str) -> str:
        return resolve_group_id(await self._repository(name_or_urlish), self.webjar_type)

    async def artifact_id(self, name_or_urlish: str) -> str:
        return resolve_artifact_id(name_or_urlish)

    async def path_prefix(self, name_or_urlish: str, release_version: str, info: PackageInfo) -> str:
        return f"{info.name}/"
