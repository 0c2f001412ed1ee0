"""Common interface of the deployable package kinds."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Set, Tuple

from constants import WebJarType
from common.errors import InvalidReferenceError, MetadataNotFoundError
from deploy.graph import DependencyGraph, OnError, resolve_dependency_graph
from versioning.models import MavenCoordinate, PackageInfo
from versioning.parser import parse_dependency
from versioning.translate import is_exact_version, match_version, to_maven_range, vless

MavenDependency = Tuple[str, str, str]


class Deployable(ABC):
    """A package kind that can be turned into a WebJar.

    Subclasses provide lookup, metadata, archive and layout rules; the
    version and dependency translation is shared.
    """

    webjar_type: WebJarType
    name: str
    metadata_file: str
    contents_in_subdir: bool = True

    def __init__(self) -> None:
        self._info_cache: Dict[Tuple[str, Optional[str]], PackageInfo] = {}

    @abstractmethod
    async def group_id(self, name_or_urlish: str) -> str:
        """Maven groupId for the package."""

    @abstractmethod
    async def artifact_id(self, name_or_urlish: str) -> str:
        """Maven artifactId for the package."""

    @abstractmethod
    async def _fetch_info(self, name_or_urlish: str, version: Optional[str]) -> PackageInfo:
        """Fetch upstream metadata; results are cached by ``info``."""

    @abstractmethod
    async def archive(self, name_or_urlish: str, version: str) -> bytes:
        """Upstream source archive bytes."""

    @abstractmethod
    async def excludes(self, name_or_urlish: str, version: str) -> List[str]:
        """Glob patterns to leave out of the WebJar."""

    @abstractmethod
    async def path_prefix(self, name_or_urlish: str, release_version: str, info: PackageInfo) -> str:
        """Prefix below ``META-INF/resources/webjars/``, ending with ``/``."""

    @abstractmethod
    async def versions(self, name_or_urlish: str) -> List[str]:
        """Known upstream versions, newest first."""

    async def info(
        self, name_or_urlish: str, version: Optional[str] = None, source_uri: Optional[str] = None
    ) -> PackageInfo:
        """Upstream metadata, with an optional source URI override."""
        key = (name_or_urlish, version)
        if key not in self._info_cache:
            self._info_cache[key] = await self._fetch_info(name_or_urlish, version)
        info = self._info_cache[key]
        if source_uri:
            return replace(info, source_connection_uri=source_uri)
        return info

    async def coordinate(self, name_or_urlish: str, version: str) -> MavenCoordinate:
        return MavenCoordinate(
            group_id=await self.group_id(name_or_urlish),
            artifact_id=await self.artifact_id(name_or_urlish),
            version=version,
        )

    async def _resolve_ref(self, name_or_urlish: str, ref: Optional[str]) -> Optional[str]:
        """Git ref to read a repository at for a requested version.

        Exact versions, branches and commits are used as given; ranges are
        matched against ``versions()`` and the newest matching tag wins. None
        means the default branch.

        Raises:
            MetadataNotFoundError: If no tag satisfies the range.
        """
        if not ref or ref.strip() in ("*", "latest"):
            return None
        if is_exact_version(ref):
            return ref
        try:
            tag = match_version(ref, await self.versions(name_or_urlish))
        except InvalidReferenceError:
            return ref
        if tag is None:
            raise MetadataNotFoundError(f"{name_or_urlish} has no version matching '{ref}'")
        return tag

    def release_version(self, override: Optional[str], info: PackageInfo) -> str:
        return vless(override or info.version)

    def parse_dep(self, name: str, versionish: str) -> Tuple[str, str]:
        """``(name_or_urlish, version)`` a declared dependency is deployed as."""
        return parse_dependency(name, versionish)

    async def to_maven(self, name: str, versionish: str) -> MavenDependency:
        """Translate one declared dependency into a Maven ``(group, artifact, range)`` triple.

        Raises:
            InvalidReferenceError: If the dependency name or range can not be translated.
        """
        key, _ = self.parse_dep(name, versionish)
        return await self.group_id(key), await self.artifact_id(key), to_maven_range(versionish)

    async def maven_dependencies(self, dependencies: Mapping[str, str]) -> Set[MavenDependency]:
        return {await self.to_maven(name, versionish) for name, versionish in dependencies.items()}

    async def _child_dependencies(self, name_or_urlish: str, version: str) -> Mapping[str, str]:
        child = await self.info(name_or_urlish, version or None)
        return child.dependencies

    async def dep_graph(self, info: PackageInfo, on_error: Optional[OnError] = None) -> DependencyGraph:
        """Transitive dependencies of ``info`` keyed the way they would be deployed."""
        return await resolve_dependency_graph(
            info.dependencies, self._child_dependencies, self.parse_dep, on_error
        )
