"""Data models for package identity, coordinates and metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class LocatorKind(Enum):
    """How a package was referenced."""
    NAME = "name"
    REPOSITORY = "repository"


@dataclass(frozen=True)
class PackageLocator:
    """A bare registry name or a GitHub repository reference.

    ``org`` and ``repo`` keep the casing they were written with; coordinate
    derivation lowercases them.
    """
    kind: LocatorKind
    raw: str
    name: Optional[str] = None
    org: Optional[str] = None
    repo: Optional[str] = None
    ref: Optional[str] = None  # text after '#', if any

    @property
    def is_repository(self) -> bool:
        return self.kind == LocatorKind.REPOSITORY

    @property
    def org_repo(self) -> Optional[str]:
        if not self.is_repository:
            return None
        return f"{self.org}/{self.repo}"

    @property
    def url(self) -> Optional[str]:
        if not self.is_repository:
            return None
        return f"https://github.com/{self.org}/{self.repo}"


@dataclass(frozen=True)
class MavenCoordinate:
    """Maven ``groupId:artifactId:version``."""
    group_id: str
    artifact_id: str
    version: str

    @property
    def base_dir(self) -> str:
        """Repository-relative directory holding this version's files."""
        return f"{self.group_id.replace('.', '/')}/{self.artifact_id}/{self.version}"

    @property
    def package_name(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    def file_path(self, suffix: str) -> str:
        """Path of an artifact file, e.g. ``file_path('.pom')`` or ``file_path('-sources.jar')``."""
        return f"{self.base_dir}/{self.artifact_id}-{self.version}{suffix}"

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


@dataclass
class PackageInfo:
    """Upstream package metadata normalized across ecosystems."""
    name: str
    version: str
    source_connection_uri: Optional[str] = None
    homepage_url: Optional[str] = None
    issues_url: Optional[str] = None
    description: Optional[str] = None
    licenses: List[str] = field(default_factory=list)
    dependencies: Dict[str, str] = field(default_factory=dict)
    optional_dependencies: Dict[str, str] = field(default_factory=dict)
    ignore: List[str] = field(default_factory=list)
    github_org_repo: Optional[str] = None
    source_ref: Optional[str] = None  # git ref the metadata and archive are read from
