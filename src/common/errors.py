"""Exception taxonomy for WebJar deployment."""

from __future__ import annotations

from typing import Optional


class DeployError(Exception):
    """Base class for every failure a deploy can surface."""


class InvalidReferenceError(DeployError):
    """A package locator or version could not be parsed."""


class AlreadyDeployedError(DeployError):
    """The coordinate already exists in the releases repository."""

    def __init__(self, group_id: str, artifact_id: str, version: str):
        super().__init__(f"WebJar {group_id} {artifact_id} {version} has already been deployed")
        self.group_id = group_id
        self.artifact_id = artifact_id
        self.version = version


class MetadataNotFoundError(DeployError):
    """Package metadata could not be found upstream."""


class ArchiveFetchError(DeployError):
    """The upstream source archive could not be fetched or read."""


class PublishError(DeployError):
    """A remote call to the publishing repository failed."""


class DependencyResolutionError(DeployError):
    """A single dependency could not be resolved; never fatal to a parent deploy."""


class ConfigError(Exception):
    """The configuration file is unreadable or malformed."""


class HttpError(Exception):
    """Non-successful HTTP response."""

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url


class NotFoundError(HttpError):
    """HTTP 404."""
