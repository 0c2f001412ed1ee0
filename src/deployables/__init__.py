"""Deployable package kinds, selected by their WebJar type tag."""
from __future__ import annotations

from typing import Dict, Union

from constants import WebJarType
from registry.bower import BowerRegistryClient
from registry.github import GitHubClient
from registry.npm import NpmRegistryClient
from .base import Deployable
from .bower import BowerDeployable
from .bowergithub import BowerGitHubDeployable
from .npm import NpmDeployable

__all__ = [
    "Deployable",
    "NpmDeployable",
    "BowerDeployable",
    "BowerGitHubDeployable",
    "create_deployables",
    "get_deployable",
]


def create_deployables(
    npm: NpmRegistryClient, bower: BowerRegistryClient, github: GitHubClient
) -> Dict[WebJarType, Deployable]:
    """One deployable per supported type, sharing the given clients."""
    return {
        WebJarType.NPM: NpmDeployable(npm, github),
        WebJarType.BOWER: BowerDeployable(bower, github),
        WebJarType.BOWER_GITHUB: BowerGitHubDeployable(bower, github),
    }


def get_deployable(
    kind: Union[str, WebJarType],
    npm: NpmRegistryClient,
    bower: BowerRegistryClient,
    github: GitHubClient,
) -> Deployable:
    """Deployable for a type tag such as ``"npm"`` or ``"bowergithub"``.

    Raises:
        ValueError: If the tag is not a supported WebJar type.
    """
    webjar_type = kind if isinstance(kind, WebJarType) else WebJarType.from_string(kind)
    return create_deployables(npm, bower, github)[webjar_type]
