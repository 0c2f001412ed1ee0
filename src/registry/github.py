"""GitHub client: metadata files, source archives and tags of a repository."""

from __future__ import annotations

import json
import logging
import urllib.parse
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from packaging import version as pkg_version

from constants import Constants
from common.errors import ArchiveFetchError, HttpError, MetadataNotFoundError, NotFoundError
from common.http_client import HttpClient
from versioning.translate import vless, vwith

logger = logging.getLogger(__name__)

T = TypeVar("T")


def ref_candidates(version: Optional[str]) -> List[Optional[str]]:
    """Git refs worth trying for a version: as given, then with/without the ``v`` prefix."""
    if not version or version in ("*", "latest"):
        return [None]
    candidates = [version]
    alternate = vless(version) if version.startswith("v") else vwith(version)
    if alternate != version:
        candidates.append(alternate)
    return candidates


def sort_tags(tags: Iterable[str]) -> List[str]:
    """Version-like tags newest first, without the ``v`` prefix; other tags are dropped."""
    parsed = {}
    for tag in tags:
        try:
            parsed[vless(tag)] = pkg_version.Version(vless(tag))
        except pkg_version.InvalidVersion:
            continue
    return sorted(parsed, key=lambda v: parsed[v], reverse=True)


class GitHubClient:
    """Minimal GitHub REST client for the calls a deploy needs."""

    def __init__(
        self,
        http: HttpClient,
        token: Optional[str] = None,
        api_base: str = Constants.GITHUB_API_BASE,
    ):
        self._http = http
        self._api_base = api_base.rstrip("/")
        self._headers: Dict[str, str] = {"X-GitHub-Api-Version": "2022-11-28"}
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    def _repo_url(self, org: str, repo: str) -> str:
        return f"{self._api_base}/repos/{urllib.parse.quote(org)}/{urllib.parse.quote(repo)}"

    async def _first_ref(
        self, version: Optional[str], call: Callable[[Optional[str]], Awaitable[T]]
    ) -> T:
        last: Optional[NotFoundError] = None
        for ref in ref_candidates(version):
            try:
                return await call(ref)
            except NotFoundError as exc:
                last = exc
        assert last is not None
        raise last

    async def file_contents(self, org: str, repo: str, path: str, version: Optional[str] = None) -> bytes:
        """Raw contents of ``path`` at the tag for ``version`` (default branch when None).

        Raises:
            NotFoundError: If neither the file nor the tag exists.
        """
        async def fetch(ref: Optional[str]) -> bytes:
            url = f"{self._repo_url(org, repo)}/contents/{path}"
            params = {"ref": ref} if ref else None
            headers = dict(self._headers, Accept="application/vnd.github.raw")
            return await self._http.get_bytes(url, context="github", headers=headers, params=params)

        return await self._first_ref(version, fetch)

    async def json_file(self, org: str, repo: str, path: str, version: Optional[str] = None) -> Dict[str, Any]:
        """``file_contents`` decoded as a JSON object.

        Raises:
            MetadataNotFoundError: If the file is missing or not a JSON object.
        """
        try:
            raw = await self.file_contents(org, repo, path, version)
        except NotFoundError as exc:
            raise MetadataNotFoundError(f"{org}/{repo} has no {path} at '{version}'") from exc
        except HttpError as exc:
            raise MetadataNotFoundError(f"Could not fetch {path} from {org}/{repo}: {exc}") from exc
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MetadataNotFoundError(f"{path} in {org}/{repo} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise MetadataNotFoundError(f"{path} in {org}/{repo} is not a JSON object")
        return data

    async def zipball(self, org: str, repo: str, version: Optional[str] = None) -> bytes:
        """Source zip of the repository at the tag for ``version``.

        Raises:
            ArchiveFetchError: If the archive can not be downloaded.
        """
        async def fetch(ref: Optional[str]) -> bytes:
            url = f"{self._repo_url(org, repo)}/zipball"
            if ref:
                url = f"{url}/{urllib.parse.quote(ref)}"
            return await self._http.get_bytes(url, context="github", headers=self._headers)

        try:
            return await self._first_ref(version, fetch)
        except HttpError as exc:
            raise ArchiveFetchError(f"Could not download {org}/{repo} at '{version}': {exc}") from exc

    async def tags(self, org: str, repo: str) -> List[str]:
        """Tag names of the repository (first page, up to 100)."""
        url = f"{self._repo_url(org, repo)}/tags"
        try:
            data = await self._http.get_json(
                url, context="github", headers=self._headers, params={"per_page": "100"}
            )
        except NotFoundError as exc:
            raise MetadataNotFoundError(f"GitHub repository {org}/{repo} does not exist") from exc
        return [item["name"] for item in data or [] if isinstance(item, dict) and item.get("name")]
