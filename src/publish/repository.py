"""Client for the remote artifact repository that WebJars are published to.

The repository exposes a Bintray-style REST API: packages hold versions,
versions hold uploaded Maven files, and a version can be signed, published
and synced to Maven Central. Every call surfaces failures as ``PublishError``.
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, Iterable, Optional

import aiohttp

from constants import Constants
from common.errors import HttpError, NotFoundError, PublishError
from common.http_client import HttpClient
from common.logging_utils import extra_context

logger = logging.getLogger(__name__)


def _q(value: str) -> str:
    return urllib.parse.quote(value, safe="")


class RepositoryPublisher:
    """Publishes WebJar packages, versions and files."""

    def __init__(
        self,
        http: HttpClient,
        *,
        user: Optional[str] = None,
        token: Optional[str] = None,
        api_base: str = Constants.PUBLISH_API_BASE,
        subject: str = Constants.PUBLISH_SUBJECT,
        repo: str = Constants.PUBLISH_REPO,
        sonatype_user: Optional[str] = None,
        sonatype_password: Optional[str] = None,
    ):
        self._http = http
        self._auth = aiohttp.BasicAuth(user, token or "") if user else None
        self._api_base = api_base.rstrip("/")
        self.subject = subject
        self.repo = repo
        self._sonatype_user = sonatype_user
        self._sonatype_password = sonatype_password

    async def _call(self, method: str, path: str, action: str, **kwargs: Any) -> bytes:
        url = f"{self._api_base}/{path}"
        try:
            _, _, body = await self._http.request(
                method, url, context="publish", auth=self._auth, **kwargs
            )
        except HttpError as exc:
            logger.error(
                "Publish call failed",
                extra=extra_context(event="publish", action=action, outcome="error", status_code=exc.status),
            )
            raise PublishError(f"{action} failed: {exc}") from exc
        logger.debug("Publish call ok", extra=extra_context(event="publish", action=action, outcome="success"))
        return body

    def _package_path(self, package_name: str) -> str:
        return f"{_q(self.subject)}/{_q(self.repo)}/{_q(package_name)}"

    async def get_or_create_package(
        self,
        package_name: str,
        description: str,
        labels: Iterable[str],
        licenses: Iterable[str],
        vcs_url: Optional[str],
        website_url: Optional[str] = None,
        issue_tracker_url: Optional[str] = None,
        github_repo: Optional[str] = None,
    ) -> None:
        """Create the package unless it already exists."""
        try:
            await self._http.request(
                "GET", f"{self._api_base}/packages/{self._package_path(package_name)}",
                context="publish", auth=self._auth,
            )
            return
        except NotFoundError:
            pass
        except HttpError as exc:
            raise PublishError(f"Looking up package {package_name} failed: {exc}") from exc

        payload: Dict[str, Any] = {
            "name": package_name,
            "desc": description,
            "labels": list(labels),
            "licenses": sorted(licenses),
            "vcs_url": vcs_url or website_url or "",
            "website_url": website_url,
            "issue_tracker_url": issue_tracker_url,
            "github_repo": github_repo,
            "public_download_numbers": True,
        }
        await self._call(
            "POST", f"packages/{_q(self.subject)}/{_q(self.repo)}", "Create package",
            json={k: v for k, v in payload.items() if v is not None},
        )

    async def create_or_overwrite_version(
        self, package_name: str, version: str, description: str, vcs_tag: Optional[str] = None
    ) -> None:
        """Create ``version``, deleting any unpublished leftover first."""
        try:
            await self._http.request(
                "DELETE", f"{self._api_base}/packages/{self._package_path(package_name)}/versions/{_q(version)}",
                context="publish", auth=self._auth,
            )
        except NotFoundError:
            pass
        except HttpError as exc:
            raise PublishError(f"Removing old version {version} failed: {exc}") from exc
        payload = {"name": version, "desc": description}
        if vcs_tag:
            payload["vcs_tag"] = vcs_tag
        await self._call(
            "POST", f"packages/{self._package_path(package_name)}/versions", "Create version", json=payload
        )

    async def upload_maven_artifact(self, package_name: str, path: str, content: bytes) -> None:
        """Upload one file at its Maven repository path."""
        await self._call(
            "PUT", f"maven/{self._package_path(package_name)}/{path}", f"Upload {path}", data=content
        )

    async def sign_version(self, package_name: str, version: str) -> None:
        await self._call(
            "POST", f"gpg/{self._package_path(package_name)}/versions/{_q(version)}", "Sign version"
        )

    async def publish_version(self, package_name: str, version: str) -> None:
        await self._call(
            "POST", f"content/{self._package_path(package_name)}/{_q(version)}/publish", "Publish version"
        )

    async def sync_to_maven_central(self, package_name: str, version: str) -> None:
        """Ask the repository to sync ``version`` to Maven Central; can take minutes."""
        payload = {}
        if self._sonatype_user:
            payload = {"username": self._sonatype_user, "password": self._sonatype_password or ""}
        await self._call(
            "POST",
            f"maven_central_sync/{self._package_path(package_name)}/versions/{_q(version)}",
            "Sync to Maven Central",
            json=payload,
            timeout=Constants.SYNC_TIMEOUT,
        )
