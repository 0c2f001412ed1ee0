"""Maven repository client used to check whether a WebJar was already released."""
from __future__ import annotations

import logging
from typing import Optional

from constants import Constants
from common.http_client import HttpClient
from versioning.models import MavenCoordinate

logger = logging.getLogger(__name__)


class MavenCentralClient:
    """Reads POMs from a Maven 2 layout repository."""

    def __init__(self, http: HttpClient, releases_url: str = Constants.MAVEN_RELEASES_URL):
        self._http = http
        self._releases_url = releases_url.rstrip("/")

    async def fetch_pom(self, coordinate: MavenCoordinate, repo_url: Optional[str] = None) -> str:
        """Return the POM text for ``coordinate``.

        Raises:
            NotFoundError: If the coordinate has not been published.
            HttpError: For any other failure.
        """
        base = (repo_url or self._releases_url).rstrip("/")
        url = f"{base}/{coordinate.file_path('.pom')}"
        body = await self._http.get_bytes(url, context="maven")
        return body.decode("utf-8", errors="replace")
