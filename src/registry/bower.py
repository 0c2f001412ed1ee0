"""Bower registry client: resolves a registered package name to its repository URL."""

from __future__ import annotations

import logging
import urllib.parse

from constants import Constants
from common.errors import HttpError, MetadataNotFoundError, NotFoundError
from common.http_client import HttpClient

logger = logging.getLogger(__name__)


class BowerRegistryClient:
    """Lookup-only client for the Bower registry."""

    def __init__(self, http: HttpClient, base_url: str = Constants.REGISTRY_URL_BOWER):
        self._http = http
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"
        self._cache: dict = {}

    async def lookup(self, name: str) -> str:
        """Return the repository URL registered for ``name``.

        Raises:
            MetadataNotFoundError: If the name is not registered.
        """
        key = name.lower()
        if key in self._cache:
            return self._cache[key]
        url = self._base_url + urllib.parse.quote(name)
        try:
            data = await self._http.get_json(url, context="bower")
        except NotFoundError as exc:
            raise MetadataNotFoundError(f"Bower package '{name}' is not registered") from exc
        except HttpError as exc:
            raise MetadataNotFoundError(f"Could not look up Bower package '{name}': {exc}") from exc

        repo_url = data.get("url") if isinstance(data, dict) else None
        if not repo_url:
            raise MetadataNotFoundError(f"Bower package '{name}' has no repository URL")
        logger.debug("Bower package %s resolved to %s", name, repo_url)
        self._cache[key] = repo_url
        return repo_url
