"""Turns source-connection URIs into browsable URLs for the POM ``<scm>`` block."""
from __future__ import annotations

import re
from typing import Optional

_SCP_LIKE = re.compile(r"^(?:[\w.-]+@)?(?P<host>[\w.-]+\.[a-z]{2,}):(?P<path>[^/].*)$", re.IGNORECASE)
_SHORTHAND = re.compile(r"^(?P<provider>github|gitlab|bitbucket):(?P<path>[^/].*)$", re.IGNORECASE)
_SHORTHAND_HOSTS = {"github": "github.com", "gitlab": "gitlab.com", "bitbucket": "bitbucket.org"}


def normalize_source_url(uri: Optional[str]) -> Optional[str]:
    """Return an ``https://host/path`` URL for a git connection string.

    Handles ``git+https://``, ``git://``, ``ssh://git@``, ``git@host:org/repo.git``,
    ``github:org/repo`` and bare ``org/repo``. Returns None for empty input.
    """
    if not uri:
        return None
    value = uri.strip()
    if not value:
        return None

    shorthand = _SHORTHAND.match(value)
    if shorthand:
        value = f"https://{_SHORTHAND_HOSTS[shorthand.group('provider').lower()]}/{shorthand.group('path')}"
    elif "://" not in value:
        scp = _SCP_LIKE.match(value)
        if scp:
            value = f"https://{scp.group('host')}/{scp.group('path')}"
        elif re.fullmatch(r"[\w.-]+/[\w.-]+", value):
            value = f"https://github.com/{value}"
        else:
            return value

    value = re.sub(r"^git\+", "", value)
    value = re.sub(r"^(?:git|ssh|http)://(?:[\w.-]+@)?", "https://", value)
    value = re.sub(r"^https://[\w.-]+@", "https://", value)
    value = value.split("#", 1)[0]
    if value.endswith(".git"):
        value = value[: -len(".git")]
    return value.rstrip("/")


class SourceLocator:
    """Resolves the source URL shown in generated metadata."""

    async def source_url(self, source_connection_uri: Optional[str]) -> Optional[str]:
        return normalize_source_url(source_connection_uri)
