"""License resolution for WebJar POMs.

Licenses come from the upstream metadata (``license``/``licenses``), or from a
comma-separated override. Identifiers are normalized to SPDX where a common
alias is recognized and paired with a well known URL.
"""
from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional

from common.errors import MetadataNotFoundError
from versioning.models import PackageInfo

logger = logging.getLogger(__name__)

_ALIASES = {
    "mit license": "MIT",
    "the mit license": "MIT",
    "apache 2": "Apache-2.0",
    "apache 2.0": "Apache-2.0",
    "apache-2": "Apache-2.0",
    "apache license 2.0": "Apache-2.0",
    "apache license, version 2.0": "Apache-2.0",
    "apache2": "Apache-2.0",
    "bsd": "BSD-2-Clause",
    "new bsd": "BSD-3-Clause",
    "bsd 3-clause": "BSD-3-Clause",
    "gpl": "GPL-3.0",
    "lgpl": "LGPL-3.0",
    "wtfpl": "WTFPL",
    "isc license": "ISC",
}

_KNOWN_URLS = {
    "MIT": "https://opensource.org/licenses/MIT",
    "Apache-2.0": "https://www.apache.org/licenses/LICENSE-2.0",
    "BSD-2-Clause": "https://opensource.org/licenses/BSD-2-Clause",
    "BSD-3-Clause": "https://opensource.org/licenses/BSD-3-Clause",
    "ISC": "https://opensource.org/licenses/ISC",
    "MPL-2.0": "https://www.mozilla.org/en-US/MPL/2.0/",
    "GPL-2.0": "https://www.gnu.org/licenses/old-licenses/gpl-2.0.html",
    "GPL-3.0": "https://www.gnu.org/licenses/gpl-3.0.html",
    "LGPL-2.1": "https://www.gnu.org/licenses/old-licenses/lgpl-2.1.html",
    "LGPL-3.0": "https://www.gnu.org/licenses/lgpl-3.0.html",
    "EPL-1.0": "https://www.eclipse.org/legal/epl-v10.html",
    "CC0-1.0": "https://creativecommons.org/publicdomain/zero/1.0/",
    "Unlicense": "https://unlicense.org/",
    "WTFPL": "http://www.wtfpl.net/about/",
}

_SPDX_SPLIT = re.compile(r"\s+(?:OR|AND)\s+|[()]")


def normalize_license(name: str) -> str:
    """Map common license spellings onto SPDX identifiers."""
    cleaned = name.strip()
    return _ALIASES.get(cleaned.lower(), cleaned)


def split_licenses(values: Iterable[str]) -> List[str]:
    """Expand SPDX expressions and comma lists into individual identifiers."""
    found: List[str] = []
    for value in values:
        for part in _SPDX_SPLIT.split(value):
            for item in part.split(","):
                normalized = normalize_license(item)
                if normalized and normalized not in found:
                    found.append(normalized)
    return found


def default_urls(licenses: Iterable[str]) -> Dict[str, Optional[str]]:
    """Pair each license with its well known URL, or the SPDX page for other SPDX ids."""
    result: Dict[str, Optional[str]] = {}
    for name in licenses:
        if name in _KNOWN_URLS:
            result[name] = _KNOWN_URLS[name]
        elif re.fullmatch(r"[A-Za-z0-9.+-]+", name):
            result[name] = f"https://spdx.org/licenses/{name}.html"
        else:
            result[name] = None
    return result


class LicenseDetector:
    """Resolves the license map written into the POM."""

    async def resolve_licenses(
        self, info: PackageInfo, version: str, override: Optional[str] = None
    ) -> Dict[str, Optional[str]]:
        """License name to URL for ``info`` at ``version``.

        Raises:
            MetadataNotFoundError: If the metadata declares no license and no override is given.
        """
        if override:
            return default_urls(split_licenses([override]))
        licenses = split_licenses(info.licenses)
        if not licenses:
            raise MetadataNotFoundError(
                f"No license found for {info.name} {version}; specify one with a license override"
            )
        logger.debug("Licenses for %s %s: %s", info.name, version, licenses)
        return default_urls(licenses)
