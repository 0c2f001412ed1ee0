"""YAML configuration and environment overrides for runtime tunables.

A config file either holds a ``deploy:`` section or is the section itself:

    deploy:
      releases_url: https://repo.example.com/releases
      publish:
        api_base: https://publish.example.com
        subject: webjars
        repo: maven
      registries:
        npm: https://registry.npmjs.org/
        bower: https://registry.bower.io/packages/
        github_api: https://api.github.com
      http:
        timeout: 30
        retries: 3

Credentials only come from the environment.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from common.errors import ConfigError

logger = logging.getLogger(__name__)

# (section, key) -> Constants attribute
_OVERRIDES = {
    (None, "releases_url"): ("MAVEN_RELEASES_URL", str),
    (None, "group_id_namespace"): ("GROUP_ID_NAMESPACE", str),
    ("publish", "api_base"): ("PUBLISH_API_BASE", str),
    ("publish", "subject"): ("PUBLISH_SUBJECT", str),
    ("publish", "repo"): ("PUBLISH_REPO", str),
    ("registries", "npm"): ("REGISTRY_URL_NPM", str),
    ("registries", "bower"): ("REGISTRY_URL_BOWER", str),
    ("registries", "github_api"): ("GITHUB_API_BASE", str),
    ("http", "timeout"): ("REQUEST_TIMEOUT", int),
    ("http", "sync_timeout"): ("SYNC_TIMEOUT", int),
    ("http", "retries"): ("HTTP_RETRY_MAX", int),
    ("http", "retry_delay"): ("HTTP_RETRY_BASE_DELAY_SEC", float),
}


def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    """Load the ``deploy`` section of a YAML config file.

    Args:
        config_path: Path to the YAML file, or None.

    Returns:
        The configuration mapping; empty when no file is given or it does not exist.

    Raises:
        ConfigError: If the file can not be read or is not a YAML mapping.
    """
    if not config_path:
        return {}
    if not os.path.exists(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must be a mapping")
    section = data.get("deploy", data)
    if not isinstance(section, dict):
        raise ConfigError(f"The deploy section of {config_path} must be a mapping")
    return section


def apply_config_overrides(config: Dict[str, Any]) -> None:
    """Apply config values onto ``Constants``.

    Raises:
        ConfigError: If a value has the wrong type.
    """
    for (section, key), (attribute, cast) in _OVERRIDES.items():
        source = config if section is None else config.get(section) or {}
        if not isinstance(source, dict) or source.get(key) is None:
            continue
        try:
            setattr(Constants, attribute, cast(source[key]))
        except (TypeError, ValueError) as e:
            name = key if section is None else f"{section}.{key}"
            raise ConfigError(f"Invalid value for {name}: {source[key]!r}") from e
        logger.debug("Config override %s", attribute)


def get_env(name: str) -> Optional[str]:
    """Stripped environment variable, None when unset or blank."""
    value = os.environ.get(name)
    if value and value.strip():
        return value.strip()
    return None


def get_github_token() -> Optional[str]:
    return get_env(Constants.ENV_GITHUB_TOKEN)


def get_publish_credentials() -> Dict[str, Optional[str]]:
    """Credentials for the publishing repository and its Maven Central sync."""
    return {
        "user": get_env(Constants.ENV_PUBLISH_USER),
        "token": get_env(Constants.ENV_PUBLISH_TOKEN),
        "sonatype_user": get_env(Constants.ENV_SONATYPE_USER),
        "sonatype_password": get_env(Constants.ENV_SONATYPE_PASSWORD),
    }
