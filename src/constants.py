"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    DEPLOY_ERROR = 1
    CONNECTION_ERROR = 2
    INPUT_ERROR = 3


class WebJarType(Enum):
    """Kinds of upstream package that can be deployed as a WebJar.

    Args:
        Enum (string): Tag used on the command line and in group ids.
    """

    NPM = "npm"
    BOWER = "bower"
    BOWER_GITHUB = "bowergithub"

    @classmethod
    def from_string(cls, value: str) -> "WebJarType":
        """Look up a type by its tag, case-insensitively."""
        normalized = (value or "").strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Specified WebJar type '{value}' can not be deployed")


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    GROUP_ID_NAMESPACE = "org.webjars"
    WEBJAR_RESOURCE_PREFIX = "META-INF/resources/webjars"
    MAVEN_META_PREFIX = "META-INF/maven"
    UNBOUNDED_RANGE = "[0,)"

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    REGISTRY_URL_BOWER = "https://registry.bower.io/packages/"
    GITHUB_API_BASE = "https://api.github.com"
    GITHUB_CODELOAD_BASE = "https://codeload.github.com"
    MAVEN_RELEASES_URL = "https://oss.sonatype.org/content/repositories/releases"
    PUBLISH_API_BASE = "https://api.bintray.com"
    PUBLISH_SUBJECT = "webjars"
    PUBLISH_REPO = "maven"

    SUPPORTED_TYPES = [t.value for t in WebJarType]
    NPM_METADATA_FILE = "package.json"
    BOWER_METADATA_FILE = "bower.json"
    NPM_DEFAULT_EXCLUDES = ["node_modules", ".*"]

    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
    ENV_PUBLISH_USER = "WEBJARS_PUBLISH_USER"
    ENV_PUBLISH_TOKEN = "WEBJARS_PUBLISH_TOKEN"
    ENV_SONATYPE_USER = "WEBJARS_SONATYPE_USER"
    ENV_SONATYPE_PASSWORD = "WEBJARS_SONATYPE_PASSWORD"
    ENV_LOG_LEVEL = "WEBJARS_LOG_LEVEL"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    SYNC_TIMEOUT = 600  # Maven Central sync can take minutes
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    USER_AGENT = "webjars-deployer/1.0"
