"""deploywebjar - republish npm and Bower packages as WebJars.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import os
import sys

from constants import ExitCodes, Constants
from common.errors import ConfigError, DeployError, HttpError, InvalidReferenceError
from common.http_client import HttpClient
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import apply_config_overrides, get_github_token, get_publish_credentials, load_config
from deploy.pipeline import DeployWebJar
from deployables import get_deployable
from publish.repository import RepositoryPublisher
from registry.bower import BowerRegistryClient
from registry.github import GitHubClient
from registry.maven import MavenCentralClient
from registry.npm import NpmRegistryClient

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    """Configure logging from the CLI flags; log records go to stderr, progress to stdout."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()
    if getattr(args, "LOG_FILE", None):
        handler = logging.FileHandler(args.LOG_FILE, encoding="utf-8")
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        logging.getLogger().addHandler(handler)


def _print_line(line: str) -> None:
    print(line, flush=True)


def _write_jar(path: str, jar: bytes) -> None:
    with open(path, "wb") as f:
        f.write(jar)


async def run(args) -> int:
    """Run one deploy (or a create-only build) and return the exit code."""
    credentials = get_publish_credentials()
    if not args.CREATE_ONLY and not (credentials["user"] and credentials["token"]):
        logger.error(
            "Publishing needs %s and %s to be set",
            Constants.ENV_PUBLISH_USER,
            Constants.ENV_PUBLISH_TOKEN,
        )
        return ExitCodes.INPUT_ERROR.value

    async with HttpClient(
        timeout=Constants.REQUEST_TIMEOUT,
        retries=Constants.HTTP_RETRY_MAX,
        retry_delay=Constants.HTTP_RETRY_BASE_DELAY_SEC,
    ) as http:
        github = GitHubClient(http, get_github_token(), Constants.GITHUB_API_BASE)
        npm = NpmRegistryClient(http, Constants.REGISTRY_URL_NPM)
        bower = BowerRegistryClient(http, Constants.REGISTRY_URL_BOWER)
        deployable = get_deployable(args.webjar_type, npm, bower, github)
        publisher = RepositoryPublisher(
            http,
            user=credentials["user"],
            token=credentials["token"],
            api_base=Constants.PUBLISH_API_BASE,
            subject=Constants.PUBLISH_SUBJECT,
            repo=Constants.PUBLISH_REPO,
            sonatype_user=credentials["sonatype_user"],
            sonatype_password=credentials["sonatype_password"],
        )
        deployer = DeployWebJar(
            MavenCentralClient(http, Constants.MAVEN_RELEASES_URL),
            publisher,
            releases_url=Constants.MAVEN_RELEASES_URL,
        )

        try:
            if args.CREATE_ONLY:
                artifact_id, jar = await deployer.create(
                    deployable, args.name_or_urlish, args.upstream_version, license_override=args.LICENSE
                )
                output = args.OUTPUT or f"{artifact_id}.jar"
                _write_jar(output, jar)
                _print_line(f"Created {output} ({len(jar)} bytes)")
            else:
                await deployer.deploy(
                    deployable,
                    args.name_or_urlish,
                    args.upstream_version,
                    args.DEPLOY_DEPENDENCIES,
                    force_deploy=args.FORCE,
                    release_version=args.RELEASE_VERSION,
                    source_uri=args.SOURCE_URI,
                    license_override=args.LICENSE,
                ).run(_print_line)
        except InvalidReferenceError as e:
            logger.error("Invalid package reference: %s", e)
            return ExitCodes.INPUT_ERROR.value
        except HttpError as e:
            logger.error("Connection error: %s", e)
            return ExitCodes.CONNECTION_ERROR.value
        except DeployError as e:
            logger.error("Deploy failed: %s", e)
            return ExitCodes.DEPLOY_ERROR.value
        except OSError as e:
            logger.error("Could not write the WebJar: %s", e)
            return ExitCodes.DEPLOY_ERROR.value

    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main",
                                target=args.name_or_urlish),
        )

    try:
        apply_config_overrides(load_config(args.CONFIG))
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.INPUT_ERROR.value)

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
