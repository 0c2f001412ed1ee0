"""The WebJar deploy pipeline.

A deploy runs strictly in sequence: fetch metadata, resolve coordinates,
check the coordinate has not been released yet, optionally deploy the
dependency graph, then build the POM and jar and push them through the
publishing repository. Every completed step offers one progress line.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from constants import Constants
from common.errors import AlreadyDeployedError, DeployError, HttpError, NotFoundError, PublishError
from common.logging_utils import Timer, extra_context
from deployables.base import Deployable
from publish.repository import RepositoryPublisher
from registry.maven import MavenCentralClient
from versioning.models import MavenCoordinate, PackageInfo
from webjar.archive import create_webjar, empty_jar
from webjar.licenses import LicenseDetector
from webjar.pom import render_pom
from webjar.source import SourceLocator
from .progress import ProgressQueue, ProgressStream

logger = logging.getLogger(__name__)


class DeployWebJar:
    """Builds WebJars and publishes them, reporting through a ``ProgressStream``."""

    def __init__(
        self,
        maven_central: MavenCentralClient,
        publisher: RepositoryPublisher,
        license_detector: Optional[LicenseDetector] = None,
        source_locator: Optional[SourceLocator] = None,
        releases_url: str = Constants.MAVEN_RELEASES_URL,
    ):
        self._maven_central = maven_central
        self._publisher = publisher
        self._license_detector = license_detector or LicenseDetector()
        self._source_locator = source_locator or SourceLocator()
        self._releases_url = releases_url

    def deploy(
        self,
        deployable: Deployable,
        name_or_urlish: str,
        upstream_version: str,
        deploy_dependencies: bool,
        force_deploy: bool = False,
        release_version: Optional[str] = None,
        source_uri: Optional[str] = None,
        license_override: Optional[str] = None,
    ) -> ProgressStream:
        """Deploy one package; nothing runs until the returned stream is consumed.

        Args:
            deployable: Package kind handling lookup, archive and layout.
            name_or_urlish: Bare package name or repository reference.
            upstream_version: Upstream version or tag to deploy.
            deploy_dependencies: Deploy the transitive dependencies first.
            force_deploy: Skip the already-released check.
            release_version: Maven version to publish under instead of the upstream one.
            source_uri: Source connection URI overriding the package metadata.
            license_override: Comma-separated licenses overriding the package metadata.

        Returns:
            A stream of progress lines ending in completion or the failure that stopped the deploy.
        """

        async def producer(queue: ProgressQueue) -> None:
            await self._local_deploy(
                queue,
                deployable,
                name_or_urlish,
                upstream_version,
                deploy_dependencies,
                force_deploy,
                release_version,
                source_uri,
                license_override,
            )

        return ProgressStream(producer)

    async def _not_yet_deployed(self, coordinate: MavenCoordinate, force_deploy: bool) -> None:
        """Raise ``AlreadyDeployedError`` if the coordinate is already released."""
        if force_deploy:
            logger.info("Skipping release check for %s", coordinate)
            return
        try:
            await self._maven_central.fetch_pom(coordinate, self._releases_url)
        except NotFoundError:
            return
        except HttpError as exc:
            raise PublishError(f"Could not check whether {coordinate} was already released: {exc}") from exc
        raise AlreadyDeployedError(coordinate.group_id, coordinate.artifact_id, coordinate.version)

    async def _deploy_dependencies(self, queue: ProgressQueue, deployable: Deployable, info: PackageInfo) -> None:
        """Deploy the dependency graph one package at a time; failures are reported and skipped."""
        queue.offer("Determining dependency graph")

        def report(key: str, failure: DeployError) -> None:
            queue.offer(str(failure))

        graph = await deployable.dep_graph(info, on_error=report)
        if graph.is_empty():
            queue.offer("No dependencies.")
            return
        queue.offer("Deploying these dependencies: " + graph.describe())

        for key, version in graph.items():
            stream = self.deploy(deployable, key, version, deploy_dependencies=False)
            try:
                async for line in stream.lines():
                    queue.offer(line)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.warning(
                    "Dependency deploy failed: %s",
                    exc,
                    extra=extra_context(event="cascade", outcome="error", target=f"{key}#{version}"),
                )

    async def _local_deploy(
        self,
        queue: ProgressQueue,
        deployable: Deployable,
        name_or_urlish: str,
        upstream_version: str,
        deploy_dependencies: bool,
        force_deploy: bool,
        release_override: Optional[str],
        source_uri: Optional[str],
        license_override: Optional[str],
    ) -> None:
        step = "fetching package info"
        target = f"{name_or_urlish} {upstream_version}"
        try:
            with Timer() as timer:
                info = await deployable.info(name_or_urlish, upstream_version or None, source_uri)
                release_version = deployable.release_version(release_override, info)

                step = "resolving coordinates"
                coordinate = await deployable.coordinate(name_or_urlish, release_version)
                target = str(coordinate)
                queue.offer(
                    f"Got package info for {coordinate.group_id} {coordinate.artifact_id} {coordinate.version}"
                )

                step = "checking for an existing release"
                await self._not_yet_deployed(coordinate, force_deploy)

                if deploy_dependencies:
                    step = "deploying dependencies"
                    await self._deploy_dependencies(queue, deployable, info)

                step = "resolving licenses"
                queue.offer(
                    f"Resolving licenses & dependencies for "
                    f"{coordinate.group_id} {coordinate.artifact_id} {coordinate.version}"
                )
                licenses = await self._license_detector.resolve_licenses(info, upstream_version, license_override)
                queue.offer(f"Resolved Licenses: {','.join(licenses)}")

                step = "converting dependencies"
                dependencies = await deployable.maven_dependencies(info.dependencies)
                queue.offer("Converted dependencies to Maven")
                optional_dependencies = await deployable.maven_dependencies(info.optional_dependencies)
                queue.offer("Converted optional dependencies to Maven")

                step = "resolving the source URL"
                source_url = await self._source_locator.source_url(info.source_connection_uri)
                queue.offer(f"Got the source URL: {source_url}")

                pom = render_pom(coordinate, info, source_url, dependencies, optional_dependencies, licenses)
                queue.offer("Generated POM")

                step = "fetching the source archive"
                archive = await deployable.archive(name_or_urlish, upstream_version)
                queue.offer(f"Fetched {deployable.name} zip")

                step = "creating the WebJar"
                excludes = await deployable.excludes(name_or_urlish, upstream_version)
                path_prefix = await deployable.path_prefix(name_or_urlish, release_version, info)
                jar = create_webjar(
                    archive, deployable.contents_in_subdir, excludes, pom, coordinate, path_prefix
                )
                queue.offer(f"Created {deployable.name} WebJar")

                step = "publishing"
                await self._publish(queue, coordinate, info, licenses, pom, jar)
        except Exception as exc:
            logger.error(
                "Deploy failed",
                extra=extra_context(event="deploy", outcome="error", target=target, action=step),
            )
            queue.offer(f"Deploy of {target} failed while {step}: {exc}")
            raise

        logger.info(
            "Deploy finished",
            extra=extra_context(event="deploy", outcome="success", target=target, duration_ms=timer.duration_ms()),
        )
        queue.offer(
            "Deployed!\n"
            f"It will take a few hours for the Maven Central index to update but you should be able "
            f"to start using the {deployable.name} WebJar shortly.\n"
            f"GroupID = {coordinate.group_id}\n"
            f"ArtifactID = {coordinate.artifact_id}\n"
            f"Version = {coordinate.version}"
        )

    async def _publish(
        self,
        queue: ProgressQueue,
        coordinate: MavenCoordinate,
        info: PackageInfo,
        licenses: Dict[str, Optional[str]],
        pom: str,
        jar: bytes,
    ) -> None:
        package_name = coordinate.package_name
        artifact_id = coordinate.artifact_id
        version = coordinate.version

        await self._publisher.get_or_create_package(
            package_name,
            f"WebJar for {artifact_id}",
            ["webjar", artifact_id],
            licenses.keys(),
            info.source_connection_uri,
            info.homepage_url,
            info.issues_url,
            info.github_org_repo,
        )
        queue.offer("Created package")

        await self._publisher.create_or_overwrite_version(
            package_name, version, f"{artifact_id} WebJar release {version}", f"v{version}"
        )
        queue.offer("Created version")

        await self._publisher.upload_maven_artifact(package_name, coordinate.file_path(".pom"), pom.encode("utf-8"))
        await self._publisher.upload_maven_artifact(package_name, coordinate.file_path(".jar"), jar)
        await self._publisher.upload_maven_artifact(package_name, coordinate.file_path("-sources.jar"), empty_jar())
        await self._publisher.upload_maven_artifact(package_name, coordinate.file_path("-javadoc.jar"), empty_jar())
        queue.offer("Published assets")

        await self._publisher.sign_version(package_name, version)
        queue.offer("Signed assets")

        await self._publisher.publish_version(package_name, version)
        queue.offer("Published version")

        queue.offer("Syncing to Maven Central (this could take a while)")
        await self._publisher.sync_to_maven_central(package_name, version)
        queue.offer("Synced with Maven Central")

    async def create(
        self,
        deployable: Deployable,
        name_or_urlish: str,
        upstream_version: str,
        license_override: Optional[str] = None,
        group_id_override: Optional[str] = None,
    ) -> Tuple[str, bytes]:
        """Build a WebJar without checking or publishing anything.

        Returns:
            ``(artifact_id, jar_bytes)``.
        """
        info = await deployable.info(name_or_urlish, upstream_version or None)
        group_id = group_id_override or await deployable.group_id(name_or_urlish)
        artifact_id = await deployable.artifact_id(name_or_urlish)
        coordinate = MavenCoordinate(group_id, artifact_id, deployable.release_version(upstream_version, info))

        licenses = await self._license_detector.resolve_licenses(info, upstream_version, license_override)
        dependencies = await deployable.maven_dependencies(info.dependencies)
        optional_dependencies = await deployable.maven_dependencies(info.optional_dependencies)
        source_url = await self._source_locator.source_url(info.source_connection_uri)
        pom = render_pom(coordinate, info, source_url, dependencies, optional_dependencies, licenses)

        archive = await deployable.archive(name_or_urlish, upstream_version)
        excludes = await deployable.excludes(name_or_urlish, upstream_version)
        path_prefix = await deployable.path_prefix(name_or_urlish, coordinate.version, info)
        jar = create_webjar(archive, deployable.contents_in_subdir, excludes, pom, coordinate, path_prefix)
        logger.info("Created WebJar %s (%d bytes)", coordinate, len(jar))
        return artifact_id, jar
