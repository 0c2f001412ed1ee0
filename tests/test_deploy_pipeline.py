"""Tests for the deploy pipeline against in-memory upstream and publishing fakes."""

import asyncio
import io
import zipfile

import pytest

from common.errors import AlreadyDeployedError, HttpError, MetadataNotFoundError, NotFoundError, PublishError
from constants import Constants, WebJarType
from deploy.pipeline import DeployWebJar
from deployables.base import Deployable
from versioning.coordinates import resolve_artifact_id, resolve_group_id
from versioning.models import PackageInfo


def make_zip(files):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for path, content in files.items():
            archive.writestr(path, content)
    return buffer.getvalue()


PACKAGES = {
    "root": dict(version="1.0.0", licenses=["MIT"], dependencies={"dep": "^2.0.0"}),
    "dep": dict(version="2.0.0", licenses=["MIT"]),
    "orphaned": dict(version="1.0.0", licenses=["MIT"], dependencies={"ghost": "1.0.0"}),
    "unlicensed": dict(version="0.1.0"),
}


class FakeDeployable(Deployable):
    """npm-style coordinates over the in-memory ``PACKAGES`` table."""

    webjar_type = WebJarType.NPM
    name = "Fake"
    metadata_file = "package.json"

    def __init__(self):
        super().__init__()
        self.archives = []

    async def group_id(self, name_or_urlish):
        return resolve_group_id(name_or_urlish, self.webjar_type)

    async def artifact_id(self, name_or_urlish):
        return resolve_artifact_id(name_or_urlish)

    async def _fetch_info(self, name_or_urlish, version):
        if name_or_urlish not in PACKAGES:
            raise MetadataNotFoundError(f"{name_or_urlish} does not exist")
        return PackageInfo(
            name=name_or_urlish,
            source_connection_uri=f"https://github.com/example/{name_or_urlish}.git",
            **PACKAGES[name_or_urlish],
        )

    async def archive(self, name_or_urlish, version):
        self.archives.append((name_or_urlish, version))
        return make_zip({"package/index.js": b"module.exports = 1;", "package/.hidden": b""})

    async def excludes(self, name_or_urlish, version):
        return [".*"]

    async def path_prefix(self, name_or_urlish, release_version, info):
        return f"{name_or_urlish}/{release_version}/"

    async def versions(self, name_or_urlish):
        return [PACKAGES[name_or_urlish]["version"]]


class FakeMaven:
    def __init__(self, existing=(), error=None):
        self.existing = set(existing)
        self.error = error
        self.checked = []

    async def fetch_pom(self, coordinate, repo_url=None):
        self.checked.append(str(coordinate))
        if self.error is not None:
            raise self.error
        if str(coordinate) in self.existing:
            return "<project/>"
        raise NotFoundError(f"{coordinate} not found", status=404)


class FakePublisher:
    """Records every publishing call; ``fail_on`` names a method that raises."""

    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.calls = []
        self.uploads = {}

    def _record(self, method, *args):
        self.calls.append((method,) + args)
        if method == self.fail_on:
            raise PublishError(f"{method} failed")

    async def get_or_create_package(self, package_name, *args):
        self._record("get_or_create_package", package_name)

    async def create_or_overwrite_version(self, package_name, version, description, vcs_tag):
        self._record("create_or_overwrite_version", package_name, version, vcs_tag)

    async def upload_maven_artifact(self, package_name, path, content):
        self.uploads[path] = content
        self._record("upload_maven_artifact", package_name, path)

    async def sign_version(self, package_name, version):
        self._record("sign_version", package_name, version)

    async def publish_version(self, package_name, version):
        self._record("publish_version", package_name, version)

    async def sync_to_maven_central(self, package_name, version):
        self._record("sync_to_maven_central", package_name, version)


def _deploy(pipeline, name="root", version="1.0.0", deps=False, **kwargs):
    lines = []

    async def scenario():
        await pipeline.deploy(FakeDeployable(), name, version, deps, **kwargs).run(lines.append)

    try:
        asyncio.run(scenario())
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return lines, exc
    return lines, None


class TestDeploy:

    def test_successful_deploy(self):
        publisher = FakePublisher()
        lines, error = _deploy(DeployWebJar(FakeMaven(), publisher))

        assert error is None
        assert lines[:9] == [
            "Got package info for org.webjars.npm root 1.0.0",
            "Resolving licenses & dependencies for org.webjars.npm root 1.0.0",
            "Resolved Licenses: MIT",
            "Converted dependencies to Maven",
            "Converted optional dependencies to Maven",
            "Got the source URL: https://github.com/example/root",
            "Generated POM",
            "Fetched Fake zip",
            "Created Fake WebJar",
        ]
        assert lines[9:16] == [
            "Created package",
            "Created version",
            "Published assets",
            "Signed assets",
            "Published version",
            "Syncing to Maven Central (this could take a while)",
            "Synced with Maven Central",
        ]
        assert lines[-1].startswith("Deployed!")
        assert lines[-1].endswith("GroupID = org.webjars.npm\nArtifactID = root\nVersion = 1.0.0")

    def test_publishing_order_and_artifacts(self):
        publisher = FakePublisher()
        _deploy(DeployWebJar(FakeMaven(), publisher))

        assert [call[0] for call in publisher.calls] == [
            "get_or_create_package",
            "create_or_overwrite_version",
            "upload_maven_artifact",
            "upload_maven_artifact",
            "upload_maven_artifact",
            "upload_maven_artifact",
            "sign_version",
            "publish_version",
            "sync_to_maven_central",
        ]
        assert publisher.calls[1] == ("create_or_overwrite_version", "org.webjars.npm:root", "1.0.0", "v1.0.0")
        base = "org/webjars/npm/root/1.0.0/root-1.0.0"
        assert list(publisher.uploads) == [f"{base}.pom", f"{base}.jar", f"{base}-sources.jar", f"{base}-javadoc.jar"]

        pom = publisher.uploads[f"{base}.pom"].decode("utf-8")
        assert "<artifactId>dep</artifactId>" in pom
        assert "<version>[2.0.0,3)</version>" in pom

        with zipfile.ZipFile(io.BytesIO(publisher.uploads[f"{base}.jar"])) as jar:
            names = set(jar.namelist())
        assert "META-INF/resources/webjars/root/1.0.0/index.js" in names
        assert "META-INF/resources/webjars/root/1.0.0/.hidden" not in names
        assert "META-INF/maven/org.webjars.npm/root/pom.xml" in names

    def test_release_version_override(self):
        publisher = FakePublisher()
        lines, error = _deploy(DeployWebJar(FakeMaven(), publisher), release_version="1.0.0-1")
        assert error is None
        assert lines[0] == "Got package info for org.webjars.npm root 1.0.0-1"
        assert publisher.calls[1][2] == "1.0.0-1"

    def test_already_deployed(self):
        publisher = FakePublisher()
        maven = FakeMaven(existing={"org.webjars.npm:root:1.0.0"})
        lines, error = _deploy(DeployWebJar(maven, publisher))

        assert isinstance(error, AlreadyDeployedError)
        assert publisher.calls == []
        assert "failed while checking for an existing release" in lines[-1]

    def test_force_skips_the_release_check(self):
        maven = FakeMaven(existing={"org.webjars.npm:root:1.0.0"})
        lines, error = _deploy(DeployWebJar(maven, FakePublisher()), force_deploy=True)
        assert error is None
        assert maven.checked == []
        assert lines[-1].startswith("Deployed!")

    def test_release_check_failure(self):
        maven = FakeMaven(error=HttpError("unavailable", status=503))
        _, error = _deploy(DeployWebJar(maven, FakePublisher()))
        assert isinstance(error, PublishError)

    def test_release_check_happens_before_dependencies(self):
        maven = FakeMaven(existing={"org.webjars.npm:root:1.0.0"})
        lines, error = _deploy(DeployWebJar(maven, FakePublisher()), deps=True)
        assert isinstance(error, AlreadyDeployedError)
        assert "Determining dependency graph" not in lines
        assert maven.checked == ["org.webjars.npm:root:1.0.0"]

    def test_missing_license(self):
        publisher = FakePublisher()
        lines, error = _deploy(DeployWebJar(FakeMaven(), publisher), name="unlicensed", version="0.1.0")
        assert isinstance(error, MetadataNotFoundError)
        assert "failed while resolving licenses" in lines[-1]
        assert publisher.calls == []

    def test_license_override(self):
        lines, error = _deploy(
            DeployWebJar(FakeMaven(), FakePublisher()), name="unlicensed", version="0.1.0", license_override="ISC"
        )
        assert error is None
        assert "Resolved Licenses: ISC" in lines

    def test_publish_failure(self):
        publisher = FakePublisher(fail_on="sign_version")
        lines, error = _deploy(DeployWebJar(FakeMaven(), publisher))

        assert isinstance(error, PublishError)
        assert "Published assets" in lines
        assert "Signed assets" not in lines
        assert lines[-1] == "Deploy of org.webjars.npm:root:1.0.0 failed while publishing: sign_version failed"


class TestDependencyCascade:

    def test_dependencies_are_deployed_first(self):
        publisher = FakePublisher()
        lines, error = _deploy(DeployWebJar(FakeMaven(), publisher), deps=True)

        assert error is None
        assert lines[1] == "Determining dependency graph"
        assert lines[2] == "Deploying these dependencies: dep#^2.0.0"
        packages = [call[1] for call in publisher.calls if call[0] == "get_or_create_package"]
        assert packages == ["org.webjars.npm:dep", "org.webjars.npm:root"]
        assert lines[-1].startswith("Deployed!")
        assert lines[-1].endswith("ArtifactID = root\nVersion = 1.0.0")

    def test_deployed_dependency_does_not_fail_the_parent(self):
        publisher = FakePublisher()
        maven = FakeMaven(existing={"org.webjars.npm:dep:2.0.0"})
        lines, error = _deploy(DeployWebJar(maven, publisher), deps=True)

        assert error is None
        failure = (
            "Deploy of org.webjars.npm:dep:2.0.0 failed while checking for an existing release: "
            "WebJar org.webjars.npm dep 2.0.0 has already been deployed"
        )
        assert lines.count(failure) == 1
        assert not any(line.startswith("WebJar org.webjars.npm dep") for line in lines)
        packages = [call[1] for call in publisher.calls if call[0] == "get_or_create_package"]
        assert packages == ["org.webjars.npm:root"]
        assert lines[-1].startswith("Deployed!")

    def test_unresolvable_dependency_is_reported(self):
        lines, error = _deploy(DeployWebJar(FakeMaven(), FakePublisher()), name="orphaned", deps=True)

        assert error is None
        assert any(line.startswith("Could not resolve dependency ghost#1.0.0") for line in lines)
        assert "Deploying these dependencies: ghost#1.0.0" in lines
        assert lines[-1].startswith("Deployed!")

    def test_no_dependencies(self):
        lines, error = _deploy(DeployWebJar(FakeMaven(), FakePublisher()), name="dep", version="2.0.0", deps=True)
        assert error is None
        assert "No dependencies." in lines


class TestCreate:

    def test_create_builds_without_publishing(self):
        maven = FakeMaven(existing={"org.webjars.npm:root:1.0.0"})
        publisher = FakePublisher()
        pipeline = DeployWebJar(maven, publisher)

        artifact_id, jar = asyncio.run(pipeline.create(FakeDeployable(), "root", "1.0.0"))

        assert artifact_id == "root"
        assert maven.checked == []
        assert publisher.calls == []
        with zipfile.ZipFile(io.BytesIO(jar)) as out:
            assert "META-INF/resources/webjars/root/1.0.0/index.js" in out.namelist()

    def test_group_id_override(self):
        pipeline = DeployWebJar(FakeMaven(), FakePublisher())
        _, jar = asyncio.run(pipeline.create(FakeDeployable(), "root", "1.0.0", group_id_override="com.example"))
        with zipfile.ZipFile(io.BytesIO(jar)) as out:
            assert "META-INF/maven/com.example/root/pom.properties" in out.namelist()

    def test_releases_url_is_used_for_the_check(self):
        assert DeployWebJar(FakeMaven(), FakePublisher())._releases_url == Constants.MAVEN_RELEASES_URL

    def test_failures_propagate(self):
        pipeline = DeployWebJar(FakeMaven(), FakePublisher())
        with pytest.raises(MetadataNotFoundError):
            asyncio.run(pipeline.create(FakeDeployable(), "nope", "1.0.0"))
