"""Tests for POM rendering, license resolution and source URLs."""

import asyncio
import xml.etree.ElementTree as ET

import pytest

from common.errors import MetadataNotFoundError
from versioning.models import MavenCoordinate, PackageInfo
from webjar.licenses import LicenseDetector, default_urls, normalize_license, split_licenses
from webjar.pom import POM_NAMESPACE, render_pom
from webjar.source import SourceLocator, normalize_source_url

NS = {"m": POM_NAMESPACE}


def _info(**kwargs):
    defaults = dict(
        name="jQuery",
        version="3.2.1",
        source_connection_uri="https://github.com/jquery/jquery.git",
        homepage_url="https://jquery.com",
        licenses=["MIT"],
    )
    defaults.update(kwargs)
    return PackageInfo(**defaults)


class TestRenderPom:

    def _render(self, **kwargs):
        params = dict(
            coordinate=MavenCoordinate("org.webjars.bowergithub.jquery", "jquery", "3.2.1"),
            info=_info(),
            source_url="https://github.com/jquery/jquery",
            dependencies={("org.webjars.npm", "sizzle", "[2.0.0,3)")},
            optional_dependencies={("org.webjars.npm", "fsevents", "[1,2)")},
            licenses={"MIT": "https://opensource.org/licenses/MIT"},
        )
        params.update(kwargs)
        return ET.fromstring(render_pom(**params).split("\n", 1)[1])

    def test_coordinates_and_name(self):
        root = self._render()
        assert root.find("m:groupId", NS).text == "org.webjars.bowergithub.jquery"
        assert root.find("m:artifactId", NS).text == "jquery"
        assert root.find("m:version", NS).text == "3.2.1"
        assert root.find("m:name", NS).text == "jQuery"

    def test_scm(self):
        root = self._render()
        assert root.find("m:scm/m:url", NS).text == "https://github.com/jquery/jquery"
        assert root.find("m:scm/m:connection", NS).text == "https://github.com/jquery/jquery.git"
        assert root.find("m:scm/m:tag", NS).text == "v3.2.1"

    def test_licenses(self):
        root = self._render()
        licenses = root.findall("m:licenses/m:license", NS)
        assert [lic.find("m:name", NS).text for lic in licenses] == ["MIT"]
        assert licenses[0].find("m:url", NS).text == "https://opensource.org/licenses/MIT"

    def test_dependencies_and_optional(self):
        root = self._render()
        deps = root.findall("m:dependencies/m:dependency", NS)
        assert [d.find("m:artifactId", NS).text for d in deps] == ["sizzle", "fsevents"]
        assert deps[0].find("m:optional", NS) is None
        assert deps[1].find("m:optional", NS).text == "true"
        assert deps[0].find("m:version", NS).text == "[2.0.0,3)"

    def test_no_dependencies_section_when_empty(self):
        root = self._render(dependencies=set(), optional_dependencies=set())
        assert root.find("m:dependencies", NS) is None

    def test_xml_declaration(self):
        text = render_pom(
            MavenCoordinate("g", "a", "1"), _info(), None, [], [], {}
        )
        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>')


class TestLicenses:

    def test_normalize_aliases(self):
        assert normalize_license("MIT License") == "MIT"
        assert normalize_license("Apache 2.0") == "Apache-2.0"
        assert normalize_license("BSD-3-Clause") == "BSD-3-Clause"

    def test_split_spdx_expressions(self):
        assert split_licenses(["(MIT OR Apache-2.0)"]) == ["MIT", "Apache-2.0"]
        assert split_licenses(["MIT, GPL-3.0", "MIT"]) == ["MIT", "GPL-3.0"]

    def test_default_urls(self):
        urls = default_urls(["MIT", "Zlib", "Some custom license"])
        assert urls["MIT"] == "https://opensource.org/licenses/MIT"
        assert urls["Zlib"] == "https://spdx.org/licenses/Zlib.html"
        assert urls["Some custom license"] is None

    def test_detector_uses_metadata(self):
        licenses = asyncio.run(LicenseDetector().resolve_licenses(_info(licenses=["MIT"]), "3.2.1"))
        assert list(licenses) == ["MIT"]

    def test_override_wins(self):
        licenses = asyncio.run(
            LicenseDetector().resolve_licenses(_info(licenses=["MIT"]), "3.2.1", "Apache-2.0,ISC")
        )
        assert set(licenses) == {"Apache-2.0", "ISC"}

    def test_missing_license(self):
        with pytest.raises(MetadataNotFoundError):
            asyncio.run(LicenseDetector().resolve_licenses(_info(licenses=[]), "3.2.1"))


class TestSourceUrl:

    @pytest.mark.parametrize(
        "uri, expected",
        [
            ("git+https://github.com/jquery/jquery.git", "https://github.com/jquery/jquery"),
            ("git://github.com/jquery/jquery.git", "https://github.com/jquery/jquery"),
            ("git@github.com:jquery/jquery.git", "https://github.com/jquery/jquery"),
            ("ssh://git@github.com/jquery/jquery.git", "https://github.com/jquery/jquery"),
            ("github:jquery/jquery", "https://github.com/jquery/jquery"),
            ("jquery/jquery", "https://github.com/jquery/jquery"),
            ("https://github.com/jquery/jquery.git#v3.2.1", "https://github.com/jquery/jquery"),
            ("https://user@bitbucket.org/org/repo.git", "https://bitbucket.org/org/repo"),
            (None, None),
            ("", None),
        ],
    )
    def test_normalize(self, uri, expected):
        assert normalize_source_url(uri) == expected

    def test_locator(self):
        url = asyncio.run(SourceLocator().source_url("git+https://github.com/jquery/jquery.git"))
        assert url == "https://github.com/jquery/jquery"
