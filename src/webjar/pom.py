"""POM generation for WebJars."""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, Iterable, Optional, Tuple

from versioning.models import MavenCoordinate, PackageInfo

POM_NAMESPACE = "http://maven.apache.org/POM/4.0.0"
_XSI = "http://www.w3.org/2001/XMLSchema-instance"
WEBJARS_URL = "https://www.webjars.org"

MavenDependency = Tuple[str, str, str]


def _text(parent: ET.Element, tag: str, value: Optional[str]) -> Optional[ET.Element]:
    if value is None or value == "":
        return None
    element = ET.SubElement(parent, tag)
    element.text = value
    return element


def _dependencies(parent: ET.Element, dependencies: Iterable[MavenDependency], optional: bool) -> None:
    for group_id, artifact_id, version in sorted(dependencies):
        dep = ET.SubElement(parent, "dependency")
        _text(dep, "groupId", group_id)
        _text(dep, "artifactId", artifact_id)
        _text(dep, "version", version)
        if optional:
            _text(dep, "optional", "true")


def render_pom(
    coordinate: MavenCoordinate,
    info: PackageInfo,
    source_url: Optional[str],
    dependencies: Iterable[MavenDependency],
    optional_dependencies: Iterable[MavenDependency],
    licenses: Dict[str, Optional[str]],
) -> str:
    """Render the POM for a WebJar.

    Args:
        coordinate: WebJar coordinate.
        info: Upstream metadata; ``name`` becomes the POM name.
        source_url: Browsable source URL for ``<scm><url>``.
        dependencies: ``(groupId, artifactId, version-or-range)`` triples.
        optional_dependencies: Same, rendered with ``<optional>true</optional>``.
        licenses: License name to URL (URL may be None).

    Returns:
        The POM as an XML string with declaration.
    """
    project = ET.Element(
        "project",
        {
            "xmlns": POM_NAMESPACE,
            "xmlns:xsi": _XSI,
            "xsi:schemaLocation": f"{POM_NAMESPACE} http://maven.apache.org/maven-v4_0_0.xsd",
        },
    )
    _text(project, "modelVersion", "4.0.0")
    _text(project, "packaging", "jar")
    _text(project, "groupId", coordinate.group_id)
    _text(project, "artifactId", coordinate.artifact_id)
    _text(project, "version", coordinate.version)
    _text(project, "name", info.name or coordinate.artifact_id)
    _text(project, "description", f"WebJar for {info.name or coordinate.artifact_id}")
    _text(project, "url", WEBJARS_URL)

    scm = ET.SubElement(project, "scm")
    _text(scm, "url", source_url or info.homepage_url or WEBJARS_URL)
    _text(scm, "connection", info.source_connection_uri)
    _text(scm, "developerConnection", info.source_connection_uri)
    _text(scm, "tag", f"v{coordinate.version}")

    developers = ET.SubElement(project, "developers")
    developer = ET.SubElement(developers, "developer")
    _text(developer, "id", "webjars")
    _text(developer, "url", WEBJARS_URL)

    if licenses:
        licenses_element = ET.SubElement(project, "licenses")
        for name in sorted(licenses):
            license_element = ET.SubElement(licenses_element, "license")
            _text(license_element, "name", name)
            _text(license_element, "url", licenses[name])
            _text(license_element, "distribution", "repo")

    dependencies = list(dependencies)
    optional_dependencies = list(optional_dependencies)
    if dependencies or optional_dependencies:
        deps_element = ET.SubElement(project, "dependencies")
        _dependencies(deps_element, dependencies, optional=False)
        _dependencies(deps_element, optional_dependencies, optional=True)

    ET.indent(project, space="    ")
    body = ET.tostring(project, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n"
