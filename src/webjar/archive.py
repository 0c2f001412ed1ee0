"""WebJar assembly: relocates upstream archive contents into a jar.

Every kept file of the upstream zip or tarball ends up under
``META-INF/resources/webjars/<prefix>``; the POM and a ``pom.properties``
recording the coordinate go under ``META-INF/maven/<group>/<artifact>/``.
Entries are written sorted with a fixed timestamp so the same inputs always
produce the same jar.
"""
from __future__ import annotations

import functools
import io
import logging
import posixpath
import tarfile
import zipfile
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator

from constants import Constants
from common.errors import ArchiveFetchError
from versioning.models import MavenCoordinate
from .globs import ExcludeMatcher

logger = logging.getLogger(__name__)

_FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
MANIFEST_PATH = "META-INF/MANIFEST.MF"
MANIFEST = b"Manifest-Version: 1.0\nCreated-By: webjars-deployer\n\n"


@dataclass(frozen=True)
class ArchiveEntry:
    """A regular file read from an upstream archive."""
    path: str
    content: bytes


def _clean_path(name: str) -> str:
    """Normalize an archive member name; empty when it is unsafe or a directory."""
    name = name.replace("\\", "/")
    if not name or name.endswith("/"):
        return ""
    normalized = posixpath.normpath(name).lstrip("/")
    if normalized in (".", "") or normalized == ".." or normalized.startswith("../"):
        return ""
    return normalized


def read_archive(data: bytes) -> Iterator[ArchiveEntry]:
    """Yield the regular files of a zip or (optionally compressed) tar archive.

    Raises:
        ArchiveFetchError: If ``data`` is neither a zip nor a tar archive.
    """
    buffer = io.BytesIO(data)
    if zipfile.is_zipfile(buffer):
        buffer.seek(0)
        with zipfile.ZipFile(buffer) as archive:
            for info in archive.infolist():
                path = _clean_path(info.filename)
                if path and not info.is_dir():
                    yield ArchiveEntry(path, archive.read(info))
        return

    buffer.seek(0)
    try:
        with tarfile.open(fileobj=buffer, mode="r:*") as archive:
            for member in archive.getmembers():
                path = _clean_path(member.name)
                if not path or not member.isfile():
                    continue
                handle = archive.extractfile(member)
                if handle is None:
                    continue
                yield ArchiveEntry(path, handle.read())
    except tarfile.TarError as exc:
        raise ArchiveFetchError(f"Unsupported or corrupt source archive: {exc}") from exc


def strip_wrapper(path: str) -> str:
    """Drop the first path segment; empty for files outside any wrapper directory."""
    _, sep, rest = path.partition("/")
    return rest if sep else ""


def maven_meta_dir(coordinate: MavenCoordinate) -> str:
    return f"{Constants.MAVEN_META_PREFIX}/{coordinate.group_id}/{coordinate.artifact_id}"


def pom_properties(coordinate: MavenCoordinate) -> bytes:
    return (
        "#Generated by webjars-deployer\n"
        f"groupId={coordinate.group_id}\n"
        f"artifactId={coordinate.artifact_id}\n"
        f"version={coordinate.version}\n"
    ).encode("utf-8")


def _write_jar(entries: Dict[str, bytes]) -> bytes:
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED) as jar:
        for path in sorted(entries):
            info = zipfile.ZipInfo(path, date_time=_FIXED_DATE_TIME)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = 0o644 << 16
            jar.writestr(info, entries[path])
    return out.getvalue()


def webjar_entries(
    archive: bytes,
    contents_in_subdir: bool,
    excludes: Iterable[str],
    pom: str,
    coordinate: MavenCoordinate,
    path_prefix: str,
) -> Dict[str, bytes]:
    """Compute the ``path -> bytes`` map of a WebJar without zipping it."""
    matcher = ExcludeMatcher(excludes)
    resource_root = f"{Constants.WEBJAR_RESOURCE_PREFIX}/{path_prefix}"
    entries: Dict[str, bytes] = {MANIFEST_PATH: MANIFEST}
    skipped = 0

    for entry in read_archive(archive):
        relative = strip_wrapper(entry.path) if contents_in_subdir else entry.path
        if not relative:
            continue
        if matcher.is_excluded(relative):
            skipped += 1
            continue
        entries.setdefault(resource_root + relative, entry.content)

    meta_dir = maven_meta_dir(coordinate)
    if pom:
        entries[f"{meta_dir}/pom.xml"] = pom.encode("utf-8")
    entries[f"{meta_dir}/pom.properties"] = pom_properties(coordinate)

    logger.debug("WebJar %s: %d entries, %d excluded", coordinate, len(entries), skipped)
    return entries


def create_webjar(
    archive: bytes,
    contents_in_subdir: bool,
    excludes: Iterable[str],
    pom: str,
    coordinate: MavenCoordinate,
    path_prefix: str,
) -> bytes:
    """Build the WebJar bytes for ``coordinate`` from an upstream archive.

    Args:
        archive: Upstream zip or tarball.
        contents_in_subdir: Whether every entry sits under one wrapper directory to drop.
        excludes: Glob patterns of files to leave out (see ``ExcludeMatcher``).
        pom: POM document; skipped when empty.
        coordinate: Coordinate recorded in ``pom.properties``.
        path_prefix: Prefix under ``META-INF/resources/webjars/``, e.g. ``"jquery/3.2.1/"``.
    """
    return _write_jar(webjar_entries(archive, contents_in_subdir, excludes, pom, coordinate, path_prefix))


@functools.lru_cache(maxsize=None)
def empty_jar() -> bytes:
    """Placeholder jar (manifest only) for the sources and javadoc slots."""
    return _write_jar({MANIFEST_PATH: MANIFEST})
