"""Run-wide library arena and artifact metadata lookup."""

from __future__ import annotations

import logging
import tempfile
import threading
import zipfile
from collections.abc import Callable
from pathlib import Path

from nestbuild.model import Library, LibraryLevel

logger = logging.getLogger(__name__)

_ARCHIVE_SUFFIXES = (".jar", ".zip", ".aar", ".war")

_MAVEN_META_PREFIX = "META-INF/maven/"


def normalize_coordinates(target: str) -> str | None:
    """Return ``group:artifact[:version...]`` with blanks stripped, or None if malformed."""
    parts = [p.strip() for p in target.split(":")]
    if len(parts) < 2 or not all(parts[:2]):
        return None
    return ":".join(parts)


def is_archive(file_path: str) -> bool:
    return file_path.lower().endswith(_ARCHIVE_SUFFIXES)


def read_artifact_identity(file_path: str) -> str | None:
    """Read ``group:artifact:version`` embedded in an archive's Maven metadata.

    Looks for ``META-INF/maven/**/pom.properties`` first and falls back to
    the embedded ``pom.xml`` (parsed with jgo). Archives embedding more than
    one artifact (shaded jars) have no single identity and return None.
    """
    if not zipfile.is_zipfile(file_path):
        return None
    try:
        with zipfile.ZipFile(file_path) as archive:
            names = archive.namelist()
            props = [
                n for n in names
                if n.startswith(_MAVEN_META_PREFIX) and n.endswith("/pom.properties")
            ]
            if len(props) == 1:
                identity = _identity_from_properties(archive.read(props[0]))
                if identity:
                    return identity
            poms = [
                n for n in names
                if n.startswith(_MAVEN_META_PREFIX) and n.endswith("/pom.xml")
            ]
            if len(poms) == 1:
                return _identity_from_pom(archive.read(poms[0]))
    except (OSError, zipfile.BadZipFile) as e:
        logger.debug("Could not read artifact metadata from %s: %s", file_path, e)
    return None


def _identity_from_properties(data: bytes) -> str | None:
    values: dict[str, str] = {}
    for line in data.decode("utf-8", errors="replace").splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "!")):
            continue
        key, sep, value = line.partition("=")
        if sep:
            values[key.strip()] = value.strip()
    group, artifact = values.get("groupId"), values.get("artifactId")
    if not group or not artifact:
        return None
    version = values.get("version")
    return f"{group}:{artifact}:{version}" if version else f"{group}:{artifact}"


def _identity_from_pom(data: bytes) -> str | None:
    """Extract coordinates from pom.xml bytes using jgo's POM (handles parent groupId)."""
    try:
        from jgo.maven import POM
    except ImportError:
        logger.debug("jgo not installed; cannot read embedded pom.xml")
        return None

    with tempfile.TemporaryDirectory() as tmp:
        pom_path = Path(tmp) / "pom.xml"
        pom_path.write_bytes(data)
        try:
            pom = POM(pom_path)
            group_id = pom.groupId
            artifact_id = pom.artifactId
            version = pom.version
        except (OSError, ValueError, KeyError, AttributeError) as e:
            logger.debug("Could not extract coords from embedded pom.xml: %s", e)
            return None
    if group_id and artifact_id:
        return f"{group_id}:{artifact_id}:{version}" if version else f"{group_id}:{artifact_id}"
    return None


class LibraryTable:
    """Insert-or-get arena of libraries, shared by every build of a run.

    Libraries are keyed by normalized coordinates or canonical file path, so
    identical declarations from any module resolve to the same instance.
    """

    def __init__(self, inspector: Callable[[str], str | None] = read_artifact_identity):
        self._inspector = inspector
        self._lock = threading.Lock()
        self._libraries: dict[str, Library] = {}

    def for_coordinates(self, coordinates: str) -> Library:
        key = f"coordinates:{coordinates}"
        existing = self._get(key)
        if existing is not None:
            return existing
        return self._insert(
            Library(
                id=key,
                level=LibraryLevel.PROJECT,
                presentable_name=coordinates,
                coordinates=coordinates,
            )
        )

    def for_file(self, file_path: str) -> Library:
        """Library for the canonical *file_path*, shared by every declaring module."""
        key = f"file:{file_path}"
        existing = self._get(key)
        if existing is not None:
            return existing

        identity = self._inspector(file_path) if is_archive(file_path) else None
        return self._insert(
            Library(
                id=key,
                level=LibraryLevel.PROJECT,
                presentable_name=identity or file_path,
                coordinates=identity,
                file_path=file_path,
            )
        )

    def snapshot(self) -> dict[str, Library]:
        with self._lock:
            return {key: self._libraries[key] for key in sorted(self._libraries)}

    def __len__(self) -> int:
        with self._lock:
            return len(self._libraries)

    def _get(self, key: str) -> Library | None:
        with self._lock:
            return self._libraries.get(key)

    def _insert(self, library: Library) -> Library:
        # Another thread may have inserted the same key meanwhile; keep the first.
        with self._lock:
            return self._libraries.setdefault(library.id, library)
