"""Version-gated topology rules.

All tool-version comparisons live in the ``_POLICY_TABLE`` below; discovery
and dependency resolution only read the resulting :class:`PolicyFlags`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from nestbuild.errors import VersionIncompatibilityError
from nestbuild.model import Build, BuildKind

logger = logging.getLogger(__name__)

Version = tuple[int, int, int]

# "6.7", "6.7.1", "6.7-rc-1", "8.0-milestone-2", "7.4.2-20220301000000+0000"
_VERSION_RE = re.compile(r"^\s*(\d+)\.(\d+)(?:\.(\d+))?(?:[-+].*)?\s*$")

# Versions outside [_OLDEST_SUPPORTED, _NEWEST_SUPPORTED) still resolve,
# with the newest rule set and a warning.
_OLDEST_SUPPORTED: Version = (2, 0, 0)
_NEWEST_SUPPORTED: Version = (10, 0, 0)


@dataclass(frozen=True)
class PolicyFlags:
    build_src_is_reserved_name: bool
    included_builds_visible_to_build_src: bool
    build_src_implicit_plugins: tuple[str, ...] = ("groovy",)
    label: str = ""


@dataclass(frozen=True)
class VersionRange:
    """Half-open range ``[lower, upper)``; ``None`` means unbounded."""

    lower: Version | None = None
    upper: Version | None = None

    def __contains__(self, version: Version) -> bool:
        if self.lower is not None and version < self.lower:
            return False
        if self.upper is not None and version >= self.upper:
            return False
        return True


# Ordered oldest to newest; the last entry is the fallback.
_POLICY_TABLE: list[tuple[VersionRange, PolicyFlags]] = [
    (
        VersionRange(upper=(6, 0, 0)),
        PolicyFlags(
            build_src_is_reserved_name=False,
            included_builds_visible_to_build_src=False,
            label="<6.0",
        ),
    ),
    (
        # 'buildSrc' became a reserved project name in 6.0
        VersionRange(lower=(6, 0, 0), upper=(6, 7, 0)),
        PolicyFlags(
            build_src_is_reserved_name=True,
            included_builds_visible_to_build_src=False,
            label="6.0-6.6",
        ),
    ),
    (
        # included builds are visible to buildSrc since 6.7
        VersionRange(lower=(6, 7, 0)),
        PolicyFlags(
            build_src_is_reserved_name=True,
            included_builds_visible_to_build_src=True,
            label="6.7+",
        ),
    ),
]


def parse_version(tool_version: str) -> Version | None:
    """Parse a tool version into ``(major, minor, patch)``, ignoring qualifiers."""
    m = _VERSION_RE.match(tool_version or "")
    if not m:
        return None
    return int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)


def resolve(tool_version: str) -> PolicyFlags:
    """Return the policy flags for *tool_version*.

    Unparseable versions get the newest rule set.
    """
    version = parse_version(tool_version)
    if version is None:
        return newest()
    for version_range, flags in _POLICY_TABLE:
        if version in version_range:
            return flags
    return newest()


def newest() -> PolicyFlags:
    return _POLICY_TABLE[-1][1]


def ensure_known(tool_version: str) -> None:
    """Raise :class:`VersionIncompatibilityError` if *tool_version* is unsupported."""
    version = parse_version(tool_version)
    if version is None:
        raise VersionIncompatibilityError(tool_version, "is not a recognizable version")
    if version < _OLDEST_SUPPORTED:
        raise VersionIncompatibilityError(tool_version, "is older than supported")
    if version >= _NEWEST_SUPPORTED:
        raise VersionIncompatibilityError(tool_version, "is newer than supported")


def can_see(consumer: Build, producer: Build, policy: PolicyFlags) -> bool:
    """Whether artifacts and plugins of *producer* resolve inside *consumer*.

    A build always sees itself. A buildSrc build sees sibling included
    builds only when the policy allows it, and is itself seen only by its
    owner. Root and included builds see every included build.
    """
    if consumer.name == producer.name:
        return True
    if consumer.kind is BuildKind.BUILD_SRC:
        if producer.kind is BuildKind.INCLUDED:
            return policy.included_builds_visible_to_build_src
        return False
    if producer.kind is BuildKind.BUILD_SRC:
        # buildSrc output is only on its owner's build classpath
        return producer.owner == consumer.name
    return True
