"""Tests for version-gated policy flags."""

import pytest

from builders import ROOT, build
from nestbuild import policy
from nestbuild.errors import VersionIncompatibilityError
from nestbuild.model import Build, BuildKind


def _build(name, kind, owner=None):
    return Build(name, f"{ROOT}/{name}", kind, build(name, f"{ROOT}/{name}"), owner=owner)


@pytest.mark.parametrize(
    "version, reserved, visible",
    [
        ("4.10.3", False, False),
        ("5.6", False, False),
        ("6.0", True, False),
        ("6.6.1", True, False),
        ("6.7-rc-1", True, True),
        ("6.7", True, True),
        ("8.5", True, True),
    ],
)
def test_policy_table(version, reserved, visible):
    flags = policy.resolve(version)
    assert flags.build_src_is_reserved_name is reserved
    assert flags.included_builds_visible_to_build_src is visible


def test_unparseable_version_falls_back_to_newest():
    assert policy.resolve("nightly") == policy.newest()
    assert policy.resolve("") == policy.newest()


def test_parse_version_ignores_qualifiers():
    assert policy.parse_version("8.0-milestone-2") == (8, 0, 0)
    assert policy.parse_version("7.4.2") == (7, 4, 2)
    assert policy.parse_version("seven") is None


def test_ensure_known_accepts_supported_versions():
    policy.ensure_known("5.6")
    policy.ensure_known("8.5")


@pytest.mark.parametrize("version", ["nightly", "1.12", "10.1"])
def test_ensure_known_rejects_unsupported_versions(version):
    with pytest.raises(VersionIncompatibilityError):
        policy.ensure_known(version)


def test_build_src_sees_included_builds_only_when_policy_allows():
    build_src = _build("project.buildSrc", BuildKind.BUILD_SRC, owner="project")
    included = _build("build-plugins", BuildKind.INCLUDED)
    assert not policy.can_see(build_src, included, policy.resolve("6.6"))
    assert policy.can_see(build_src, included, policy.resolve("6.7"))


def test_build_src_is_only_visible_to_its_owner():
    root = _build("project", BuildKind.ROOT)
    other = _build("build-plugins", BuildKind.INCLUDED)
    build_src = _build("project.buildSrc", BuildKind.BUILD_SRC, owner="project")
    flags = policy.newest()
    assert policy.can_see(root, build_src, flags)
    assert not policy.can_see(other, build_src, flags)


def test_root_always_sees_included_builds():
    root = _build("project", BuildKind.ROOT)
    included = _build("lib", BuildKind.INCLUDED)
    assert policy.can_see(root, included, policy.resolve("5.0"))
