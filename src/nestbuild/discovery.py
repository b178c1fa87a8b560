"""Discover the builds participating in an import run."""

from __future__ import annotations

import dataclasses
import logging
import posixpath

from nestbuild.errors import ConfigurationError
from nestbuild.model import (
    Build,
    BuildDescription,
    BuildKind,
    Diagnostic,
    DiagnosticKind,
    IncludedBuildRef,
    ProjectModel,
    Severity,
)
from nestbuild.paths import canonical_path, normalize_project_path
from nestbuild.policy import PolicyFlags

logger = logging.getLogger(__name__)

BUILD_SRC = "buildSrc"

# Root includes are level 1, includes declared by those builds level 2.
_MAX_INCLUDE_DEPTH = 2


def discover(
    model: ProjectModel,
    policy: PolicyFlags,
    diagnostics: list[Diagnostic] | None = None,
) -> list[Build]:
    """Return the ordered builds of *model*: root, included, then buildSrc.

    Raises :class:`ConfigurationError` when an ``includeBuild`` entry points
    at a path the project model has no description for.
    """
    if diagnostics is None:
        diagnostics = []

    root_path = canonical_path(model.root.root_path)
    root = Build(
        name=model.root.name or posixpath.basename(root_path),
        root_path=root_path,
        kind=BuildKind.ROOT,
        description=model.root,
    )
    builds: list[Build] = [root]
    by_path: dict[str, Build] = {root_path: root}

    # Breadth-first over includeBuild entries, bounded in depth.
    frontier: list[Build] = [root]
    depth = 1
    while frontier:
        next_frontier: list[Build] = []
        for owner in frontier:
            for ref in owner.settings.included_builds:
                path = canonical_path(owner.root_path, ref.path)
                if path in by_path:
                    logger.debug("Included build %s already discovered", path)
                    continue
                if depth > _MAX_INCLUDE_DEPTH:
                    diagnostics.append(
                        Diagnostic(
                            None,
                            DiagnosticKind.SKIPPED_BUILD,
                            f"Included build {ref.path!r} of {owner.name!r} is nested "
                            "too deeply to be visible and was skipped",
                            Severity.INFO,
                        )
                    )
                    continue
                build = _included_build(model, owner, ref, path)
                builds.append(build)
                by_path[path] = build
                next_frontier.append(build)
                logger.debug("Included build %s at %s", build.name, path)
        frontier = next_frontier
        depth += 1

    # buildSrc pass over every root/included build, in discovery order.
    for index, owner in enumerate(list(builds)):
        build_src = _build_src_for(owner, builds, by_path, policy, diagnostics)
        if build_src is None:
            continue
        if build_src.kind is BuildKind.INCLUDED:
            # The owner's 'buildSrc' subproject and the directory are one entity.
            builds[index] = owner = dataclasses.replace(
                owner, excluded_projects=owner.excluded_projects | {BUILD_SRC}
            )
            by_path[owner.root_path] = owner
        builds.append(build_src)
        by_path[build_src.root_path] = build_src

    logger.debug(
        "Discovered %d builds: %s", len(builds), [(b.name, b.kind.value) for b in builds]
    )
    return builds


def _included_build(
    model: ProjectModel, owner: Build, ref: IncludedBuildRef, path: str
) -> Build:
    description = model.builds.get(path)
    if description is None:
        build_src = owner.description.build_src
        if build_src is not None and _build_src_path(owner, build_src) == path:
            description = build_src
    if description is None:
        raise ConfigurationError(
            f"Build {owner.name!r} includes {ref.path!r} ({path}), "
            "but no build exists at that path"
        )
    name = ref.name or description.name or posixpath.basename(path)
    return Build(
        name=name,
        root_path=path,
        kind=BuildKind.INCLUDED,
        description=description,
    )


def _build_src_path(owner: Build, description: BuildDescription) -> str:
    return canonical_path(owner.root_path, description.root_path or BUILD_SRC)


def _build_src_for(
    owner: Build,
    builds: list[Build],
    by_path: dict[str, Build],
    policy: PolicyFlags,
    diagnostics: list[Diagnostic],
) -> Build | None:
    """Decide how *owner*'s on-disk buildSrc directory participates, if at all."""
    description = owner.description.build_src
    if description is None:
        return None
    if not description.is_recognizable():
        logger.debug("Skipping empty buildSrc of %s", owner.name)
        return None

    path = _build_src_path(owner, description)
    if path in by_path:
        logger.debug("buildSrc of %s is already an included build", owner.name)
        return None

    for other in builds:
        if (
            other.kind is BuildKind.INCLUDED
            and other.name == BUILD_SRC
            and other.root_path != path
        ):
            diagnostics.append(
                Diagnostic(
                    None,
                    DiagnosticKind.AMBIGUOUS_BUILD_SRC,
                    f"Included build {BUILD_SRC!r} at {other.root_path} is not the "
                    f"conventional buildSrc of {owner.name!r} ({path}); "
                    "both are imported",
                )
            )

    name = f"{owner.name}.{BUILD_SRC}"
    subprojects = {normalize_project_path(p) for p in owner.settings.subprojects}
    if BUILD_SRC in subprojects:
        if not policy.build_src_is_reserved_name:
            logger.debug(
                "buildSrc of %s is a regular subproject under this tool version",
                owner.name,
            )
            return None
        logger.debug(
            "buildSrc of %s is explicitly included; importing it once as an included build",
            owner.name,
        )
        return Build(
            name=name,
            root_path=path,
            kind=BuildKind.INCLUDED,
            description=description,
            owner=owner.name,
        )

    return Build(
        name=name,
        root_path=path,
        kind=BuildKind.BUILD_SRC,
        description=description,
        owner=owner.name,
    )
