"""Map (build, project, source set) triples onto canonical module ids."""

from __future__ import annotations

import logging
from collections import defaultdict

from nestbuild.errors import ResolutionConflictError
from nestbuild.model import Build, Module, ResolvedProject, SourceSet

logger = logging.getLogger(__name__)


def module_id(build_name: str, project_path: str, source_set: str | None = None) -> str:
    """Return the canonical dotted module id.

    >>> module_id("project", "")
    'project'
    >>> module_id("project", "libs/core", "main")
    'project.libs.core.main'
    """
    parts = [build_name]
    if project_path:
        parts.append(project_path.replace("/", "."))
    if source_set:
        parts.append(source_set)
    return ".".join(parts)


class ModuleSynthesizer:
    """Create the modules of resolved projects.

    Every project gets a holder module named after the project, and every
    source set a module suffixed with its name. With
    ``merge_single_source_set`` a project with exactly one source set is
    collapsed into a single unsuffixed module.
    """

    def __init__(self, merge_single_source_set: bool = False):
        self.merge_single_source_set = merge_single_source_set

    def synthesize_id(self, build: Build, project: ResolvedProject, source_set: SourceSet) -> str:
        if self._merged(project):
            return module_id(build.name, project.path)
        return module_id(build.name, project.path, source_set.name)

    def synthesize(self, projects: dict[str, ResolvedProject]) -> list[Module]:
        modules: list[Module] = []
        for path, project in projects.items():
            build = project.build
            if self._merged(project):
                (source_set,) = project.source_sets
                modules.append(
                    Module(
                        id=module_id(build.name, path),
                        build=build.name,
                        project_path=path,
                        source_set=source_set.name,
                        source_roots=list(source_set.source_roots),
                        degraded=project.degraded,
                    )
                )
                continue

            modules.append(
                Module(
                    id=module_id(build.name, path),
                    build=build.name,
                    project_path=path,
                    degraded=project.degraded,
                )
            )
            for source_set in project.source_sets:
                modules.append(
                    Module(
                        id=self.synthesize_id(build, project, source_set),
                        build=build.name,
                        project_path=path,
                        source_set=source_set.name,
                        source_roots=list(source_set.source_roots),
                        degraded=project.degraded,
                    )
                )
        return modules

    def _merged(self, project: ResolvedProject) -> bool:
        return self.merge_single_source_set and len(project.source_sets) == 1


def check_unique(modules: list[Module]) -> dict[str, Module]:
    """Index *modules* by id; raise :class:`ResolutionConflictError` on collisions.

    Must only be called once every build has been synthesized.
    """
    origins: dict[str, list[str]] = defaultdict(list)
    for module in modules:
        origins[module.id].append(
            f"{module.build}:{module.project_path or ':'}:{module.source_set or '-'}"
        )
    collisions = {mid: found for mid, found in origins.items() if len(found) > 1}
    if collisions:
        raise ResolutionConflictError(collisions)

    logger.debug("Synthesized %d unique modules", len(modules))
    return {module.id: module for module in modules}
