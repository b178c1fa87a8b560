"""Resolve each build's project hierarchy and the source sets its plugins add."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from nestbuild.model import (
    Build,
    BuildKind,
    Diagnostic,
    DiagnosticKind,
    ProjectDescription,
    PublishedPlugin,
    ResolvedProject,
    SourceSet,
)
from nestbuild.paths import canonical_path, normalize_project_path, parent_project_paths
from nestbuild.plugins import PluginTable
from nestbuild.policy import PolicyFlags, can_see
from nestbuild.synthesis import module_id

logger = logging.getLogger(__name__)


class PluginCatalog:
    """Plugins published by the builds of one run, keyed by plugin id."""

    def __init__(self, builds: list[Build]):
        self._plugins: dict[str, tuple[Build, PublishedPlugin]] = {}
        for build in builds:
            for plugin in build.description.published_plugins:
                if plugin.id in self._plugins:
                    logger.debug(
                        "Plugin %s published by both %s and %s; keeping the first",
                        plugin.id,
                        self._plugins[plugin.id][0].name,
                        build.name,
                    )
                    continue
                self._plugins[plugin.id] = (build, plugin)

    def lookup(self, plugin_id: str) -> tuple[Build, PublishedPlugin] | None:
        return self._plugins.get(plugin_id)


@dataclass
class BuildTree:
    """Output of tree resolution for one build."""

    build: Build
    projects: dict[str, ResolvedProject] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class ProjectTreeResolver:
    def __init__(self, policy: PolicyFlags, table: PluginTable, catalog: PluginCatalog):
        self.policy = policy
        self.table = table
        self.catalog = catalog

    def resolve(self, build: Build) -> BuildTree:
        """Walk *build*'s projects and resolve their plugins into source sets."""
        tree = BuildTree(build)
        descriptions = build.description.projects

        for path in _project_paths(build):
            description = descriptions.get(path) or ProjectDescription(path=path)
            tree.projects[path] = self._resolve_project(build, path, description, tree)

        ignored = sorted(set(descriptions) - set(tree.projects))
        if ignored:
            logger.debug(
                "%s: projects not declared in settings are ignored: %s",
                build.name,
                ignored,
            )

        logger.debug(
            "%s: %d projects, %d source sets",
            build.name,
            len(tree.projects),
            sum(len(p.source_sets) for p in tree.projects.values()),
        )
        return tree

    def _resolve_project(
        self,
        build: Build,
        path: str,
        description: ProjectDescription,
        tree: BuildTree,
    ) -> ResolvedProject:
        requested = list(description.plugins)
        if build.kind is BuildKind.BUILD_SRC and path == "":
            requested = list(self.policy.build_src_implicit_plugins) + requested

        project = ResolvedProject(
            build=build,
            path=path,
            declared_dependencies=list(description.dependencies),
        )

        queue = requested
        seen: set[str] = set()
        while queue:
            plugin_id = queue.pop(0)
            if plugin_id in seen:
                continue
            seen.add(plugin_id)
            project.applied_plugins.append(plugin_id)
            if self.table.is_known(plugin_id):
                continue

            published = self.catalog.lookup(plugin_id)
            if published is None:
                logger.debug("%s: plugin %s contributes nothing", build.name, plugin_id)
                continue

            producer, plugin = published
            if not can_see(build, producer, self.policy):
                project.degraded = True
                tree.diagnostics.append(
                    Diagnostic(
                        module_id(build.name, path),
                        DiagnosticKind.UNRESOLVED_PLUGIN,
                        f"Plugin {plugin_id!r} is published by build {producer.name!r}, "
                        f"which is not visible from {build.name!r}",
                    )
                )
                continue
            queue.extend(plugin.plugins)
            project.declared_dependencies.extend(plugin.dependencies)

        for name, languages in self.table.contributions(project.applied_plugins).items():
            roots = description.source_roots.get(name)
            if roots is None:
                roots = [f"src/{name}/{lang}" for lang in languages]
                roots.append(f"src/{name}/resources")
            project.source_sets.append(
                SourceSet(
                    name=name,
                    source_roots=tuple(
                        canonical_path(project.directory, root) for root in roots
                    ),
                    output_classpath_role="test" if "test" in name.lower() else "production",
                )
            )
        return project


def _project_paths(build: Build) -> list[str]:
    """Root plus settings subprojects (and their implicit parents), sorted."""
    paths = {""}
    for raw in build.settings.subprojects:
        path = normalize_project_path(raw)
        if not path:
            continue
        paths.add(path)
        paths.update(parent_project_paths(path))

    def excluded(path: str) -> bool:
        return any(
            path == ex or path.startswith(ex + "/") for ex in build.excluded_projects
        )

    return sorted(p for p in paths if not excluded(p))
