"""Orchestrator: discover → resolve trees → synthesize → resolve dependencies."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

from nestbuild import policy as version_policy
from nestbuild.analysis import cycle_diagnostics
from nestbuild.config import ResolverConfig
from nestbuild.dependencies import DependencyResolver
from nestbuild.discovery import discover
from nestbuild.errors import NestbuildError, VersionIncompatibilityError
from nestbuild.libraries import LibraryTable, read_artifact_identity
from nestbuild.model import (
    Diagnostic,
    DiagnosticKind,
    Module,
    ProjectModel,
    ResolutionResult,
    ResolutionState,
)
from nestbuild.plugins import PluginTable
from nestbuild.project_tree import PluginCatalog, ProjectTreeResolver
from nestbuild.synthesis import ModuleSynthesizer, check_unique

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ImportRun:
    """One clean resolution of a project model; holds no state between runs."""

    def __init__(
        self,
        model: ProjectModel,
        config: ResolverConfig | None = None,
        *,
        inspector: Callable[[str], str | None] = read_artifact_identity,
    ):
        self.model = model
        self.config = config or ResolverConfig()
        self.inspector = inspector
        self.state = ResolutionState.DISCOVERING
        self.diagnostics: list[Diagnostic] = []

    def run(self) -> ResolutionResult:
        """Resolve the model; fatal errors mark the run failed and propagate."""
        try:
            return self._run()
        except NestbuildError:
            self._enter(ResolutionState.FAILED)
            raise

    def _run(self) -> ResolutionResult:
        tool_version = self.config.tool_version or self.model.tool_version
        policy = version_policy.resolve(tool_version)
        try:
            version_policy.ensure_known(tool_version)
        except VersionIncompatibilityError as e:
            logger.warning("%s; using %s rules", e, policy.label)
            self.diagnostics.append(
                Diagnostic(None, DiagnosticKind.UNKNOWN_TOOL_VERSION, f"{e}; using {policy.label} rules")
            )
        logger.debug("Tool version %s -> policy %s", tool_version, policy.label)

        self._enter(ResolutionState.DISCOVERING)
        builds = discover(self.model, policy, self.diagnostics)

        self._enter(ResolutionState.TREE_RESOLVING)
        tree_resolver = ProjectTreeResolver(
            policy, PluginTable(self.config.extra_plugins), PluginCatalog(builds)
        )
        trees = self._map(tree_resolver.resolve, builds)
        for tree in trees:
            self.diagnostics.extend(tree.diagnostics)

        self._enter(ResolutionState.SYNTHESIZING)
        synthesizer = ModuleSynthesizer(self.config.merge_single_source_set)
        all_modules: list[Module] = []
        for tree in trees:
            all_modules.extend(synthesizer.synthesize(tree.projects))
        # Barrier: uniqueness is only checked once every build is synthesized.
        modules = check_unique(all_modules)

        self._enter(ResolutionState.DEPENDENCY_RESOLVING)
        libraries = LibraryTable(self.inspector)
        resolver = DependencyResolver(trees, modules, policy, libraries, synthesizer)
        for found in self._map(resolver.resolve, trees):
            self.diagnostics.extend(found)
        self.diagnostics.extend(cycle_diagnostics(modules))

        self._enter(ResolutionState.RESOLVED)
        logger.info(
            "Resolved %d builds, %d modules, %d libraries, %d diagnostics",
            len(builds),
            len(modules),
            len(libraries),
            len(self.diagnostics),
        )
        return ResolutionResult(
            state=self.state,
            policy=policy,
            builds=builds,
            modules={mid: modules[mid] for mid in sorted(modules)},
            libraries=libraries.snapshot(),
            diagnostics=list(self.diagnostics),
        )

    def _map(self, fn: Callable[..., T], items: list) -> list[T]:
        """Apply *fn* per build, in parallel when configured; keeps input order."""
        if self.config.workers <= 1 or len(items) <= 1:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            return list(executor.map(fn, items))

    def _enter(self, state: ResolutionState) -> None:
        logger.debug("State %s -> %s", self.state.value, state.value)
        self.state = state


def resolve_project(
    model: ProjectModel,
    config: ResolverConfig | None = None,
    *,
    inspector: Callable[[str], str | None] = read_artifact_identity,
) -> ResolutionResult:
    """Run a full import of *model* and return the resolved module graph."""
    return ImportRun(model, config, inspector=inspector).run()
