"""Resolve declared dependencies into module edges and shared libraries."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from nestbuild.errors import DependencyResolutionError
from nestbuild.libraries import LibraryTable, normalize_coordinates
from nestbuild.model import (
    Build,
    DependencyDecl,
    DependencyKind,
    Diagnostic,
    DiagnosticKind,
    Library,
    Module,
    ResolvedProject,
    Scope,
)
from nestbuild.paths import canonical_path, normalize_project_path
from nestbuild.policy import PolicyFlags, can_see
from nestbuild.project_tree import BuildTree
from nestbuild.synthesis import ModuleSynthesizer, module_id

logger = logging.getLogger(__name__)

MAIN = "main"
TEST = "test"


@dataclass(frozen=True)
class _Publication:
    build: Build
    project: str


class DependencyResolver:
    """Resolve the dependencies of one build at a time against the whole run.

    Only the modules of the build being resolved are mutated, so different
    builds may be resolved concurrently; the library table is the one
    shared structure and synchronizes itself.
    """

    def __init__(
        self,
        trees: list[BuildTree],
        modules: dict[str, Module],
        policy: PolicyFlags,
        libraries: LibraryTable,
        synthesizer: ModuleSynthesizer,
    ):
        self.modules = modules
        self.policy = policy
        self.libraries = libraries
        self.synthesizer = synthesizer
        self._trees = {tree.build.name: tree for tree in trees}
        self._publications: dict[str, list[_Publication]] = {}
        for tree in trees:
            for artifact in tree.build.description.published_artifacts:
                key = _group_artifact(artifact.coordinates)
                self._publications.setdefault(key, []).append(
                    _Publication(tree.build, normalize_project_path(artifact.project))
                )

    def resolve(self, tree: BuildTree) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for project in tree.projects.values():
            self._link_test_to_main(project)
            for decl in project.declared_dependencies:
                declaring = self._declaring_modules(project, decl)
                try:
                    self._apply(project, decl, declaring)
                except DependencyResolutionError as e:
                    kind = (
                        DiagnosticKind.UNRESOLVED_PROJECT
                        if decl.kind is DependencyKind.PROJECT_REF
                        else DiagnosticKind.UNRESOLVED_ARTIFACT
                    )
                    diagnostics.append(Diagnostic(e.module_id, kind, str(e)))
                    for mid in declaring:
                        self.modules[mid].degraded = True
                    logger.warning("%s", e)
        return diagnostics

    # -- declaring side ------------------------------------------------------

    def _declaring_modules(self, project: ResolvedProject, decl: DependencyDecl) -> list[str]:
        """Module ids that receive *decl*; ``main`` declarations also reach ``test``."""
        build = project.build
        name = decl.source_set or (TEST if decl.scope is Scope.TEST else MAIN)
        source_set = project.source_set(name)
        if source_set is None:
            if project.source_sets:
                logger.debug(
                    "%s has no source set %r; %s attaches to the project module",
                    module_id(build.name, project.path),
                    name,
                    decl.target,
                )
            return [module_id(build.name, project.path)]

        declaring = [self.synthesizer.synthesize_id(build, project, source_set)]
        test = project.source_set(TEST)
        if name == MAIN and test is not None:
            test_id = self.synthesizer.synthesize_id(build, project, test)
            if test_id not in declaring:
                declaring.append(test_id)
        return declaring

    def _link_test_to_main(self, project: ResolvedProject) -> None:
        main, test = project.source_set(MAIN), project.source_set(TEST)
        if main is None or test is None:
            return
        main_id = self.synthesizer.synthesize_id(project.build, project, main)
        test_id = self.synthesizer.synthesize_id(project.build, project, test)
        if main_id != test_id:
            self.modules[test_id].module_dependencies.add(main_id)

    # -- target side ---------------------------------------------------------

    def _apply(self, project: ResolvedProject, decl: DependencyDecl, declaring: list[str]) -> None:
        owner_id = declaring[0]
        if decl.kind is DependencyKind.PROJECT_REF:
            target = self._project_target(project, decl, owner_id)
            for mid in declaring:
                if target != mid:
                    self.modules[mid].module_dependencies.add(target)
            return

        if decl.kind is DependencyKind.COORDINATES:
            target_or_library = self._coordinates_target(project, decl, owner_id)
        else:
            target_or_library = self._file_library(project, decl)

        for mid in declaring:
            if isinstance(target_or_library, Library):
                self.modules[mid].library_dependencies.add((target_or_library.id, decl.scope))
            elif target_or_library != mid:
                self.modules[mid].module_dependencies.add(target_or_library)

    def _project_target(self, project: ResolvedProject, decl: DependencyDecl, owner_id: str) -> str:
        consumer = project.build
        target_build = consumer
        if decl.build is not None and decl.build != consumer.name:
            tree = self._trees.get(decl.build)
            if tree is None:
                raise DependencyResolutionError(owner_id, decl.target, f"unknown build {decl.build!r}")
            target_build = tree.build
            if not can_see(consumer, target_build, self.policy):
                raise DependencyResolutionError(
                    owner_id,
                    decl.target,
                    f"build {target_build.name!r} is not visible from {consumer.name!r}",
                )

        path = normalize_project_path(decl.target)
        target = self._trees[target_build.name].projects.get(path)
        if target is None:
            raise DependencyResolutionError(
                owner_id, decl.target, f"no project {path or ':'} in build {target_build.name!r}"
            )
        return self._primary_module(target)

    def _coordinates_target(
        self, project: ResolvedProject, decl: DependencyDecl, owner_id: str
    ) -> str | Library:
        coordinates = normalize_coordinates(decl.target)
        if coordinates is None:
            raise DependencyResolutionError(owner_id, decl.target, "malformed coordinates")

        publications = self._publications.get(_group_artifact(coordinates), [])
        visible = [p for p in publications if can_see(project.build, p.build, self.policy)]
        if visible:
            publication = visible[0]
            target = self._trees[publication.build.name].projects.get(publication.project)
            if target is None:
                raise DependencyResolutionError(
                    owner_id,
                    decl.target,
                    f"published by missing project {publication.project or ':'} "
                    f"of build {publication.build.name!r}",
                )
            logger.debug("%s: %s substituted by %s", owner_id, coordinates, publication.build.name)
            return self._primary_module(target)
        if publications:
            raise DependencyResolutionError(
                owner_id,
                decl.target,
                "only published by builds not visible from "
                f"{project.build.name!r}: {sorted(p.build.name for p in publications)}",
            )
        return self.libraries.for_coordinates(coordinates)

    def _file_library(self, project: ResolvedProject, decl: DependencyDecl) -> Library:
        file_path = canonical_path(project.directory, decl.target)
        return self.libraries.for_file(file_path)

    def _primary_module(self, target: ResolvedProject) -> str:
        main = target.source_set(MAIN)
        if main is None:
            return module_id(target.build.name, target.path)
        return self.synthesizer.synthesize_id(target.build, target, main)


def _group_artifact(coordinates: str) -> str:
    return ":".join(p.strip() for p in coordinates.split(":")[:2])
