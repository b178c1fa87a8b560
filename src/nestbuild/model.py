"""Data model for nested-build import: raw project model in, module graph out."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nestbuild.policy import PolicyFlags

# ---------------------------------------------------------------------------
# Input side: the already-evaluated project model
# ---------------------------------------------------------------------------


class DependencyKind(Enum):
    PROJECT_REF = "project"
    COORDINATES = "coordinates"
    FILE_REF = "file"


class Scope(Enum):
    COMPILE = "compile"
    RUNTIME = "runtime"
    PROVIDED = "provided"
    TEST = "test"


@dataclass(frozen=True)
class DependencyDecl:
    """A declared dependency of a project, before resolution."""

    kind: DependencyKind
    target: str  # project path, "group:artifact:version" or file path
    scope: Scope = Scope.COMPILE
    build: str | None = None  # target build name for cross-build project refs
    source_set: str | None = None  # overrides the scope-derived source set


@dataclass(frozen=True)
class IncludedBuildRef:
    """An ``includeBuild`` entry of a settings file."""

    path: str
    name: str | None = None


@dataclass
class SettingsModel:
    """Pre-parsed settings of one build."""

    included_builds: list[IncludedBuildRef] = field(default_factory=list)
    subprojects: list[str] = field(default_factory=list)


@dataclass
class ProjectDescription:
    path: str = ""
    plugins: list[str] = field(default_factory=list)
    dependencies: list[DependencyDecl] = field(default_factory=list)
    source_roots: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class PublishedPlugin:
    """A build-logic plugin a build publishes (e.g. a precompiled script plugin)."""

    id: str
    plugins: list[str] = field(default_factory=list)
    dependencies: list[DependencyDecl] = field(default_factory=list)


@dataclass(frozen=True)
class PublishedArtifact:
    coordinates: str  # "group:artifact"
    project: str = ""


@dataclass
class BuildDescription:
    """One build as evaluated by the external build tool."""

    name: str
    root_path: str
    settings: SettingsModel = field(default_factory=SettingsModel)
    projects: dict[str, ProjectDescription] = field(default_factory=dict)
    published_plugins: list[PublishedPlugin] = field(default_factory=list)
    published_artifacts: list[PublishedArtifact] = field(default_factory=list)
    build_src: BuildDescription | None = None
    has_build_script: bool = True
    has_sources: bool = False

    def is_recognizable(self) -> bool:
        """True if the directory holds anything the build tool would evaluate."""
        if self.has_build_script or self.has_sources:
            return True
        return any(
            p.plugins or p.dependencies for p in self.projects.values()
        )


@dataclass
class ProjectModel:
    """Complete input of one import run."""

    tool_version: str
    root: BuildDescription
    builds: dict[str, BuildDescription] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Resolved side
# ---------------------------------------------------------------------------


class BuildKind(Enum):
    ROOT = "root"
    INCLUDED = "included"
    BUILD_SRC = "buildSrc"


@dataclass(frozen=True)
class Build:
    """A participating build; immutable once discovered."""

    name: str
    root_path: str
    kind: BuildKind
    description: BuildDescription = field(compare=False, repr=False)
    owner: str | None = None  # name of the owning build for buildSrc
    excluded_projects: frozenset[str] = frozenset()

    @property
    def settings(self) -> SettingsModel:
        return self.description.settings


@dataclass(frozen=True)
class SourceSet:
    name: str
    source_roots: tuple[str, ...] = ()
    output_classpath_role: str = "production"  # "production" or "test"


@dataclass
class ResolvedProject:
    build: Build
    path: str
    applied_plugins: list[str] = field(default_factory=list)
    declared_dependencies: list[DependencyDecl] = field(default_factory=list)
    source_sets: list[SourceSet] = field(default_factory=list)
    degraded: bool = False

    def source_set(self, name: str) -> SourceSet | None:
        for ss in self.source_sets:
            if ss.name == name:
                return ss
        return None

    @property
    def directory(self) -> str:
        if not self.path:
            return self.build.root_path
        return f"{self.build.root_path.rstrip('/')}/{self.path}"


class LibraryLevel(Enum):
    PROJECT = "project"
    MODULE = "module"


@dataclass(frozen=True)
class Library:
    """A resolved artifact or file dependency."""

    id: str
    level: LibraryLevel
    presentable_name: str
    coordinates: str | None = None
    file_path: str | None = None


@dataclass
class Module:
    """The IDE-facing unit synthesized from (Build, Project, SourceSet)."""

    id: str
    build: str
    project_path: str
    source_set: str | None = None
    source_roots: list[str] = field(default_factory=list)
    module_dependencies: set[str] = field(default_factory=set)
    library_dependencies: set[tuple[str, Scope]] = field(default_factory=set)
    degraded: bool = False


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticKind(Enum):
    UNRESOLVED_PROJECT = "unresolved-project"
    UNRESOLVED_ARTIFACT = "unresolved-artifact"
    UNRESOLVED_PLUGIN = "unresolved-plugin"
    UNKNOWN_TOOL_VERSION = "unknown-tool-version"
    AMBIGUOUS_BUILD_SRC = "ambiguous-build-src"
    SKIPPED_BUILD = "skipped-build"
    DEPENDENCY_CYCLE = "dependency-cycle"


@dataclass(frozen=True)
class Diagnostic:
    module_id: str | None
    kind: DiagnosticKind
    message: str
    severity: Severity = Severity.WARNING


class ResolutionState(Enum):
    DISCOVERING = "discovering"
    TREE_RESOLVING = "tree-resolving"
    SYNTHESIZING = "synthesizing"
    DEPENDENCY_RESOLVING = "dependency-resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class ResolutionResult:
    """Everything an import run hands to the host IDE."""

    state: ResolutionState
    policy: PolicyFlags | None = None  # rule set chosen for the tool version
    builds: list[Build] = field(default_factory=list)
    modules: dict[str, Module] = field(default_factory=dict)
    libraries: dict[str, Library] = field(default_factory=dict)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def module_ids(self) -> list[str]:
        return sorted(self.modules)

    def library_deps(self, module_id: str) -> list[Library]:
        """Libraries *module_id* depends on, ordered by id (one entry per scope)."""
        deps = sorted(
            self.modules[module_id].library_dependencies,
            key=lambda dep: (dep[0], dep[1].value),
        )
        return [self.libraries[lib_id] for lib_id, _ in deps]
