"""Load a project model file (YAML, JSON or TOML) into :class:`ProjectModel`.

The file is what the build-tool invocation layer dumps after evaluating the
builds. Shape (YAML shown)::

    tool_version: "6.7"
    root:
      name: project
      root_path: /work/project
      settings:
        include_builds: [build-plugins]
        subprojects: [":app"]
      projects:
        "": {plugins: [java]}
        app:
          plugins: [java]
          dependencies:
            - {project: ":", scope: implementation}
            - testImplementation: "junit:junit:4.12"
      build_src:
        projects:
          "": {dependencies: [{file: libs/myLib.jar}]}
    builds:
      - name: build-plugins
        root_path: /work/project/build-plugins
        published_plugins:
          - id: myproject.my-test-plugin
            plugins: [java]
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path

import yaml

from nestbuild.errors import ModelFormatError
from nestbuild.model import (
    BuildDescription,
    DependencyDecl,
    DependencyKind,
    IncludedBuildRef,
    ProjectDescription,
    ProjectModel,
    PublishedArtifact,
    PublishedPlugin,
    Scope,
    SettingsModel,
)
from nestbuild.paths import canonical_path, normalize_project_path

logger = logging.getLogger(__name__)

# Gradle configuration names accepted as scopes.
_CONFIG_SCOPES = {
    "implementation": Scope.COMPILE,
    "api": Scope.COMPILE,
    "compile": Scope.COMPILE,
    "compileOnly": Scope.PROVIDED,
    "compileOnlyApi": Scope.PROVIDED,
    "provided": Scope.PROVIDED,
    "runtimeOnly": Scope.RUNTIME,
    "runtime": Scope.RUNTIME,
    "testImplementation": Scope.TEST,
    "testCompileOnly": Scope.TEST,
    "testRuntimeOnly": Scope.TEST,
    "testCompile": Scope.TEST,
    "test": Scope.TEST,
}

_TARGET_KEYS = {
    "project": DependencyKind.PROJECT_REF,
    "coordinates": DependencyKind.COORDINATES,
    "file": DependencyKind.FILE_REF,
}


def load_project_model(path: Path) -> ProjectModel:
    """Read *path* and build the project model; format follows the suffix."""
    try:
        if path.suffix in (".yaml", ".yml"):
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        elif path.suffix == ".toml":
            with open(path, "rb") as f:
                data = tomllib.load(f)
        else:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
    except (OSError, yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ModelFormatError(f"Could not read project model {path}: {e}") from e

    if not isinstance(data, dict):
        raise ModelFormatError(f"Project model {path} must be a mapping")
    logger.debug("Loaded project model from %s", path)
    return model_from_dict(data)


def model_from_dict(data: dict) -> ProjectModel:
    if "root" not in data:
        raise ModelFormatError("Project model has no 'root' build")
    root = build_from_dict(data["root"])

    builds: dict[str, BuildDescription] = {}
    raw_builds = data.get("builds") or []
    if isinstance(raw_builds, dict):
        raw_builds = [{"root_path": key, **value} for key, value in raw_builds.items()]
    for raw in raw_builds:
        build = build_from_dict(raw)
        builds[canonical_path(root.root_path, build.root_path)] = build

    return ProjectModel(
        tool_version=str(data.get("tool_version", "")),
        root=root,
        builds=builds,
    )


def build_from_dict(data: dict) -> BuildDescription:
    if not isinstance(data, dict):
        raise ModelFormatError(f"Build description must be a mapping, got {data!r}")

    raw_projects = data.get("projects") or {}
    if isinstance(raw_projects, list):
        raw_projects = {p.get("path", ""): p for p in raw_projects}
    projects = {}
    for path, raw in raw_projects.items():
        project = project_from_dict(path, raw or {})
        projects[project.path] = project

    build_src = data.get("build_src")
    return BuildDescription(
        name=str(data.get("name", "")),
        root_path=str(data.get("root_path", "")),
        settings=settings_from_dict(data.get("settings") or {}),
        projects=projects,
        published_plugins=[
            PublishedPlugin(
                id=str(_require(p, "id", "Published plugin")),
                plugins=list(p.get("plugins", [])),
                dependencies=[dependency_from_dict(d) for d in p.get("dependencies", [])],
            )
            for p in data.get("published_plugins", [])
        ],
        published_artifacts=[
            PublishedArtifact(coordinates=a, project="")
            if isinstance(a, str)
            else PublishedArtifact(
                coordinates=str(_require(a, "coordinates", "Published artifact")),
                project=a.get("project", ""),
            )
            for a in data.get("published_artifacts", [])
        ],
        build_src=build_from_dict(build_src) if build_src is not None else None,
        has_build_script=bool(data.get("has_build_script", True)),
        has_sources=bool(data.get("has_sources", False)),
    )


def settings_from_dict(data: dict) -> SettingsModel:
    refs = []
    for entry in data.get("include_builds", []):
        if isinstance(entry, str):
            refs.append(IncludedBuildRef(path=entry))
        else:
            path = _require(entry, "path", "Included build")
            refs.append(IncludedBuildRef(path=str(path), name=entry.get("name")))
    return SettingsModel(
        included_builds=refs,
        subprojects=[str(p) for p in data.get("subprojects", [])],
    )


def project_from_dict(path: str, data: dict) -> ProjectDescription:
    return ProjectDescription(
        path=normalize_project_path(str(data.get("path", path))),
        plugins=list(data.get("plugins", [])),
        dependencies=[dependency_from_dict(d) for d in data.get("dependencies", [])],
        source_roots={k: list(v) for k, v in data.get("source_roots", {}).items()},
    )


def dependency_from_dict(data: dict | str) -> DependencyDecl:
    """Parse one dependency entry.

    Accepts ``"g:a:v"``, ``{configuration: "g:a:v"}`` and the explicit form
    ``{project|coordinates|file: target, scope: ..., build: ..., source_set: ...}``.
    """
    if isinstance(data, str):
        return DependencyDecl(DependencyKind.COORDINATES, data)
    if not isinstance(data, dict):
        raise ModelFormatError(f"Unsupported dependency entry: {data!r}")

    if len(data) == 1:
        ((key, value),) = data.items()
        if key in _CONFIG_SCOPES and isinstance(value, str):
            return DependencyDecl(DependencyKind.COORDINATES, value, _parse_scope(key))

    kinds = [key for key in _TARGET_KEYS if key in data]
    if len(kinds) != 1:
        raise ModelFormatError(
            f"Dependency entry needs exactly one of {sorted(_TARGET_KEYS)}: {data!r}"
        )
    key = kinds[0]
    return DependencyDecl(
        kind=_TARGET_KEYS[key],
        target=str(data[key]),
        scope=_parse_scope(data.get("scope", "compile")),
        build=data.get("build"),
        source_set=data.get("source_set"),
    )


def _parse_scope(value: str) -> Scope:
    if value in _CONFIG_SCOPES:
        return _CONFIG_SCOPES[value]
    try:
        return Scope(value.lower())
    except ValueError:
        raise ModelFormatError(f"Unknown dependency scope {value!r}") from None


def _require(data: dict, key: str, what: str):
    if not isinstance(data, dict) or key not in data:
        raise ModelFormatError(f"{what} entry needs a {key!r} key: {data!r}")
    return data[key]
