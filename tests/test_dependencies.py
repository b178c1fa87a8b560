"""Tests for dependency edge resolution."""

from builders import ROOT, build, build_src, coords, file_ref, model, no_metadata, project, project_ref
from nestbuild.config import ResolverConfig
from nestbuild.model import (
    DependencyDecl,
    DependencyKind,
    DiagnosticKind,
    LibraryLevel,
    PublishedArtifact,
    Scope,
)
from nestbuild.pipeline import resolve_project


def _resolve(m, **config):
    return resolve_project(m, ResolverConfig(**config), inspector=no_metadata)


def _multi(*projects, **kwargs):
    return build(
        "project",
        ROOT,
        list(projects),
        subprojects=[p.path for p in projects if p.path],
        **kwargs,
    )


def test_test_source_set_depends_on_main():
    result = _resolve(model("7.0", _multi(project(plugins=["java"]))))
    assert result.modules["project.test"].module_dependencies == {"project.main"}
    assert result.modules["project.main"].module_dependencies == set()


def test_project_ref_targets_main_source_set():
    root = _multi(
        project(plugins=["java"]),
        project("core", plugins=["java-library"]),
        project("app", plugins=["java"], deps=[project_ref(":core")]),
    )
    result = _resolve(model("7.0", root))
    assert "project.core.main" in result.modules["project.app.main"].module_dependencies
    assert "project.core.main" in result.modules["project.app.test"].module_dependencies


def test_project_ref_to_project_without_source_sets_targets_holder():
    root = _multi(
        project("platform"),
        project("app", plugins=["java"], deps=[project_ref(":platform")]),
    )
    result = _resolve(model("7.0", root))
    assert "project.platform" in result.modules["project.app.main"].module_dependencies


def test_missing_project_ref_is_reported_and_degrades():
    root = _multi(project("app", plugins=["java"], deps=[project_ref(":nope")]))
    result = _resolve(model("7.0", root))
    [diagnostic] = result.diagnostics
    assert diagnostic.kind is DiagnosticKind.UNRESOLVED_PROJECT
    assert diagnostic.module_id == "project.app.main"
    assert result.modules["project.app.main"].degraded
    assert result.modules["project.app.test"].degraded
    assert not result.modules["project.app"].degraded


def test_unknown_target_build_is_reported():
    root = _multi(project(plugins=["java"], deps=[project_ref(":", build="ghost")]))
    result = _resolve(model("7.0", root))
    assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNRESOLVED_PROJECT]
    assert "ghost" in result.diagnostics[0].message


def test_malformed_coordinates_are_reported():
    root = _multi(project(plugins=["java"], deps=[coords("not-a-coordinate")]))
    result = _resolve(model("7.0", root))
    assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNRESOLVED_ARTIFACT]
    assert result.libraries == {}


def test_scopes_are_kept_on_library_edges():
    root = _multi(
        project(
            plugins=["java"],
            deps=[
                coords("org.slf4j:slf4j-api:2.0.9"),
                coords("ch.qos.logback:logback-classic:1.4.11", Scope.RUNTIME),
                coords("org.junit.jupiter:junit-jupiter:5.10.0", Scope.TEST),
            ],
        )
    )
    result = _resolve(model("7.0", root))
    main = result.modules["project.main"].library_dependencies
    test = result.modules["project.test"].library_dependencies
    assert main == {
        ("coordinates:org.slf4j:slf4j-api:2.0.9", Scope.COMPILE),
        ("coordinates:ch.qos.logback:logback-classic:1.4.11", Scope.RUNTIME),
    }
    assert ("coordinates:org.junit.jupiter:junit-jupiter:5.10.0", Scope.TEST) in test
    assert len(test) == 3


def test_explicit_source_set_override():
    decl = DependencyDecl(DependencyKind.COORDINATES, "g:a:1", Scope.COMPILE, source_set="test")
    result = _resolve(model("7.0", _multi(project(plugins=["java"], deps=[decl]))))
    assert result.modules["project.main"].library_dependencies == set()
    assert result.modules["project.test"].library_dependencies == {("coordinates:g:a:1", Scope.COMPILE)}


def test_dependencies_without_source_sets_attach_to_holder():
    result = _resolve(model("7.0", _multi(project(deps=[coords("g:a:1")]))))
    assert result.modules["project"].library_dependencies == {("coordinates:g:a:1", Scope.COMPILE)}


def test_file_ref_relative_to_project_directory():
    root = _multi(project("app", plugins=["java"], deps=[file_ref("../libs/shared.jar")]))
    result = _resolve(model("7.0", root))
    [library] = result.library_deps("project.app.main")
    assert library.file_path == f"{ROOT}/libs/shared.jar"
    assert library.presentable_name == f"{ROOT}/libs/shared.jar"
    assert library.level is LibraryLevel.PROJECT


def test_class_directory_is_a_shared_library():
    root = _multi(project(plugins=["java"], deps=[file_ref("build/extra-classes")]))
    result = _resolve(model("7.0", root))
    [library] = result.library_deps("project.main")
    assert library.level is LibraryLevel.PROJECT
    assert result.library_deps("project.test") == [library]


def test_same_directory_from_two_projects_is_one_library():
    root = _multi(
        project("a", plugins=["java"], deps=[file_ref("../shared/classes")]),
        project("b", plugins=["java"], deps=[file_ref("../shared/classes")]),
    )
    result = _resolve(model("7.0", root))
    assert list(result.libraries) == [f"file:{ROOT}/shared/classes"]
    [library] = result.libraries.values()
    assert library.level is LibraryLevel.PROJECT
    assert result.library_deps("project.a.main") == [library]
    assert result.library_deps("project.b.main") == [library]


def test_coordinates_substituted_by_included_build():
    lib = build(
        "lib",
        f"{ROOT}/lib",
        [project(plugins=["java-library"])],
        published_artifacts=[PublishedArtifact("com.example:lib")],
    )
    root = _multi(
        project(plugins=["java"], deps=[coords("com.example:lib:1.0")]),
        include_builds=["lib"],
    )
    result = _resolve(model("7.0", root, lib))
    assert "lib.main" in result.modules["project.main"].module_dependencies
    assert result.libraries == {}


def test_artifact_published_only_by_invisible_sibling_is_unresolved():
    lib = build(
        "lib",
        f"{ROOT}/lib",
        [project(plugins=["java-library"])],
        published_artifacts=[PublishedArtifact("com.example:lib")],
    )
    bs = build_src([project(deps=[coords("com.example:lib:1.0")])])
    root = _multi(project(), include_builds=["lib"], build_src=bs)

    hidden = _resolve(model("6.6", root, lib))
    assert [d.kind for d in hidden.diagnostics] == [DiagnosticKind.UNRESOLVED_ARTIFACT]
    assert hidden.modules["project.buildSrc.main"].degraded
    assert hidden.libraries == {}

    visible = _resolve(model("6.7", root, lib))
    assert "lib.main" in visible.modules["project.buildSrc.main"].module_dependencies
    assert visible.diagnostics == []


def test_merged_modules_resolve_edges_to_merged_ids():
    root = _multi(
        project("api", plugins=["plugin-packaging"]),
        project("app", plugins=["plugin-packaging"], deps=[project_ref(":api"), coords("g:a:1")]),
    )
    result = _resolve(model("7.0", root), merge_single_source_set=True)
    assert result.modules["project.app"].module_dependencies == {"project.api"}
    assert result.modules["project.app"].library_dependencies == {("coordinates:g:a:1", Scope.COMPILE)}
