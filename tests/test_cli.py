"""Tests for the command-line entry point."""

import json

import pytest

from nestbuild.cli import main

MODEL = {
    "tool_version": "5.6",
    "root": {
        "name": "project",
        "root_path": "/work/project",
        "projects": {"": {"plugins": ["java"]}},
        "build_src": {"has_sources": True, "has_build_script": False},
    },
}


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "model.json"
    path.write_text(json.dumps(MODEL))
    return path


def test_json_report_to_file(model_file, tmp_path):
    out = tmp_path / "out" / "report.json"
    main([str(model_file), "-o", str(out)])
    report = json.loads(out.read_text())
    assert report["state"] == "resolved"
    assert report["policy"] == "<6.0"
    assert sorted(report["modules"]) == [
        "project",
        "project.buildSrc",
        "project.buildSrc.main",
        "project.buildSrc.test",
        "project.main",
        "project.test",
    ]
    assert report["modules"]["project.test"]["module_dependencies"] == ["project.main"]


def test_json_report_to_stdout(model_file, capsys):
    main([str(model_file)])
    assert json.loads(capsys.readouterr().out)["builds"][1]["kind"] == "buildSrc"


def test_tool_version_override(model_file, capsys):
    main([str(model_file), "--tool-version", "6.7", "--summary"])
    out = capsys.readouterr().out
    assert out.startswith("2 builds, 6 modules, 0 libraries")
    assert "  project.buildSrc.main" in out


def test_missing_model_exits_nonzero(tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "absent.json")])
    assert excinfo.value.code == 1


def test_malformed_model_exits_nonzero(tmp_path):
    path = tmp_path / "model.json"
    broken = {"root": {**MODEL["root"], "settings": {"include_builds": [{"name": "x"}]}}}
    path.write_text(json.dumps(broken))
    with pytest.raises(SystemExit) as excinfo:
        main([str(path)])
    assert excinfo.value.code == 1
