"""Render a ResolutionResult as a JSON report or a plain-text summary."""

from __future__ import annotations

import json
from pathlib import Path

from nestbuild.model import Library, Module, ResolutionResult


def _module_to_dict(module: Module) -> dict:
    d: dict = {
        "build": module.build,
        "project": module.project_path,
        "source_roots": module.source_roots,
        "module_dependencies": sorted(module.module_dependencies),
        "library_dependencies": [
            {"library": lib_id, "scope": scope.value}
            for lib_id, scope in sorted(
                module.library_dependencies, key=lambda dep: (dep[0], dep[1].value)
            )
        ],
    }
    if module.source_set is not None:
        d["source_set"] = module.source_set
    if module.degraded:
        d["degraded"] = True
    return d


def _library_to_dict(library: Library) -> dict:
    d: dict = {"name": library.presentable_name, "level": library.level.value}
    if library.coordinates is not None:
        d["coordinates"] = library.coordinates
    if library.file_path is not None:
        d["file"] = library.file_path
    return d


def result_to_dict(result: ResolutionResult) -> dict:
    return {
        "state": result.state.value,
        "policy": result.policy.label if result.policy is not None else None,
        "builds": [
            {"name": b.name, "kind": b.kind.value, "root_path": b.root_path}
            for b in result.builds
        ],
        "modules": {mid: _module_to_dict(m) for mid, m in sorted(result.modules.items())},
        "libraries": {
            lid: _library_to_dict(lib) for lid, lib in sorted(result.libraries.items())
        },
        "diagnostics": [
            {
                "module": d.module_id,
                "kind": d.kind.value,
                "severity": d.severity.value,
                "message": d.message,
            }
            for d in result.diagnostics
        ],
    }


def render_json(result: ResolutionResult, output_path: Path | None = None) -> str:
    """Serialize *result*; also write it to *output_path* when given."""
    text = json.dumps(result_to_dict(result), indent=2, sort_keys=True)
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text + "\n")
    return text


def render_summary(result: ResolutionResult) -> str:
    lines = [f"{len(result.builds)} builds, {len(result.modules)} modules, "
             f"{len(result.libraries)} libraries"]
    for mid, module in sorted(result.modules.items()):
        marker = " (degraded)" if module.degraded else ""
        lines.append(f"  {mid}{marker}")
        for dep in sorted(module.module_dependencies):
            lines.append(f"    -> {dep}")
        for lib_id, scope in sorted(
            module.library_dependencies, key=lambda dep: (dep[0], dep[1].value)
        ):
            library = result.libraries[lib_id]
            lines.append(f"    => {library.presentable_name} [{scope.value}, {library.level.value}]")
    for d in result.diagnostics:
        lines.append(f"{d.severity.value}: {d.kind.value}: {d.message}")
    return "\n".join(lines)
