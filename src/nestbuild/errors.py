"""Exception taxonomy for import runs.

``ConfigurationError`` and ``ResolutionConflictError`` abort a run.
``DependencyResolutionError`` and ``VersionIncompatibilityError`` are raised
locally and turned into diagnostics by the pipeline; they never escape it.
"""

from __future__ import annotations


class NestbuildError(Exception):
    """Base class for all resolver errors."""


class ConfigurationError(NestbuildError):
    """Malformed settings reference, e.g. ``includeBuild`` of a missing path."""


class ResolutionConflictError(NestbuildError):
    """Two (build, project, source set) triples synthesized the same module id."""

    def __init__(self, collisions: dict[str, list[str]]):
        self.collisions = collisions
        details = "; ".join(
            f"{module_id} <- {', '.join(origins)}"
            for module_id, origins in sorted(collisions.items())
        )
        super().__init__(f"Module id collision: {details}")


class DependencyResolutionError(NestbuildError):
    """A project or library target could not be resolved for one module."""

    def __init__(self, module_id: str, target: str, reason: str):
        self.module_id = module_id
        self.target = target
        self.reason = reason
        super().__init__(f"{module_id}: cannot resolve {target!r}: {reason}")


class VersionIncompatibilityError(NestbuildError):
    """Tool version outside the supported range; newest policy is used instead."""

    def __init__(self, tool_version: str, reason: str):
        self.tool_version = tool_version
        super().__init__(f"Tool version {tool_version!r} {reason}")


class ModelFormatError(NestbuildError):
    """Project model file could not be read or has an unexpected shape."""
