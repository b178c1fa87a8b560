"""Resolve nested builds (root, included, buildSrc) into a flat module graph."""

from nestbuild.config import ResolverConfig
from nestbuild.errors import (
    ConfigurationError,
    DependencyResolutionError,
    ModelFormatError,
    NestbuildError,
    ResolutionConflictError,
    VersionIncompatibilityError,
)
from nestbuild.loader import load_project_model, model_from_dict
from nestbuild.pipeline import ImportRun, resolve_project

__all__ = [
    "ConfigurationError",
    "DependencyResolutionError",
    "ImportRun",
    "ModelFormatError",
    "NestbuildError",
    "ResolutionConflictError",
    "ResolverConfig",
    "VersionIncompatibilityError",
    "load_project_model",
    "model_from_dict",
    "resolve_project",
]
