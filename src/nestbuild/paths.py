"""Path normalization shared by discovery, tree and dependency resolution."""

from __future__ import annotations

import posixpath


def canonical_path(base: str, path: str = "") -> str:
    """Join *path* onto *base* and normalize, without touching the filesystem."""
    base = base.replace("\\", "/")
    path = path.replace("\\", "/")
    joined = posixpath.join(base, path) if path else base
    return posixpath.normpath(joined) if joined else "."


def normalize_project_path(path: str) -> str:
    """Turn ``:a:b``, ``a:b`` or ``/a/b/`` into ``a/b``; the root project is ``""``."""
    path = path.strip().replace(":", "/")
    return "/".join(part for part in path.split("/") if part)


def parent_project_paths(path: str) -> list[str]:
    """Return the ancestors of a project path, nearest last, root excluded.

    >>> parent_project_paths("a/b/c")
    ['a', 'a/b']
    """
    parts = path.split("/") if path else []
    return ["/".join(parts[:i]) for i in range(1, len(parts))]
