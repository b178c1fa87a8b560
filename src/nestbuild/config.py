"""Resolver configuration from ``.nestbuild.toml`` or ``[tool.nestbuild]``."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from nestbuild.plugins import ContributionRule, rule_from_config

logger = logging.getLogger(__name__)


@dataclass
class ResolverConfig:
    merge_single_source_set: bool = False
    workers: int = 1
    extra_plugins: dict[str, ContributionRule] = field(default_factory=dict)
    tool_version: str | None = None  # overrides the model's version when set


def load_config(config_dir: Path) -> ResolverConfig:
    """Read resolver options from *config_dir*, or return defaults."""
    data = _read_config_table(config_dir)
    if data is None:
        return ResolverConfig()
    return config_from_dict(data)


def config_from_dict(data: dict) -> ResolverConfig:
    config = ResolverConfig()
    if "merge_single_source_set" in data:
        config.merge_single_source_set = bool(data["merge_single_source_set"])
    if "workers" in data:
        config.workers = max(1, int(data["workers"]))
    if "tool_version" in data:
        config.tool_version = str(data["tool_version"])
    for plugin_id, value in data.get("plugins", {}).items():
        try:
            config.extra_plugins[plugin_id] = rule_from_config(value)
        except ValueError as e:
            logger.warning("Ignoring plugin rule %s: %s", plugin_id, e)
    return config


def _read_config_table(config_dir: Path) -> dict | None:
    # Try .nestbuild.toml first
    nestbuild_toml = config_dir / ".nestbuild.toml"
    if nestbuild_toml.exists():
        try:
            with open(nestbuild_toml, "rb") as f:
                data = tomllib.load(f)
            return data.get("nestbuild", {})
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Could not read %s: %s", nestbuild_toml, e)

    # Fall back to [tool.nestbuild] in pyproject.toml
    pyproject = config_dir / "pyproject.toml"
    if pyproject.exists():
        try:
            with open(pyproject, "rb") as f:
                data = tomllib.load(f)
            return data.get("tool", {}).get("nestbuild")
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Could not read %s: %s", pyproject, e)

    return None
