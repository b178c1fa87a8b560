"""Plugin contribution table: which plugins add which source sets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ContributesSourceSets:
    """Plugin adds the named source sets, compiled from the given languages."""

    names: tuple[str, ...]
    languages: tuple[str, ...] = ("java",)


@dataclass(frozen=True)
class NoContribution:
    """Plugin is known but adds no source sets (or is unknown)."""


ContributionRule = Union[ContributesSourceSets, NoContribution]

NO_CONTRIBUTION = NoContribution()

_MAIN_AND_TEST = ("main", "test")

BUILTIN_RULES: dict[str, ContributionRule] = {
    "java": ContributesSourceSets(_MAIN_AND_TEST),
    "java-library": ContributesSourceSets(_MAIN_AND_TEST),
    "application": ContributesSourceSets(_MAIN_AND_TEST),
    "java-gradle-plugin": ContributesSourceSets(_MAIN_AND_TEST),
    "groovy": ContributesSourceSets(_MAIN_AND_TEST, ("java", "groovy")),
    "groovy-gradle-plugin": ContributesSourceSets(_MAIN_AND_TEST, ("java", "groovy")),
    "scala": ContributesSourceSets(_MAIN_AND_TEST, ("java", "scala")),
    "kotlin": ContributesSourceSets(_MAIN_AND_TEST, ("java", "kotlin")),
    "org.jetbrains.kotlin.jvm": ContributesSourceSets(_MAIN_AND_TEST, ("java", "kotlin")),
    "kotlin-dsl": ContributesSourceSets(_MAIN_AND_TEST, ("java", "kotlin")),
    "plugin-packaging": ContributesSourceSets(("main",)),
    "java-platform": NO_CONTRIBUTION,
    "base": NO_CONTRIBUTION,
    "maven-publish": NO_CONTRIBUTION,
}


class PluginTable:
    """Lookup over the built-in rules plus configured extras."""

    def __init__(self, extra: dict[str, ContributionRule] | None = None):
        self._rules = dict(BUILTIN_RULES)
        if extra:
            self._rules.update(extra)

    def rule_for(self, plugin_id: str) -> ContributionRule:
        return self._rules.get(plugin_id, NO_CONTRIBUTION)

    def is_known(self, plugin_id: str) -> bool:
        return plugin_id in self._rules

    def contributions(self, plugin_ids: list[str]) -> dict[str, tuple[str, ...]]:
        """Merge the rules of *plugin_ids* into ``source set -> languages``.

        Source sets keep first-contribution order; languages accumulate.
        """
        merged: dict[str, list[str]] = {}
        for plugin_id in plugin_ids:
            rule = self.rule_for(plugin_id)
            if isinstance(rule, NoContribution):
                continue
            for name in rule.names:
                languages = merged.setdefault(name, [])
                for language in rule.languages:
                    if language not in languages:
                        languages.append(language)
        return {name: tuple(langs) for name, langs in merged.items()}


def rule_from_config(value: object) -> ContributionRule:
    """Build a rule from a config entry.

    Accepts a list of source set names, or a table with ``source_sets`` and
    optional ``languages``; an empty list means no contribution.
    """
    if isinstance(value, dict):
        names = tuple(value.get("source_sets", ()))
        languages = tuple(value.get("languages", ("java",)))
    elif isinstance(value, (list, tuple)):
        names = tuple(value)
        languages = ("java",)
    else:
        raise ValueError(f"Unsupported plugin rule: {value!r}")
    if not names:
        return NO_CONTRIBUTION
    return ContributesSourceSets(names, languages)
