"""Override rules that turn confusables.txt entries into the confusable map."""

import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

import yaml

from .dataset import ConfusableEntry

logger = logging.getLogger("glyphskel.rules")

DEFAULT_OVERRIDES_PATH = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "data", "overrides.yaml"
)


@dataclass(frozen=True)
class SubstitutionRule:
    """Replace ``find`` with ``replace`` in targets that contain it."""

    rule_id: str
    description: str
    find: str
    replace: str
    skip_sources: frozenset = field(default_factory=frozenset)

    def matches(self, target: str) -> bool:
        return self.find in target

    def apply(self, entry: ConfusableEntry) -> Optional[str]:
        """Return the rewritten target, or None if the entry must be dropped."""
        if entry.source_text in self.skip_sources:
            return None
        return entry.target_text.replace(self.find, self.replace)


class OverrideRules:
    """Ordered substitution rules plus the fixed supplementary overrides."""

    def __init__(self, rules_path: str | None = None):
        if rules_path is None:
            rules_path = DEFAULT_OVERRIDES_PATH
        with open(rules_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        self.rules_path = rules_path
        self.rules = tuple(self._load_rule(r) for r in data.get("rules", []))
        self.supplementary = tuple(
            self._load_supplementary(pair) for pair in data.get("supplementary", [])
        )

    def resolve(self, entry: ConfusableEntry) -> Optional[str]:
        """Replacement string for one entry; None when the entry is dropped."""
        rule = self.first_match(entry)
        if rule is None:
            return entry.target_text
        return rule.apply(entry)

    def first_match(self, entry: ConfusableEntry) -> Optional[SubstitutionRule]:
        target = entry.target_text
        for rule in self.rules:
            if rule.matches(target):
                return rule
        return None

    def build_map(self, entries: Iterable[ConfusableEntry]) -> Mapping[str, str]:
        """Fold entries through the rules, then append the supplementary list."""
        mapping: dict[str, str] = {}
        hits: Counter = Counter()
        dropped = 0

        for entry in entries:
            rule = self.first_match(entry)
            if rule is None:
                mapping[entry.source_text] = entry.target_text
                continue
            hits[rule.rule_id] += 1
            replacement = rule.apply(entry)
            if replacement is None:
                dropped += 1
                continue
            mapping[entry.source_text] = replacement

        for source, replacement in self.supplementary:
            mapping[source] = replacement

        for rule_id, count in sorted(hits.items()):
            logger.info("Rule %s rewrote %d entries", rule_id, count)
        logger.info(
            "Built confusable map: %d entries (%d dropped, %d supplementary)",
            len(mapping), dropped, len(self.supplementary),
        )
        return MappingProxyType(mapping)

    def _load_rule(self, raw: dict) -> SubstitutionRule:
        try:
            return SubstitutionRule(
                rule_id=raw["id"],
                description=raw.get("description", ""),
                find=str(raw["find"]),
                replace=str(raw["replace"]),
                skip_sources=frozenset(raw.get("skip_sources", [])),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"{self.rules_path}: malformed rule {raw!r}: {e}") from e

    def _load_supplementary(self, pair) -> tuple[str, str]:
        if not isinstance(pair, list) or len(pair) != 2:
            raise ValueError(f"{self.rules_path}: malformed supplementary entry {pair!r}")
        source, replacement = str(pair[0]), str(pair[1])
        if len(source) != 1:
            raise ValueError(
                f"{self.rules_path}: supplementary source {source!r} is not a single character"
            )
        return source, replacement


def build_map(
    entries: Iterable[ConfusableEntry], rules: OverrideRules | None = None,
) -> Mapping[str, str]:
    """Build the confusable map using the packaged override rules by default."""
    if rules is None:
        rules = OverrideRules()
    return rules.build_map(entries)
