"""Classify property names by the pattern-property rule they match.

The rule table is ordered: the first rule whose pattern matches a key wins.
The DomainBuilder uses it to turn pattern properties into catch-all bags,
and generated compilers instantiate the very same class from the table
rendered into their source, so build-time and parse-time classification
cannot drift apart.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .errors import ModelingError


@dataclass(frozen=True)
class PatternRule:
    """One (pattern, role) entry of the classifier table."""

    pattern: str
    role: str
    regex: re.Pattern[str] = field(compare=False, repr=False)

    def matches(self, key: str) -> bool:
        return self.regex.search(key) is not None


@dataclass
class SortedKeys:
    """The keys of one document map, split by how they are consumed."""

    fields: dict[str, Any]
    bags: dict[str, list[tuple[str, Any]]]
    unknown: list[tuple[str, Any]]


class PropertyClassifier:
    """Ordered pattern -> role table shared by builder and compilers."""

    def __init__(self, pairs: Iterable[tuple[str, str]]) -> None:
        rules: list[PatternRule] = []
        roles: set[str] = set()
        for pattern, role in pairs:
            if any(rule.pattern == pattern for rule in rules):
                raise ModelingError("patterns", f"duplicate pattern {pattern!r}")
            if role in roles:
                raise ModelingError("patterns", f"duplicate role {role!r}")
            try:
                regex = re.compile(pattern)
            except re.error as err:
                raise ModelingError("patterns", f"malformed pattern {pattern!r}: {err}") from err
            rules.append(PatternRule(pattern, role, regex))
            roles.add(role)
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[PatternRule, ...]:
        return self._rules

    def pairs(self) -> tuple[tuple[str, str], ...]:
        """Return the table as plain (pattern, role) data."""
        return tuple((rule.pattern, rule.role) for rule in self._rules)

    def rule_for(self, pattern: str) -> PatternRule | None:
        """Return the rule declared for an exact pattern string."""
        for rule in self._rules:
            if rule.pattern == pattern:
                return rule
        return None

    def classify(self, key: str, patterns: Sequence[str] | None = None) -> PatternRule | None:
        """Return the first rule matching key, or None for a plain field.

        When patterns is given only those rules take part, still in table
        order.
        """
        for rule in self._rules:
            if patterns is not None and rule.pattern not in patterns:
                continue
            if rule.matches(key):
                return rule
        return None

    def sort_keys(
        self,
        mapping: Mapping[str, Any],
        fields: Sequence[str],
        patterns: Sequence[str],
    ) -> SortedKeys:
        """Split a document map into declared fields, bags and leftovers.

        Pattern bags take precedence over declared fields, and each bag
        keeps the document order of its keys.
        """
        result = SortedKeys(fields={}, bags={p: [] for p in patterns}, unknown=[])
        for key, value in mapping.items():
            key = str(key)
            rule = self.classify(key, patterns) if patterns else None
            if rule is not None:
                result.bags[rule.pattern].append((key, value))
            elif key in fields:
                result.fields[key] = value
            else:
                result.unknown.append((key, value))
        return result

    def __repr__(self) -> str:
        return f"PropertyClassifier({list(self.pairs())!r})"
