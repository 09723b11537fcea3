"""Deterministic rule matching."""

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

from app.models.schemas import Rule


@dataclass(frozen=True, slots=True)
class CompiledRule:
    """Rule with its pattern compiled once."""

    pattern: Pattern[str]
    destination: str


def compile_rules(rules: Iterable[Rule]) -> List[CompiledRule]:
    """Compile rule patterns, preserving declared order."""
    return [CompiledRule(re.compile(rule.pattern), rule.destination) for rule in rules]


def match_rule(filename: str, rules: Iterable[CompiledRule]) -> Optional[str]:
    """
    Return the destination of the first rule matching ``filename``.

    Patterns are searched, not full-matched.

    Args:
        filename: Base name of the file
        rules: Compiled rules in declared order

    Returns:
        Destination folder or None if nothing matches
    """
    for rule in rules:
        if rule.pattern.search(filename):
            return rule.destination
    return None


class PatternMatcher:
    """Ordered rule list compiled at configuration load time."""

    def __init__(self, rules: Iterable[Rule]):
        self.rules = compile_rules(rules)

    def __len__(self) -> int:
        return len(self.rules)

    def match(self, filename: str) -> Optional[str]:
        return match_rule(filename, self.rules)
