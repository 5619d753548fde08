"""
Class Heuristic Tables

Ordered rule tables used by list detection and field naming. Rules are
evaluated in order; tune them here rather than in the matching code.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Pattern, Sequence


@dataclass(frozen=True)
class ClassScoreRule:
    """Bonus added to a class token's length when ``predicate`` holds"""
    name: str
    predicate: Callable[[str], bool]
    bonus: int


@dataclass(frozen=True)
class IgnoredClassRule:
    """Class tokens that describe interaction state rather than content"""
    name: str
    pattern: Pattern


# Component classes ("product-card", "item_title") beat utility classes ("p4", "flex")
COMPONENT_CLASS_RULES: Sequence[ClassScoreRule] = (
    ClassScoreRule('separator', lambda token: '-' in token or '_' in token, 10),
)

IGNORED_CLASS_RULES: Sequence[IgnoredClassRule] = (
    IgnoredClassRule('angular-binding', re.compile(r'^ng-binding$')),
    IgnoredClassRule('vue-html', re.compile(r'^v-html$')),
    IgnoredClassRule('active', re.compile(r'^active$')),
    IgnoredClassRule('selected', re.compile(r'^selected$')),
    IgnoredClassRule('hover', re.compile(r'^hover$')),
    IgnoredClassRule('focus', re.compile(r'^focus$')),
)


def component_class_score(token: str,
                          rules: Sequence[ClassScoreRule] = COMPONENT_CLASS_RULES) -> int:
    """Length of the token plus the bonus of the first rule it satisfies"""
    for rule in rules:
        if rule.predicate(token):
            return len(token) + rule.bonus
    return len(token)


def best_component_class(tokens: Iterable[str],
                         rules: Sequence[ClassScoreRule] = COMPONENT_CLASS_RULES) -> Optional[str]:
    """Highest scoring token; the earliest one wins ties"""
    best = None
    best_score = None
    for token in tokens:
        score = component_class_score(token, rules)
        if best_score is None or score > best_score:
            best, best_score = token, score
    return best


def ignored_class_rule(token: str,
                       rules: Sequence[IgnoredClassRule] = IGNORED_CLASS_RULES) -> Optional[IgnoredClassRule]:
    for rule in rules:
        if rule.pattern.match(token):
            return rule
    return None


def is_ignored_class(token: str,
                     rules: Sequence[IgnoredClassRule] = IGNORED_CLASS_RULES) -> bool:
    return ignored_class_rule(token, rules) is not None
