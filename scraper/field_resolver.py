#!/usr/bin/env python3
"""
Smart Scraper - Field Resolver

Turns a clicked node inside a list item into a column definition: a selector
relative to the item, a display name and a value type.
"""

import re
import threading
import time
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, TYPE_CHECKING

from config import config
from dom.node import Node
from dom.selectors import class_selector
from models import WHOLE_ITEM, FieldType, ScrapedField
from scraper.rules import IGNORED_CLASS_RULES, IgnoredClassRule, ignored_class_rule

if TYPE_CHECKING:
    from scraper.list_identifier import ListContext

logger = logging.getLogger(__name__)

TYPE_BY_TAG = {
    'img': FieldType.IMAGE,
    'a': FieldType.LINK,
}

_id_lock = threading.Lock()
_last_id_token = 0


def next_id_token() -> int:
    """Millisecond timestamp, bumped so that no two calls return the same value"""
    global _last_id_token
    with _id_lock:
        token = max(int(time.time() * 1000), _last_id_token + 1)
        _last_id_token = token
        return token


def make_field_id(name: str) -> str:
    slug = re.sub(r'[^a-z0-9]', '_', name.lower())
    return f"{slug}_{next_id_token()}"


def display_name(name: str) -> str:
    return name[:1].upper() + name[1:]


@dataclass(frozen=True)
class FieldCandidate:
    """Selector, name and type derived from one click"""
    selector: str
    name: str
    type: FieldType

    @property
    def display_name(self) -> str:
        return display_name(self.name)

    def to_field(self) -> ScrapedField:
        """Create a field with a freshly generated id"""
        return ScrapedField(
            id=make_field_id(self.name),
            name=self.display_name,
            selector=self.selector,
            type=self.type
        )


# A strategy returns (selector, raw name) or None to defer to the next one
Strategy = Callable[['FieldResolver', Node], Optional[Tuple[str, str]]]


class FieldResolver:
    """
    Derives column definitions from clicks

    Strategies run in priority order: semantic property classes, then the most
    specific remaining class, then the bare tag name.
    """

    def __init__(self, property_prefix: Optional[str] = None,
                 ignored_rules: Sequence[IgnoredClassRule] = IGNORED_CLASS_RULES):
        self.property_prefix = property_prefix or config.SEMANTIC_CLASS_PREFIX
        self.ignored_rules = ignored_rules
        self.strategies: Sequence[Strategy] = (
            FieldResolver._semantic_property,
            FieldResolver._specific_class,
            FieldResolver._tag_name,
        )

    def resolve(self, clicked: Node, ctx: 'ListContext',
                item: Optional[Node] = None) -> FieldCandidate:
        """
        Derive a field from a click

        Args:
            clicked: Node the user selected
            ctx: Active list context
            item: Enclosing item of the click (defaults to the context's anchor)

        Returns:
            FieldCandidate with a selector relative to the item
        """
        item = item if item is not None else ctx.anchor_item
        field_type = TYPE_BY_TAG.get(clicked.tag, FieldType.TEXT)

        if clicked == item:
            return FieldCandidate(WHOLE_ITEM, config.WHOLE_ITEM_LABEL, field_type)

        for strategy in self.strategies:
            result = strategy(self, clicked)
            if result is not None:
                selector, name = result
                logger.debug(f"Resolved {clicked.describe()} to '{selector}' via {strategy.__name__}")
                return FieldCandidate(selector, name, field_type)

        return FieldCandidate(clicked.tag, clicked.tag, field_type)

    def _semantic_property(self, node: Node) -> Optional[Tuple[str, str]]:
        for token in node.classes:
            if token.startswith(self.property_prefix):
                return class_selector(token), token[len(self.property_prefix):]
        return None

    def _specific_class(self, node: Node) -> Optional[Tuple[str, str]]:
        best = None
        for token in node.classes:
            rule = ignored_class_rule(token, self.ignored_rules)
            if rule is not None:
                logger.debug(f"Ignoring state class '{token}' ({rule.name})")
                continue
            if best is None or len(token) >= len(best):
                best = token

        if best is None:
            return None
        return class_selector(best), re.sub(r'[-_]', ' ', best)

    def _tag_name(self, node: Node) -> Optional[Tuple[str, str]]:
        return node.tag, node.tag
