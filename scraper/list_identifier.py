#!/usr/bin/env python3
"""
Smart Scraper - List Identifier

Finds the repeating "list item" above a clicked node: the nearest ancestor
that has same-tag siblings, together with the container enumerating those
items and a selector matching them.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from config import config
from dom.node import Node
from dom.selectors import class_selector
from scraper.rules import COMPONENT_CLASS_RULES, ClassScoreRule, best_component_class

logger = logging.getLogger(__name__)

# Walking stops once it reaches these elements
DOCUMENT_ROOT_TAGS = frozenset(['body', 'html'])


@dataclass(frozen=True)
class ListContext:
    """The active list: its container, an item selector and the item that triggered detection"""
    container: Node
    item_selector: str
    anchor_item: Node

    def describe(self) -> str:
        return f"{self.container.describe()} > {self.item_selector}"


class ListIdentifier:
    """
    Repeating-structure detector

    Matches items on tag plus the most component-like class shared by every
    sibling, which tolerates per-item variance such as badges or hover states.
    """

    def __init__(self, max_depth: Optional[int] = None,
                 score_rules: Sequence[ClassScoreRule] = COMPONENT_CLASS_RULES):
        self.max_depth = max_depth or config.MAX_ANCESTOR_DEPTH
        self.score_rules = score_rules

    def identify(self, start: Node) -> Optional[ListContext]:
        """
        Walk up from ``start`` looking for a repeated item

        Args:
            start: Node the user selected

        Returns:
            ListContext for the first ancestor (inclusive) with same-tag
            siblings, or None when nothing repeats within ``max_depth`` levels
        """
        current = start

        for depth in range(self.max_depth):
            if current is None or current.tag in DOCUMENT_ROOT_TAGS:
                break

            parent = current.parent
            if parent is None:
                break

            context = self._match_level(current, parent)
            if context is not None:
                logger.debug(f"Detected list {context.describe()} at depth {depth}")
                return context

            current = parent

        logger.debug(f"No repeated list found above {start.describe()}")
        return None

    def _match_level(self, current: Node, parent: Node) -> Optional[ListContext]:
        siblings = [child for child in parent.children
                    if child != current and child.tag == current.tag]
        if not siblings:
            return None

        selector = current.tag
        common = [token for token in current.classes
                  if all(sibling.has_class(token) for sibling in siblings)]
        if common:
            selector = class_selector(best_component_class(common, self.score_rules), current.tag)

        if not parent.select_children(selector):
            return None

        return ListContext(container=parent, item_selector=selector, anchor_item=current)


def identify_repeated_list(start: Node) -> Optional[ListContext]:
    """Convenience function using the configured depth"""
    return ListIdentifier().identify(start)
