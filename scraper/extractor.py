#!/usr/bin/env python3
"""
Smart Scraper - Extractor

Materializes the full row set of a detected list: one row per item, one
value per field, read with the same rules for every item.
"""

import logging
import time
from typing import Iterable, List, Optional

from dom.node import Node
from dom.selectors import SelectorError
from models import WHOLE_ITEM, FieldType, Row, ScrapedField
from scraper.list_identifier import ListContext
from scraper.text import normalize_text

logger = logging.getLogger(__name__)


def row_id(index: int) -> str:
    return f"row-{index}"


def find_items(ctx: ListContext) -> List[Node]:
    """Items matched by the item selector, direct children of the container first"""
    items = ctx.container.select_children(ctx.item_selector)
    if not items:
        logger.debug(f"No direct children match '{ctx.item_selector}', searching descendants")
        items = ctx.container.select_all(ctx.item_selector)
    return items


def locate(item: Node, field: ScrapedField) -> Optional[Node]:
    """Target node of ``field`` within one item"""
    if field.selector == WHOLE_ITEM:
        return item
    return item.select_first(field.selector)


def read_value(node: Optional[Node], field_type: FieldType) -> str:
    """Cell value of a located node; missing nodes read as an empty string"""
    if node is None:
        return ''

    if field_type == FieldType.IMAGE and node.tag == 'img':
        return node.resolve_url('src') or node.resolve_url('data-src')

    if field_type == FieldType.LINK and node.tag == 'a':
        return node.resolve_url('href')

    return normalize_text(node)


class Extractor:
    """Re-extracts every row of a list for an ordered set of fields"""

    def extract(self, ctx: ListContext, fields: Iterable[ScrapedField]) -> List[Row]:
        """
        Extract rows from all items of the list

        Args:
            ctx: Active list context
            fields: Fields in column order

        Returns:
            Rows in item order with positional ids ``row-0``, ``row-1``, ...
        """
        start_time = time.time()
        fields = list(fields)
        items = find_items(ctx)
        broken = set()

        rows = []
        for index, item in enumerate(items):
            row: Row = {'id': row_id(index)}
            for field in fields:
                if field.id in broken:
                    row[field.id] = ''
                    continue
                try:
                    row[field.id] = read_value(locate(item, field), field.type)
                except SelectorError as e:
                    logger.warning(f"Field '{field.name}' has an unusable selector: {e}")
                    broken.add(field.id)
                    row[field.id] = ''
            rows.append(row)

        logger.info(f"Extracted {len(rows)} rows x {len(fields)} fields "
                    f"from {ctx.describe()} in {time.time() - start_time:.3f}s")
        return rows


def extract_rows(ctx: ListContext, fields: Iterable[ScrapedField]) -> List[Row]:
    """Convenience function for a one-off extraction"""
    return Extractor().extract(ctx, fields)
