"""
Scrape Session Service

Bundles a parsed document with the reconciler that scrapes it, so that the
CLI and the API can replay clicks given as CSS / XPath queries.
"""

import logging
import uuid
from typing import Optional

from config import config
from dom import Node, SelectorError, load_document
from models import ScrapedField
from scraper.export import ExportFormat, render
from scraper.reconciler import (
    DuplicateDecision,
    SelectionOutcome,
    SelectionReconciler,
    SelectionResult,
    SwitchDecision,
)
from services.column_cleaner import CleaningResult, ColumnCleaner, TextTransform

logger = logging.getLogger(__name__)


class ScrapeSession:
    """One document being scraped"""

    def __init__(self, root: Node, reconciler: Optional[SelectionReconciler] = None,
                 source: str = ''):
        self.id = uuid.uuid4().hex
        self.root = root
        self.reconciler = reconciler or SelectionReconciler()
        self.source = source
        self._cleaner: Optional[ColumnCleaner] = None

    @classmethod
    def from_html(cls, html_content: str, base_url: str = '', parser: Optional[str] = None,
                  reconciler: Optional[SelectionReconciler] = None) -> 'ScrapeSession':
        root = load_document(html_content, base_url, parser or config.HTML_PARSER)
        return cls(root, reconciler, source=base_url)

    @classmethod
    def from_url(cls, url: str, parser: Optional[str] = None,
                 wait_for_element: Optional[str] = None,
                 reconciler: Optional[SelectionReconciler] = None) -> 'ScrapeSession':
        """Render ``url`` with Selenium and start a session on the result"""
        from services.page_loader import PageLoaderService

        with PageLoaderService() as loader:
            result = loader.fetch_page(url, wait_for_element)

        if not result.success:
            raise RuntimeError(f"Failed to load page: {result.error}")

        return cls.from_html(result.html, result.final_url, parser, reconciler)

    def click(self, query: str,
              confirm_switch: Optional[SwitchDecision] = None,
              resolve_duplicate: Optional[DuplicateDecision] = None) -> SelectionResult:
        """Simulate a click on the first element matching a CSS or XPath query"""
        try:
            target = self.root.find(query)
        except SelectorError as e:
            logger.warning(f"Cannot locate click target: {e}")
            return SelectionResult(SelectionOutcome.NO_LIST, message=str(e))

        if target is None:
            logger.warning(f"No element matches '{query}'")
            return SelectionResult(SelectionOutcome.NO_LIST,
                                   message=f"No element matches '{query}'")

        return self.reconciler.handle_click(target, confirm_switch, resolve_duplicate)

    def field_by_name_or_id(self, key: str) -> Optional[ScrapedField]:
        field = self.reconciler.get_field(key)
        if field is not None:
            return field
        lowered = key.strip().lower()
        return next((f for f in self.reconciler.fields if f.name.lower() == lowered), None)

    def clean(self, transform: TextTransform, field_id: str,
              instruction: Optional[str] = None) -> CleaningResult:
        if self._cleaner is None or self._cleaner.transform is not transform:
            self._cleaner = ColumnCleaner(transform)
        return self._cleaner.clean(self.reconciler, field_id, instruction)

    def suggest_names(self, namer) -> int:
        """Rename fields from their sample values using ``namer.suggest_field_name``"""
        renamed = 0
        for field in self.reconciler.fields:
            if not field.sample_value:
                continue
            name = namer.suggest_field_name(field.sample_value)
            if name and self.reconciler.rename_field(field.id, name):
                renamed += 1
        return renamed

    def export(self, fmt: ExportFormat) -> str:
        return render(self.reconciler.rows, fmt, self.reconciler.fields)

    def summary(self) -> dict:
        """Serializable view of the session state"""
        ctx = self.reconciler.context
        return {
            'session_id': self.id,
            'source': self.source,
            'selecting': self.reconciler.selecting,
            'state': self.reconciler.state.value,
            'list': {
                'container': ctx.container.describe(),
                'item_selector': ctx.item_selector,
                'anchor_item': ctx.anchor_item.describe(),
            } if ctx else None,
            'fields': [field.model_dump(mode='json') for field in self.reconciler.fields],
            'rows': self.reconciler.rows,
            'highlight_selector': self.reconciler.highlight_selector(),
        }
