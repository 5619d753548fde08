#!/usr/bin/env python3
"""
Smart Scraper - Selection Reconciler

State machine behind click-to-scrape. Each click either continues the active
list (adding or updating a column), starts a new list, or is ignored. The
reconciler owns the list context, the field set and the extracted rows.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from dom.node import Node
from models import WHOLE_ITEM, Row, ScrapedField
from scraper.extractor import Extractor
from scraper.field_resolver import FieldCandidate, FieldResolver
from scraper.list_identifier import ListContext, ListIdentifier

logger = logging.getLogger(__name__)


class ReconcilerState(str, Enum):
    NO_CONTEXT = 'no_context'
    HAS_CONTEXT = 'has_context'


class SelectionOutcome(str, Enum):
    IGNORED = 'ignored'        # selection mode is off
    NO_LIST = 'no_list'        # nothing repeats above the click
    NO_ITEM = 'no_item'        # click inside the container but outside any item
    CANCELLED = 'cancelled'    # list switch declined
    ADDED = 'added'
    UPDATED = 'updated'
    SWITCHED = 'switched'


class DuplicateChoice(str, Enum):
    UPDATE = 'update'
    ADD = 'add'


@dataclass
class SelectionResult:
    """Result of one click"""
    outcome: SelectionOutcome
    field: Optional[ScrapedField] = None
    message: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.outcome in (SelectionOutcome.ADDED, SelectionOutcome.UPDATED,
                                SelectionOutcome.SWITCHED)


# confirm_switch(current, proposed) -> accept?
SwitchDecision = Callable[[Optional[ListContext], ListContext], bool]
# resolve_duplicate(existing, candidate) -> update or add
DuplicateDecision = Callable[[ScrapedField, FieldCandidate], DuplicateChoice]


def accept_switch(current: Optional[ListContext], proposed: ListContext) -> bool:
    return True


def update_duplicate(existing: ScrapedField, candidate: FieldCandidate) -> DuplicateChoice:
    return DuplicateChoice.UPDATE


class SelectionReconciler:
    """
    Click-driven scraping session state

    Decisions that need the user (confirming a destructive list switch and
    choosing between updating or duplicating a column) are injected as
    callbacks so the reconciler stays independent of any UI.
    """

    def __init__(self,
                 confirm_switch: SwitchDecision = accept_switch,
                 resolve_duplicate: DuplicateDecision = update_duplicate,
                 identifier: Optional[ListIdentifier] = None,
                 resolver: Optional[FieldResolver] = None,
                 extractor: Optional[Extractor] = None,
                 selecting: bool = True):
        self.confirm_switch = confirm_switch
        self.resolve_duplicate = resolve_duplicate
        self.identifier = identifier or ListIdentifier()
        self.resolver = resolver or FieldResolver()
        self.extractor = extractor or Extractor()
        self.selecting = selecting

        self._context: Optional[ListContext] = None
        self._fields: List[ScrapedField] = []
        self._rows: List[Row] = []

    # State access

    @property
    def state(self) -> ReconcilerState:
        return ReconcilerState.HAS_CONTEXT if self._context else ReconcilerState.NO_CONTEXT

    @property
    def context(self) -> Optional[ListContext]:
        return self._context

    @property
    def fields(self) -> List[ScrapedField]:
        return list(self._fields)

    @property
    def rows(self) -> List[Row]:
        return [dict(row) for row in self._rows]

    def get_field(self, field_id: str) -> Optional[ScrapedField]:
        return next((field for field in self._fields if field.id == field_id), None)

    def set_selection_mode(self, selecting: bool) -> None:
        self.selecting = selecting

    def toggle_selection_mode(self) -> bool:
        self.selecting = not self.selecting
        return self.selecting

    # Clicks

    def handle_click(self, target: Node,
                     confirm_switch: Optional[SwitchDecision] = None,
                     resolve_duplicate: Optional[DuplicateDecision] = None) -> SelectionResult:
        """
        Reconcile one click with the current session

        Args:
            target: Node the user clicked
            confirm_switch: Overrides the switch decision for this click
            resolve_duplicate: Overrides the duplicate decision for this click

        Returns:
            SelectionResult describing what happened; failed clicks leave the
            context, fields and rows untouched
        """
        if not self.selecting:
            return SelectionResult(SelectionOutcome.IGNORED, message="Selection mode is off")

        confirm_switch = confirm_switch or self.confirm_switch
        resolve_duplicate = resolve_duplicate or self.resolve_duplicate

        ctx = self._context
        switched = False

        if ctx is not None and ctx.container.contains(target):
            item = self._resolve_item(ctx, target)
            if item is None:
                logger.info(f"Click on {target.describe()} is not inside an item of {ctx.describe()}")
                return SelectionResult(SelectionOutcome.NO_ITEM,
                                       message="Could not map the selection to a list item")
        else:
            found = self.identifier.identify(target)
            if found is None:
                logger.info(f"No repeated list pattern found for {target.describe()}")
                return SelectionResult(SelectionOutcome.NO_LIST,
                                       message="No repeated list pattern found")

            if ctx is None or found.container != ctx.container:
                if self._fields and not confirm_switch(ctx, found):
                    logger.info(f"List switch to {found.describe()} cancelled")
                    return SelectionResult(SelectionOutcome.CANCELLED,
                                           message="Switching lists was cancelled")
                switched = ctx is not None
                ctx = found
            item = found.anchor_item

        candidate = self.resolver.resolve(target, ctx, item)

        if ctx is not self._context:
            field = candidate.to_field()
            self._apply(ctx, [field])
            logger.info(f"New list {ctx.describe()} with first field '{field.name}'")
            outcome = SelectionOutcome.SWITCHED if switched else SelectionOutcome.ADDED
            return SelectionResult(outcome, field=self.get_field(field.id))

        existing = next((f for f in self._fields if f.selector == candidate.selector), None)
        if existing is not None and resolve_duplicate(existing, candidate) == DuplicateChoice.UPDATE:
            updated = existing.model_copy(update={'name': candidate.display_name,
                                                  'type': candidate.type})
            fields = [updated if f.id == existing.id else f for f in self._fields]
            self._apply(ctx, fields)
            logger.info(f"Updated field '{updated.id}' to '{updated.name}' ({updated.type.value})")
            return SelectionResult(SelectionOutcome.UPDATED, field=self.get_field(updated.id))

        field = candidate.to_field()
        self._apply(ctx, self._fields + [field])
        logger.info(f"Added field '{field.name}' ({field.selector})")
        return SelectionResult(SelectionOutcome.ADDED, field=self.get_field(field.id))

    def _resolve_item(self, ctx: ListContext, target: Node) -> Optional[Node]:
        item = target.closest(ctx.item_selector, within=ctx.container)
        if item is not None:
            return item

        # Selector drift: fall back to the container's direct child on the path
        current = target
        while current is not None and current != ctx.container:
            parent = current.parent
            if parent == ctx.container:
                return current
            current = parent
        return None

    # Field set operations

    def remove_field(self, field_id: str) -> bool:
        if self.get_field(field_id) is None:
            return False
        self._apply(self._context, [f for f in self._fields if f.id != field_id])
        logger.info(f"Removed field '{field_id}'")
        return True

    def rename_field(self, field_id: str, name: str) -> Optional[ScrapedField]:
        """Change a field's display name; values are keyed by id so rows stay as they are"""
        field = self.get_field(field_id)
        if field is None or not name.strip():
            return None
        renamed = field.model_copy(update={'name': name.strip()})
        self._fields = [renamed if f.id == field_id else f for f in self._fields]
        return renamed

    def refresh(self) -> List[Row]:
        """Re-run extraction, e.g. after the document changed"""
        if self._context is not None:
            self._apply(self._context, self._fields)
        return self.rows

    # Columns

    def column(self, field_id: str) -> List[str]:
        return [row.get(field_id, '') for row in self._rows]

    def replace_column(self, field_id: str, values: Sequence[str]) -> None:
        """Overwrite one column positionally; nothing is written on a length mismatch"""
        if self.get_field(field_id) is None:
            raise KeyError(field_id)
        if len(values) != len(self._rows):
            raise ValueError(f"Expected {len(self._rows)} values for '{field_id}', got {len(values)}")

        for row, value in zip(self._rows, values):
            row[field_id] = value
        self._refresh_samples()

    # Highlighting

    def highlight_selector(self) -> Optional[str]:
        """Combined selector for every extracted cell, for the renderer's overlay"""
        if not self._fields or self._context is None:
            return None
        return ', '.join(
            self._context.item_selector if field.selector == WHOLE_ITEM else field.selector
            for field in self._fields
        )

    # Internals

    def _apply(self, ctx: Optional[ListContext], fields: List[ScrapedField]) -> None:
        rows = self.extractor.extract(ctx, fields) if ctx is not None else []
        self._context = ctx
        self._fields = fields
        self._rows = rows
        self._refresh_samples()

    def _refresh_samples(self) -> None:
        first = self._rows[0] if self._rows else {}
        self._fields = [
            field.model_copy(update={'sample_value': first.get(field.id, '')})
            for field in self._fields
        ]
