"""Tests for the click reconciliation state machine"""

import pytest
from pydantic import ValidationError

from models import WHOLE_ITEM, FieldType
from scraper.reconciler import (
    DuplicateChoice,
    ReconcilerState,
    SelectionOutcome,
    SelectionReconciler,
)


def click(reconciler, page, query, **kwargs):
    return reconciler.handle_click(page.find(query), **kwargs)


class TestFirstClick:
    def test_starts_a_list(self, page):
        reconciler = SelectionReconciler()
        assert reconciler.state == ReconcilerState.NO_CONTEXT

        result = click(reconciler, page, 'h3.property-title')

        assert result.outcome == SelectionOutcome.ADDED
        assert reconciler.state == ReconcilerState.HAS_CONTEXT
        assert reconciler.context.item_selector == 'li.product-card'
        assert [f.name for f in reconciler.fields] == ['Title']
        assert [row['id'] for row in reconciler.rows] == ['row-0', 'row-1', 'row-2']
        assert reconciler.column(result.field.id) == ['Widget', 'Gadget "Pro"', 'Gizmo']

    def test_sample_value_comes_from_first_row(self, page):
        reconciler = SelectionReconciler()
        result = click(reconciler, page, 'h3.property-title')
        assert result.field.sample_value == 'Widget'

    def test_first_click_never_asks_to_confirm(self, page):
        def refuse(current, proposed):
            raise AssertionError("no data to lose yet")

        reconciler = SelectionReconciler(confirm_switch=refuse)
        assert click(reconciler, page, 'h3.property-title').changed

    def test_no_list(self, parser):
        from dom import load_document

        page = load_document('<html><body><main><p id="lonely">Only</p></main></body></html>',
                             parser=parser)
        reconciler = SelectionReconciler()
        result = click(reconciler, page, '#lonely')

        assert result.outcome == SelectionOutcome.NO_LIST
        assert result.message
        assert reconciler.state == ReconcilerState.NO_CONTEXT
        assert reconciler.fields == []

    def test_selection_mode_off_ignores_clicks(self, page):
        reconciler = SelectionReconciler(selecting=False)
        assert click(reconciler, page, 'h3').outcome == SelectionOutcome.IGNORED
        assert reconciler.state == ReconcilerState.NO_CONTEXT

        assert reconciler.toggle_selection_mode() is True
        assert click(reconciler, page, 'h3.property-title').changed


class TestSameList:
    def test_click_in_another_item_adds_column(self, page):
        reconciler = SelectionReconciler()
        click(reconciler, page, 'h3.property-title')
        result = click(reconciler, page, 'li:nth-of-type(2) p')

        assert result.outcome == SelectionOutcome.ADDED
        assert [f.selector for f in reconciler.fields] == ['.property-title', '.price']
        assert reconciler.column(result.field.id) == ['$10', '$20', '']

    def test_new_column_leaves_existing_columns_alone(self, page):
        reconciler = SelectionReconciler()
        title = click(reconciler, page, 'h3.property-title').field
        before = reconciler.column(title.id)

        click(reconciler, page, 'a.details-link')
        assert reconciler.column(title.id) == before

    def test_types_are_inferred(self, page):
        reconciler = SelectionReconciler()
        click(reconciler, page, 'img.thumb')
        click(reconciler, page, 'a.details-link')
        assert [f.type for f in reconciler.fields] == [FieldType.IMAGE, FieldType.LINK]

    def test_whole_item_column(self, page):
        reconciler = SelectionReconciler()
        click(reconciler, page, 'h3.property-title')
        result = click(reconciler, page, 'li:nth-of-type(3)')

        assert result.field.selector == WHOLE_ITEM
        assert result.field.name == 'Item Content'
        assert reconciler.column(result.field.id)[2] == 'Gizmo View'

    def test_click_on_container_itself_is_not_an_item(self, page):
        reconciler = SelectionReconciler()
        click(reconciler, page, 'h3.property-title')
        fields_before = reconciler.fields

        result = click(reconciler, page, 'ul.products')

        assert result.outcome == SelectionOutcome.NO_ITEM
        assert reconciler.fields == fields_before

    def test_duplicate_selector_updates_by_default(self, page):
        reconciler = SelectionReconciler()
        first = click(reconciler, page, 'h3.property-title').field
        reconciler.rename_field(first.id, 'Product name')

        result = click(reconciler, page, 'li:nth-of-type(2) h3')

        assert result.outcome == SelectionOutcome.UPDATED
        assert len(reconciler.fields) == 1
        assert result.field.id == first.id
        assert result.field.name == 'Title'

    def test_duplicate_selector_can_be_added_again(self, page):
        seen = []

        def add_copy(existing, candidate):
            seen.append((existing.selector, candidate.selector))
            return DuplicateChoice.ADD

        reconciler = SelectionReconciler(resolve_duplicate=add_copy)
        first = click(reconciler, page, 'h3.property-title').field
        second = click(reconciler, page, 'li:nth-of-type(2) h3').field

        assert seen == [('.property-title', '.property-title')]
        assert first.id != second.id
        assert reconciler.column(first.id) == reconciler.column(second.id)

    def test_per_click_decision_overrides_default(self, page):
        reconciler = SelectionReconciler()
        click(reconciler, page, 'h3.property-title')
        result = click(reconciler, page, 'li:nth-of-type(2) h3',
                       resolve_duplicate=lambda existing, candidate: DuplicateChoice.ADD)

        assert result.outcome == SelectionOutcome.ADDED
        assert len(reconciler.fields) == 2


class TestListSwitch:
    def test_confirmed_switch_resets_fields(self, page):
        reconciler = SelectionReconciler()
        click(reconciler, page, 'h3.property-title')
        click(reconciler, page, 'p.price')

        result = click(reconciler, page, 'span.headline')

        assert result.outcome == SelectionOutcome.SWITCHED
        assert reconciler.context.item_selector == 'div.news-item'
        assert [f.selector for f in reconciler.fields] == ['.headline']
        assert reconciler.column(result.field.id) == ['Sale starts', 'New arrivals']

    def test_declined_switch_keeps_everything(self, page):
        asked = []

        def decline(current, proposed):
            asked.append((current.item_selector, proposed.item_selector))
            return False

        reconciler = SelectionReconciler(confirm_switch=decline)
        click(reconciler, page, 'h3.property-title')
        fields, rows, ctx = reconciler.fields, reconciler.rows, reconciler.context

        result = click(reconciler, page, 'span.headline')

        assert result.outcome == SelectionOutcome.CANCELLED
        assert asked == [('li.product-card', 'div.news-item')]
        assert reconciler.fields == fields
        assert reconciler.rows == rows
        assert reconciler.context is ctx

    def test_switch_without_fields_is_not_confirmed(self, page):
        def refuse(current, proposed):
            raise AssertionError("nothing to lose")

        reconciler = SelectionReconciler(confirm_switch=refuse)
        field = click(reconciler, page, 'h3.property-title').field
        reconciler.remove_field(field.id)

        result = click(reconciler, page, 'span.headline')
        assert result.outcome == SelectionOutcome.SWITCHED


class TestFieldOperations:
    def test_remove_field(self, page):
        reconciler = SelectionReconciler()
        title = click(reconciler, page, 'h3.property-title').field
        price = click(reconciler, page, 'p.price').field

        assert reconciler.remove_field(title.id) is True
        assert [f.id for f in reconciler.fields] == [price.id]
        assert all(title.id not in row for row in reconciler.rows)
        assert reconciler.remove_field('nope') is False

    def test_rename_field_keeps_values(self, page):
        reconciler = SelectionReconciler()
        title = click(reconciler, page, 'h3.property-title').field

        renamed = reconciler.rename_field(title.id, '  Product  ')
        assert renamed.name == 'Product'
        assert renamed.id == title.id
        assert reconciler.column(title.id)[0] == 'Widget'
        assert reconciler.rename_field(title.id, '   ') is None
        assert reconciler.rename_field('nope', 'x') is None

    def test_replace_column(self, page):
        reconciler = SelectionReconciler()
        price = click(reconciler, page, 'p.price').field

        reconciler.replace_column(price.id, ['10', '20', ''])
        assert reconciler.column(price.id) == ['10', '20', '']
        assert reconciler.get_field(price.id).sample_value == '10'

        with pytest.raises(ValueError):
            reconciler.replace_column(price.id, ['1'])
        assert reconciler.column(price.id) == ['10', '20', '']

        with pytest.raises(KeyError):
            reconciler.replace_column('nope', ['1', '2', '3'])

    def test_rows_are_copies(self, page):
        reconciler = SelectionReconciler()
        title = click(reconciler, page, 'h3.property-title').field
        reconciler.rows[0][title.id] = 'tampered'
        assert reconciler.column(title.id)[0] == 'Widget'

    def test_fields_cannot_be_changed_in_place(self, page):
        reconciler = SelectionReconciler()
        title = click(reconciler, page, 'h3.property-title').field

        with pytest.raises(ValidationError):
            reconciler.fields[0].name = 'tampered'
        with pytest.raises(ValidationError):
            title.selector = 'h3'
        assert reconciler.get_field(title.id).name == 'Title'
        assert reconciler.get_field(title.id).selector == '.property-title'

    def test_highlight_selector(self, page):
        reconciler = SelectionReconciler()
        assert reconciler.highlight_selector() is None

        click(reconciler, page, 'h3.property-title')
        click(reconciler, page, 'li.featured')
        assert reconciler.highlight_selector() == '.property-title, li.product-card'

    def test_refresh_reextracts(self, page):
        reconciler = SelectionReconciler()
        click(reconciler, page, 'h3.property-title')
        assert reconciler.refresh() == reconciler.rows
        assert len(reconciler.rows) == 3
