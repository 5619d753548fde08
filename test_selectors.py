"""Tests for selector building and CSS matching through the tree adapters"""

import pytest

from conftest import parse
from dom import SelectorError, class_selector, is_xpath


class TestClassSelector:
    def test_plain_tokens_are_untouched(self):
        assert class_selector('product-card') == '.product-card'
        assert class_selector('item_title', 'li') == 'li.item_title'

    def test_utility_class_characters_are_escaped(self):
        assert class_selector('md:flex') == '.md\\:flex'
        assert class_selector('w-1/2') == '.w-1\\/2'

    def test_leading_digit_is_escaped(self):
        assert class_selector('2xl') == '.\\32 xl'

    @pytest.mark.parametrize('token', ['md:flex', 'w-1/2', '2xl:grid', 'a.b', 'price[usd]'])
    def test_escaped_class_matches_its_node(self, parser, token):
        root = parse(f'<div><span class="other {token}">x</span></div>', parser)
        span = root.find('span')

        assert span.matches(class_selector(token))
        assert span.matches(class_selector(token, 'span'))
        assert not span.matches(class_selector(token, 'div'))
        assert root.select_first(class_selector(token)) == span


def test_xpath_detection():
    assert is_xpath('//li[2]/h3')
    assert is_xpath('/html/body')
    assert not is_xpath('li h3')


class TestMatching:
    def test_attribute_presence_and_value(self, page):
        link = page.find('a.details-link')
        assert link.matches('a[href]')
        assert link.matches('[href="/p/1"]')
        assert not link.matches('[href="/p/2"]')
        assert not link.matches('a[title]')

    def test_groups_and_pseudo_classes(self, page):
        price = page.find('p.price')
        assert price.matches('.title, .price')
        assert not price.matches('.title, h3')
        assert price.matches(':not(.x)')
        assert price.matches('li.featured > p')

    def test_combinators_from_an_item(self, page):
        item = page.find('li.featured')

        assert item.select_first('li h3').attribute('class') == 'property-title'
        assert item.select_first('ul li h3') == item.select_first('h3')
        assert len(page.find('body').select_all('ul > li')) == 3

    def test_search_excludes_the_node_itself(self, page):
        item = page.find('li.featured')
        assert item.select_first('li') is None
        assert item.select_all('.product-card') == []

    def test_select_children_only_looks_one_level_down(self, page):
        body = page.find('body')
        assert [node.attribute('id') for node in body.select_children('div')] == ['header', None]
        assert len(body.select_all('div')) == 4

    def test_closest_stops_before_boundary(self, page):
        title = page.find('li.featured h3')
        container = page.find('ul')

        assert title.closest('li', within=container) == title.parent
        assert title.closest('ul', within=container) is None
        assert title.closest('ul') == container

    @pytest.mark.parametrize('selector', ['h3[', '..x', 'li >'])
    def test_invalid_selector_raises(self, page, selector):
        item = page.find('li')
        with pytest.raises(SelectorError):
            item.select_first(selector)
        with pytest.raises(SelectorError):
            item.matches(selector)
