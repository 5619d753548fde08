"""
lxml Tree Adapter

Wraps ``lxml.html`` elements in the ``Node`` interface. Click targets can be
located with CSS or XPath through parsel, which also evaluates the CSS
selectors stored for fields. Selectors are evaluated against the whole
document, so combinators may reach above the node they are scoped to.
"""

import logging
from typing import Iterator, List, Optional, Set, Union

import cssselect
import parsel
from lxml import etree, html

from dom.node import Node
from dom.selectors import SelectorError, is_xpath

logger = logging.getLogger(__name__)


def _is_element(element) -> bool:
    # Comments and processing instructions carry a non-string tag
    return isinstance(element.tag, str)


def _elements(results: parsel.SelectorList) -> Iterator[html.HtmlElement]:
    for result in results:
        if isinstance(result.root, etree._Element) and _is_element(result.root):
            yield result.root


class LxmlNode(Node):
    """Node backed by an ``lxml.html.HtmlElement``"""

    def __init__(self, element: html.HtmlElement, base_url: str = ''):
        self._element = element
        self.base_url = base_url

    @classmethod
    def from_html(cls, html_content: str, base_url: str = '') -> 'LxmlNode':
        """Parse HTML (document or fragment) and return the ``<html>`` element"""
        if not html_content or not html_content.strip():
            raise ValueError("HTML content contains no elements")
        try:
            root = html.document_fromstring(html_content)
        except etree.ParserError as e:
            raise ValueError(f"Unable to parse HTML: {e}") from e
        return cls(root, base_url)

    def _wrap(self, element) -> 'LxmlNode':
        return LxmlNode(element, self.base_url)

    @property
    def element(self) -> html.HtmlElement:
        return self._element

    @property
    def tag(self) -> str:
        return self._element.tag.lower()

    @property
    def classes(self) -> List[str]:
        return (self._element.get('class') or '').split()

    def attribute(self, name: str) -> Optional[str]:
        return self._element.get(name)

    @property
    def parent(self) -> Optional['LxmlNode']:
        parent = self._element.getparent()
        return self._wrap(parent) if parent is not None else None

    @property
    def children(self) -> List['LxmlNode']:
        return [self._wrap(child) for child in self._element if _is_element(child)]

    def iter_content(self) -> Iterator[Union['LxmlNode', str]]:
        if self._element.text:
            yield self._element.text
        for child in self._element:
            if _is_element(child):
                yield self._wrap(child)
            if child.tail:
                yield child.tail

    def find(self, query: str) -> Optional['LxmlNode']:
        selector = parsel.Selector(root=self._element, type='html')
        try:
            results = selector.xpath(query) if is_xpath(query) else selector.css(query)
        except (cssselect.SelectorError, ValueError) as e:
            raise SelectorError(f"Invalid selector '{query}': {e}") from e

        for element in _elements(results):
            return self._wrap(element)
        return None

    def _matched(self, selector: str) -> Set[html.HtmlElement]:
        """Every element of the document matching a CSS selector"""
        root = parsel.Selector(root=self._element.getroottree().getroot(), type='html')
        try:
            return set(_elements(root.css(selector)))
        except (cssselect.SelectorError, ValueError) as e:
            raise SelectorError(f"Invalid CSS selector '{selector}': {e}") from e

    def matches(self, selector: str) -> bool:
        return self._element in self._matched(selector)

    def select_first(self, selector: str) -> Optional['LxmlNode']:
        return next(iter(self.select_all(selector)), None)

    def select_all(self, selector: str) -> List['LxmlNode']:
        matched = self._matched(selector)
        return [self._wrap(element) for element in self._element.iterdescendants()
                if element in matched]

    def select_children(self, selector: str) -> List['LxmlNode']:
        matched = self._matched(selector)
        return [self._wrap(child) for child in self._element if child in matched]
