"""
BeautifulSoup Tree Adapter

Wraps bs4 tags in the ``Node`` interface. All CSS matching and lookups go
through soupsieve, the selector engine behind ``Tag.select``.
"""

import logging
from typing import Iterator, List, Optional, Union

from bs4 import BeautifulSoup, Tag
from bs4.element import NavigableString, PreformattedString
import soupsieve

from dom.node import Node
from dom.selectors import SelectorError, is_xpath

logger = logging.getLogger(__name__)


def compile_css(selector: str):
    """Compile a CSS selector with soupsieve"""
    try:
        return soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as e:
        raise SelectorError(f"Invalid CSS selector '{selector}': {e}") from e


class SoupNode(Node):
    """Node backed by a ``bs4.Tag``"""

    def __init__(self, element: Tag, base_url: str = ''):
        self._element = element
        self.base_url = base_url

    @classmethod
    def from_html(cls, html_content: str, base_url: str = '',
                  parser: str = 'html.parser') -> 'SoupNode':
        """Parse HTML and return the document element (or the first top-level tag)"""
        soup = BeautifulSoup(html_content, parser)
        root = soup.find('html') or soup.find(True)
        if root is None:
            raise ValueError("HTML content contains no elements")
        return cls(root, base_url)

    def _wrap(self, element: Tag) -> 'SoupNode':
        return SoupNode(element, self.base_url)

    @property
    def element(self) -> Tag:
        return self._element

    @property
    def tag(self) -> str:
        return self._element.name.lower()

    @property
    def classes(self) -> List[str]:
        value = self._element.get('class')
        if not value:
            return []
        if isinstance(value, str):
            return value.split()
        return list(value)

    def attribute(self, name: str) -> Optional[str]:
        value = self._element.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return ' '.join(value)
        return value

    @property
    def parent(self) -> Optional['SoupNode']:
        parent = self._element.parent
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return self._wrap(parent)

    @property
    def children(self) -> List['SoupNode']:
        return [self._wrap(child) for child in self._element.children if isinstance(child, Tag)]

    def iter_content(self) -> Iterator[Union['SoupNode', str]]:
        for child in self._element.children:
            if isinstance(child, Tag):
                yield self._wrap(child)
            elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
                yield str(child)

    def find(self, query: str) -> Optional['SoupNode']:
        if is_xpath(query):
            raise SelectorError("XPath queries need the lxml adapter")
        return self.select_first(query)

    def matches(self, selector: str) -> bool:
        return compile_css(selector).match(self._element)

    def select_first(self, selector: str) -> Optional['SoupNode']:
        found = compile_css(selector).select_one(self._element)
        return self._wrap(found) if found is not None else None

    def select_all(self, selector: str) -> List['SoupNode']:
        return [self._wrap(found) for found in compile_css(selector).select(self._element)]

    def select_children(self, selector: str) -> List['SoupNode']:
        # filter() on a tag tests its direct children
        return [self._wrap(child) for child in compile_css(selector).filter(self._element)]
