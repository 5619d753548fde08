"""
Document tree adapters

Exposes the read-only ``Node`` interface the extraction engine walks, plus
adapters for BeautifulSoup and lxml parsed documents.
"""

from .node import Node
from .selectors import SelectorError, class_selector, is_xpath
from .soup_adapter import SoupNode
from .lxml_adapter import LxmlNode

PARSERS = ('soup', 'lxml')


def load_document(html_content: str, base_url: str = '', parser: str = 'soup') -> Node:
    """Parse HTML with the requested adapter and return its root node"""
    if parser == 'soup':
        return SoupNode.from_html(html_content, base_url)
    if parser == 'lxml':
        return LxmlNode.from_html(html_content, base_url)
    raise ValueError(f"Unknown parser '{parser}', expected one of {PARSERS}")


__all__ = [
    "Node", "SoupNode", "LxmlNode", "SelectorError", "PARSERS",
    "class_selector", "is_xpath", "load_document",
]
