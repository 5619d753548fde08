"""
Text Normalization

Produces the visible text of a node as a single line. Rendered text is used
when the tree has a layout engine behind it; otherwise the markup is walked
manually, dropping invisible subtrees and spacing out block elements so that
``<h3>Title</h3><p>Price</p>`` reads "Title Price" rather than "TitlePrice".
"""

import re
from typing import Iterator

from dom.node import Node

BLOCK_TAGS = frozenset([
    'div', 'p', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6',
    'li', 'br', 'tr', 'button', 'section', 'article',
])

INVISIBLE_TAGS = frozenset(['script', 'style', 'noscript'])

_LINE_BREAKS = re.compile(r'[\r\n]+')
_LINE_BREAKS_AND_TABS = re.compile(r'[\r\n\t]+')
_WHITESPACE = re.compile(r'\s+')


def normalize_text(node: Node) -> str:
    """Visible text of ``node`` with whitespace collapsed and ends trimmed"""
    if node is None:
        return ''

    rendered = node.rendered_text
    if rendered:
        return _collapse(_LINE_BREAKS.sub(' ', rendered))

    text = ''.join(_visible_fragments(node))
    return _collapse(_LINE_BREAKS_AND_TABS.sub(' ', text))


def is_hidden(node: Node) -> bool:
    return (
        node.tag in INVISIBLE_TAGS
        or node.attribute('hidden') is not None
        or node.attribute('aria-hidden') == 'true'
    )


def _visible_fragments(node: Node) -> Iterator[str]:
    for part in node.iter_content():
        if isinstance(part, str):
            yield part
            continue

        if is_hidden(part):
            continue

        if part.tag == 'br':
            yield ' '
            continue

        is_block = part.tag in BLOCK_TAGS
        if is_block:
            yield ' '
        yield from _visible_fragments(part)
        if is_block:
            yield ' '


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(' ', text).strip()
