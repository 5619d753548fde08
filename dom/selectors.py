"""
Selector Helpers

Builds the class selectors the scraper stores and tells CSS from XPath
queries. Matching itself is done by the tree adapters through soupsieve
(BeautifulSoup) and parsel (lxml).
"""

from typing import Optional

import soupsieve


class SelectorError(ValueError):
    """Raised when a selector cannot be compiled by the tree's selector engine"""


def is_xpath(query: str) -> bool:
    """XPath expressions start with a slash, everything else is treated as CSS"""
    return query.startswith('/')


def class_selector(token: str, tag: Optional[str] = None) -> str:
    """Build ``tag.token`` (or ``.token``) with the token CSS-escaped"""
    return f"{tag or ''}.{soupsieve.escape(token)}"
