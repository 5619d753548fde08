"""Shared pytest fixtures: a product grid page parsed with both tree adapters"""

from typing import Optional

import pytest

from dom import SoupNode, load_document
from dom.node import Node

BASE_URL = 'https://shop.example/catalog/'

PRODUCT_PAGE = """<!DOCTYPE html>
<html>
<head><title>Shop</title><style>.grid { display: grid; }</style></head>
<body>
  <div id="header"><h1>Shop</h1></div>
  <ul class="grid products">
    <li class="product-card card featured">
      <img class="thumb" src="/img/1.png" alt="">
      <h3 class="property-title">Widget</h3>
      <p class="price active">$10</p>
      <a class="details-link" href="/p/1">View</a>
    </li>
    <li class="product-card card">
      <img class="thumb" src="/img/2.png" alt="">
      <h3 class="property-title">Gadget "Pro"</h3>
      <p class="price">$20</p>
      <a class="details-link" href="/p/2">View</a>
    </li>
    <li class="product-card card">
      <img class="thumb" data-src="/img/3.png" alt="">
      <h3 class="property-title">Gizmo</h3>
      <a class="details-link" href="https://other.example/p/3">View</a>
    </li>
  </ul>
  <div class="sidebar">
    <div class="news-item"><span class="headline">Sale starts</span></div>
    <div class="news-item"><span class="headline">New arrivals</span></div>
  </div>
</body>
</html>
"""


@pytest.fixture(params=['soup', 'lxml'])
def parser(request) -> str:
    return request.param


@pytest.fixture
def page(parser) -> Node:
    return load_document(PRODUCT_PAGE, BASE_URL, parser)


def parse(body: str, parser: str = 'soup') -> Node:
    """Root node of a page whose <body> holds ``body``"""
    return load_document(f'<html><body>{body}</body></html>', BASE_URL, parser)


class RenderedNode(SoupNode):
    """Soup node reporting layout-aware text, as a browser-backed tree would"""

    def __init__(self, node: SoupNode, rendered: Optional[str]):
        super().__init__(node.element, node.base_url)
        self._rendered = rendered

    @property
    def rendered_text(self) -> Optional[str]:
        return self._rendered
