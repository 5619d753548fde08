"""
Document Tree Adapter

Read-only capability interface over a hierarchical document. The extraction
engine only talks to ``Node``; concrete adapters wrap BeautifulSoup tags
or lxml elements and delegate CSS matching to their own selector engine.
"""

from abc import ABC, abstractmethod
from typing import Iterator, List, Optional, Union
from urllib.parse import urljoin


class Node(ABC):
    """
    Opaque handle to one element of a document tree

    Two handles are equal when they wrap the same underlying element.
    Subclasses store that element in ``_element``.
    """

    _element = None
    base_url: str = ''

    @property
    @abstractmethod
    def tag(self) -> str:
        """Lower-case tag name"""

    @property
    @abstractmethod
    def classes(self) -> List[str]:
        """Class tokens in document order"""

    @abstractmethod
    def attribute(self, name: str) -> Optional[str]:
        """Attribute value, or None when the attribute is absent"""

    @property
    @abstractmethod
    def parent(self) -> Optional['Node']:
        """Parent element, or None above the document element"""

    @property
    @abstractmethod
    def children(self) -> List['Node']:
        """Element children in document order"""

    @abstractmethod
    def iter_content(self) -> Iterator[Union['Node', str]]:
        """Element children and text, in document order, without comments"""

    @abstractmethod
    def find(self, query: str) -> Optional['Node']:
        """First element matching a full CSS (or XPath) query, searched from this node"""

    @abstractmethod
    def matches(self, selector: str) -> bool:
        """True if this element matches a CSS selector"""

    @abstractmethod
    def select_first(self, selector: str) -> Optional['Node']:
        """First descendant matching a CSS selector, in document order"""

    @abstractmethod
    def select_all(self, selector: str) -> List['Node']:
        """Descendants matching a CSS selector, in document order"""

    @abstractmethod
    def select_children(self, selector: str) -> List['Node']:
        """Element children matching a CSS selector"""

    @property
    def rendered_text(self) -> Optional[str]:
        """Layout-aware text when the backing tree has a renderer"""
        return None

    def has_class(self, token: str) -> bool:
        return token in self.classes

    def ancestors(self) -> Iterator['Node']:
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def contains(self, other: 'Node') -> bool:
        """True if ``other`` is this node or one of its descendants"""
        if other == self:
            return True
        return any(ancestor == self for ancestor in other.ancestors())

    def closest(self, selector: str, within: Optional['Node'] = None) -> Optional['Node']:
        """Nearest inclusive ancestor matching ``selector``, stopping before ``within``"""
        current = self
        while current is not None and current != within:
            if current.matches(selector):
                return current
            current = current.parent
        return None

    def resolve_url(self, attribute: str) -> str:
        value = self.attribute(attribute)
        if not value:
            return ''
        return urljoin(self.base_url, value.strip()) if self.base_url else value.strip()

    def describe(self) -> str:
        """Short ``tag#id.class`` label for logs and CLI output"""
        label = self.tag
        element_id = self.attribute('id')
        if element_id:
            label += f"#{element_id}"
        if self.classes:
            label += '.' + '.'.join(self.classes)
        return label

    def __eq__(self, other) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self._element is other._element

    def __hash__(self) -> int:
        return id(self._element)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(<{self.describe()}>)"
