"""HTML document loading and querying"""

from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup, Tag

from manifest_finder.finder.constants import PARSER


@dataclass(frozen=True)
class AttributeMatch:
    """Predicate on an element attribute, by exact value or by substring."""

    name: str
    value: str
    exact: bool = True
    ignore_case: bool = False

    def matches(self, element: Tag) -> bool:
        """Check the attribute of `element` against this predicate."""
        actual = HtmlDocument.attribute(element, self.name)
        if actual is None:
            return False
        expected = self.value
        if self.ignore_case:
            actual, expected = actual.lower(), expected.lower()
        return actual == expected if self.exact else expected in actual


class HtmlDocument:
    """A parsed HTML page.

    Malformed markup never raises; the parser recovers and yields a partial tree.
    Attribute values are kept as raw strings (e.g. `rel="icon manifest"` stays one
    string) so substring predicates see what the page declared.
    """

    def __init__(self, html: str, url: str) -> None:
        self.url = url
        self.soup = BeautifulSoup(html or "", PARSER, multi_valued_attributes=None)

    @property
    def head(self) -> Optional[Tag]:
        """Return the <head> element, if the page has one."""
        return self.soup.find("head")

    def find_first(
        self, tag: str, *predicates: AttributeMatch, within: Optional[Tag] = None
    ) -> Optional[Tag]:
        """Find the first `tag` element matching all predicates, in document order."""
        matches = self.find_all(tag, *predicates, within=within)
        return matches[0] if matches else None

    def find_all(
        self, tag: str, *predicates: AttributeMatch, within: Optional[Tag] = None
    ) -> list[Tag]:
        """Find every `tag` element matching all predicates, in document order."""
        root = within if within is not None else self.soup
        return [
            element
            for element in root.find_all(tag)
            if all(predicate.matches(element) for predicate in predicates)
        ]

    @property
    def html(self) -> str:
        """Serialize the whole document."""
        return str(self.soup)

    @staticmethod
    def attribute(element: Tag, name: str) -> Optional[str]:
        """Return an attribute value as a string, or None if absent."""
        value = element.get(name)
        if value is None:
            return None
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    @staticmethod
    def outer_html(element: Tag) -> str:
        """Serialize an element including its own tag."""
        return str(element)

    @staticmethod
    def inner_html(element: Tag) -> str:
        """Serialize the children of an element."""
        return element.decode_contents()

    @staticmethod
    def ancestors(element: Tag) -> list[Tag]:
        """Return the enclosing elements of `element`, innermost first."""
        return [
            parent
            for parent in element.parents
            if isinstance(parent, Tag) and not isinstance(parent, BeautifulSoup)
        ]

    @staticmethod
    def descendants(element: Tag) -> list[Tag]:
        """Return every element nested in `element`, in document order."""
        return [child for child in element.descendants if isinstance(child, Tag)]
