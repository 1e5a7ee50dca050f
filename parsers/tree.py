"""Adapt BeautifulSoup output into a small immutable node tree.

Every consumer works on three node classes:

  Element(tag, attrs, children)
  Text(value)
  Comment(value)

and dispatches on the class instead of on a node-name string.
"""

from dataclasses import dataclass
from typing import Union

from bs4 import BeautifulSoup, Tag
from bs4.element import Comment as SoupComment
from bs4.element import Declaration, Doctype, NavigableString, ProcessingInstruction


@dataclass(frozen=True, eq=False)
class Text:
    value: str


@dataclass(frozen=True, eq=False)
class Comment:
    value: str


@dataclass(frozen=True, eq=False)
class Element:
    tag: str
    attrs: tuple[tuple[str, str], ...] = ()
    children: tuple["ParseNode", ...] = ()

    def attr(self, name: str) -> str | None:
        for key, value in self.attrs:
            if key == name:
                return value
        return None

    @property
    def element_children(self) -> list["Element"]:
        return [c for c in self.children if isinstance(c, Element)]


ParseNode = Union[Element, Text, Comment]

# Soup string types that carry no document content
_SKIPPED_STRINGS = (Doctype, Declaration, ProcessingInstruction)


def _attr_value(value) -> str:
    # bs4 returns multi-valued attributes (class, rel) as lists
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def _convert(node) -> ParseNode | None:
    if isinstance(node, Tag):
        children = []
        for child in node.children:
            converted = _convert(child)
            if converted is not None:
                children.append(converted)
        attrs = tuple((name, _attr_value(value)) for name, value in node.attrs.items())
        return Element(tag=node.name, attrs=attrs, children=tuple(children))
    if isinstance(node, SoupComment):
        return Comment(str(node))
    if isinstance(node, _SKIPPED_STRINGS):
        return None
    if isinstance(node, NavigableString):
        return Text(str(node))
    return None


def from_soup(soup: BeautifulSoup) -> Element:
    """Convert a parsed soup into a document Element (tag '#document')."""
    children = []
    for child in soup.children:
        converted = _convert(child)
        if converted is not None:
            children.append(converted)
    return Element(tag="#document", children=tuple(children))


def parse_html(html: str) -> Element:
    return from_soup(BeautifulSoup(html, "lxml"))
