"""Tree-traversal helpers used by every page parser.

All lookups return empty results when nothing matches; callers decide whether
an empty result is a parse failure.
"""

import re
from typing import Callable, Iterator, Optional

from parsers.tree import Element, ParseNode, Text

# tag[attr=value], [attr=value], [attr]
_ATTR_SELECTOR_RE = re.compile(r"^([\w-]+)?\[([^\]]+)\]$")
_ATTR_PART_RE = re.compile(r"""^([\w-]+)(?:=["']?([^"']*)["']?)?$""")


def _walk(root: Element) -> Iterator[Element]:
    """Yield every element below root in document order (root excluded)."""
    for child in root.children:
        if isinstance(child, Element):
            yield child
            yield from _walk(child)


def _walk_with_root(root: Element) -> Iterator[Element]:
    yield root
    yield from _walk(root)


def _classes(node: Element) -> list[str]:
    return (node.attr("class") or "").split()


def find_by_tag(tag: str, root: Element, recursive: bool = False) -> list[Element]:
    """Elements named `tag`: direct children of root, or the whole subtree."""
    candidates = _walk(root) if recursive else iter(root.element_children)
    return [node for node in candidates if node.tag == tag]


def find_by_class(class_name: str, root: Element) -> list[Element]:
    if not class_name:
        return []
    class_name = class_name.lstrip(".")
    return [node for node in _walk_with_root(root) if class_name in _classes(node)]


def find_by_attribute(tag: str, attr_name: str, attr_value: str, root: Element) -> list[Element]:
    return [
        node for node in _walk_with_root(root)
        if node.tag == tag and node.attr(attr_name) == attr_value
    ]


def _compile_simple(selector: str) -> Callable[[Element], bool]:
    """Build a predicate for one selector segment: tag, .class, #id, [attr=value]."""
    if selector.startswith("#"):
        node_id = selector[1:]
        return lambda node: node.attr("id") == node_id

    if selector.startswith("."):
        class_name = selector[1:]
        return lambda node: class_name in _classes(node)

    if "[" in selector:
        match = _ATTR_SELECTOR_RE.match(selector)
        attr_match = _ATTR_PART_RE.match(match.group(2)) if match else None
        if not attr_match:
            return lambda node: False
        tag = match.group(1)
        attr_name, attr_value = attr_match.group(1), attr_match.group(2)

        def predicate(node: Element) -> bool:
            if tag and node.tag != tag:
                return False
            value = node.attr(attr_name)
            if value is None:
                return False
            return attr_value is None or value == attr_value

        return predicate

    return lambda node: node.tag == selector


def find_by_selector(selector: str, root: Element) -> list[Element]:
    """Resolve a '>'-chained selector such as 'table > tbody > tr'.

    The first segment matches the direct children of root and every further
    segment matches the direct children of the previous matches. There is no
    descendant combinator: 'div > a' will not find an <a> nested in a <span>.
    """
    parts = [part.strip() for part in selector.split(">") if part.strip()]
    if not parts:
        return []

    current = [root]
    for part in parts:
        predicate = _compile_simple(part)
        current = [
            child
            for node in current
            for child in node.element_children
            if predicate(child)
        ]
        if not current:
            break
    return current


def get_text(node: Optional[ParseNode]) -> str:
    """Concatenate descendant text in document order, adding no whitespace."""
    if node is None:
        return ""
    if isinstance(node, Text):
        return node.value
    if isinstance(node, Element):
        return "".join(get_text(child) for child in node.children)
    return ""


def get_attribute(node: Optional[Element], name: str) -> str:
    """Attribute value, or "" when missing. Treat "" as not found."""
    if node is None:
        return ""
    return node.attr(name) or ""


def _index_of(node: Element, parent: Element) -> int:
    for i, child in enumerate(parent.children):
        if child is node:
            return i
    return -1


def next_sibling(node: Element, parent: Element) -> Optional[Element]:
    """The next element sibling of node inside parent, skipping text and comments."""
    start = _index_of(node, parent)
    if start == -1:
        return None
    for sibling in parent.children[start + 1:]:
        if isinstance(sibling, Element):
            return sibling
    return None


def siblings_between(start: Element, stop_tag: str, parent: Element) -> list[Element]:
    """Element siblings after `start` up to, not including, the next `stop_tag`."""
    index = _index_of(start, parent)
    if index == -1:
        return []

    results = []
    for sibling in parent.children[index + 1:]:
        if not isinstance(sibling, Element):
            continue
        if sibling.tag == stop_tag:
            break
        results.append(sibling)
    return results


def find_content_between_headers(
    container: Element, header_tag: str = "h2", target_tag: str = "p"
) -> Optional[str]:
    """Text of every `target_tag` child between the first and second header."""
    headers = find_by_tag(header_tag, container)
    if not headers:
        return None
    content = "".join(
        get_text(node)
        for node in siblings_between(headers[0], header_tag, container)
        if node.tag == target_tag
    )
    return content or None
