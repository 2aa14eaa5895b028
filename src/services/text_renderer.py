"""Plain-text rendering of a content root.

Serializes a BeautifulSoup tree to whitespace-normalized text, inserting
line breaks around block-level elements and a ``|`` separator after table
cells so tabular content stays readable.
"""

import copy
import re

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction

BLOCK_TAGS = frozenset(
    {
        "p",
        "div",
        "section",
        "article",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "li",
        "tr",
        "td",
        "th",
        "blockquote",
        "pre",
        "br",
    }
)

CELL_TAGS = frozenset({"td", "th"})

# Removed from the tree before rendering
EXCLUDED_TAGS = ("script", "style", "noscript", "nav", "header", "footer")

CELL_SEPARATOR = " | "

_NON_CONTENT_STRINGS = (Comment, Doctype, CData, ProcessingInstruction, Declaration)

_HORIZONTAL_WS_RE = re.compile(r"[ \t]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def _strip_excluded(root: Tag) -> Tag:
    """Return a copy of root with excluded elements removed."""
    working = copy.copy(root)
    for tag in working.find_all(EXCLUDED_TAGS):
        tag.extract()
    return working


def _walk(root: Tag) -> str:
    """Pre-order traversal emitting text and block markers.

    Uses an explicit stack so deeply nested documents do not hit the
    interpreter recursion limit. String entries on the stack are literal
    output queued to be emitted after a node's children.
    """
    parts: list[str] = []
    stack: list[object] = [root]

    while stack:
        item = stack.pop()
        if isinstance(item, str) and not isinstance(item, NavigableString):
            parts.append(item)
            continue
        if isinstance(item, NavigableString):
            if not isinstance(item, _NON_CONTENT_STRINGS):
                parts.append(str(item))
            continue
        if not isinstance(item, Tag):
            continue

        name = (item.name or "").lower()
        is_block = name in BLOCK_TAGS

        if is_block:
            parts.append("\n")

        # Queued in reverse: trailing break, then cell separator, then children
        if is_block and name != "br":
            stack.append("\n")
        if name in CELL_TAGS:
            stack.append(CELL_SEPARATOR)
        stack.extend(reversed(list(item.children)))

    return "".join(parts)


def normalize_text(text: str) -> str:
    """Collapse whitespace runs and blank lines, trim lines and the whole text."""
    text = _HORIZONTAL_WS_RE.sub(" ", text)
    text = "\n".join(line.strip(" \t") for line in text.split("\n"))
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


def render_text(root: Tag) -> str:
    """Render a content root to normalized plain text.

    Args:
        root: BeautifulSoup element (or whole document) to render. It is not
            modified; excluded elements are removed from a copy.

    Returns:
        Plain text with block elements on their own lines and at most one
        blank line between blocks.
    """
    if root is None:
        return ""
    return normalize_text(_walk(_strip_excluded(root)))


def render_html_text(html: str) -> str:
    """Parse an HTML string and render it to plain text."""
    return render_text(BeautifulSoup(html, "html.parser"))
