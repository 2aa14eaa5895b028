"""HTML fragment to Markdown conversion.

Works directly on markup with an ordered table of pattern rules instead of
walking a DOM tree. Earlier rules consume structural elements (headings,
emphasis, links, images) before the final rule strips every remaining tag.

Because the rules are flat patterns, nested or malformed markup (a heading
inside a link, unclosed tags) can be rendered imperfectly or leave stray
fragments behind.
"""

import html
import re
from typing import Callable

_FLAGS = re.IGNORECASE | re.DOTALL

Replacement = str | Callable[[re.Match], str]


def _heading(match: re.Match) -> str:
    level = int(match.group(1))
    return f"\n\n{'#' * level} {match.group(2).strip()}\n\n"


def _code_block(match: re.Match) -> str:
    body = re.sub(r"<[^>]+>", "", match.group(1))
    return f"\n\n```\n{body.strip(chr(10))}\n```\n\n"


# Ordered: each rule runs over the output of the previous one
MARKDOWN_RULES: list[tuple[re.Pattern, Replacement]] = [
    # 1. Headings
    (re.compile(r"<h([1-6])(?:\s[^>]*)?>(.*?)</h\1\s*>", _FLAGS), _heading),
    # 2. Bold and italic
    (re.compile(r"<(strong|b)(?:\s[^>]*)?>(.*?)</\1\s*>", _FLAGS), r"**\2**"),
    (re.compile(r"<(em|i)(?:\s[^>]*)?>(.*?)</\1\s*>", _FLAGS), r"*\2*"),
    # 3. Links with an href
    (
        re.compile(r"<a\s[^>]*?href\s*=\s*[\"']([^\"']*)[\"'][^>]*>(.*?)</a\s*>", _FLAGS),
        r"[\2](\1)",
    ),
    # 4. Images, src before alt and alt before src, then src only
    (
        re.compile(
            r"<img\s[^>]*?src\s*=\s*[\"']([^\"']*)[\"'][^>]*?alt\s*=\s*[\"']([^\"']*)[\"'][^>]*?/?>",
            _FLAGS,
        ),
        r"![\2](\1)",
    ),
    (
        re.compile(
            r"<img\s[^>]*?alt\s*=\s*[\"']([^\"']*)[\"'][^>]*?src\s*=\s*[\"']([^\"']*)[\"'][^>]*?/?>",
            _FLAGS,
        ),
        r"![\1](\2)",
    ),
    (
        re.compile(r"<img\s[^>]*?src\s*=\s*[\"']([^\"']*)[\"'][^>]*?/?>", _FLAGS),
        r"![](\1)",
    ),
    # 5. List items, ordered and unordered alike
    (re.compile(r"<li(?:\s[^>]*)?>(.*?)</li\s*>", _FLAGS), lambda m: f"- {m.group(1).strip()}\n"),
    # 6. Code blocks, then inline code
    (re.compile(r"<pre(?:\s[^>]*)?>(.*?)</pre\s*>", _FLAGS), _code_block),
    (re.compile(r"<code(?:\s[^>]*)?>(.*?)</code\s*>", _FLAGS), r"`\1`"),
    # 7. Paragraphs, containers and line breaks
    (re.compile(r"<(p|div|section|article|main|footer)(?:\s[^>]*)?>", _FLAGS), "\n"),
    (re.compile(r"</(p|div|section|article|main|footer)\s*>", _FLAGS), "\n\n"),
    (re.compile(r"<br\s*/?>", _FLAGS), "\n"),
    (re.compile(r"<hr\s*/?>", _FLAGS), "\n\n"),
    # 8. Anything else
    (re.compile(r"<[^>]+>", _FLAGS), ""),
]

_CLEANUP_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\n{3,}"), "\n\n"),
    (re.compile(r"[ \t]+\n"), "\n"),
    (re.compile(r"\n[ \t]+"), "\n"),
    # Stripping whitespace can expose new runs of blank lines
    (re.compile(r"\n{3,}"), "\n\n"),
]


def html_to_markdown(fragment: str) -> str:
    """Convert an HTML fragment to Markdown.

    Args:
        fragment: HTML markup; a full document works too.

    Returns:
        Markdown text with at most one blank line between blocks.
    """
    if not fragment:
        return ""

    markdown = fragment
    for pattern, replacement in MARKDOWN_RULES:
        markdown = pattern.sub(replacement, markdown)

    markdown = html.unescape(markdown)

    for pattern, replacement in _CLEANUP_RULES:
        markdown = pattern.sub(replacement, markdown)

    return markdown.strip()
