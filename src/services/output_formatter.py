"""Response bodies for each output format.

Applies the per-request toggles (keywords, summary, HTML, max length) to a
full ExtractionResult. Analytics always describe the full text, even when
the rendered content is truncated.
"""

import html
import json
from dataclasses import dataclass
from typing import Any

from src.models.extraction_models import ExtractionRequest, ExtractionResult

MEDIA_TYPES = {
    "text": "text/plain; charset=utf-8",
    "markdown": "text/markdown; charset=utf-8",
    "json": "application/json",
    "html": "text/html; charset=utf-8",
}


@dataclass(frozen=True)
class FormattedOutput:
    """A rendered response body with its media type."""

    body: str
    media_type: str


def truncate(value: str, max_length: int | None) -> str:
    if max_length is None or len(value) <= max_length:
        return value
    return value[:max_length]


def build_payload(result: ExtractionResult, request: ExtractionRequest) -> dict[str, Any]:
    """Build the JSON ``data`` object for a result, honoring the toggles."""
    data = result.model_dump(
        mode="json",
        exclude={"html", "keywords", "summary", "text_content", "markdown"},
    )
    text_content = truncate(result.text_content, request.max_length)
    data["content"] = truncate(result.markdown, request.max_length)
    data["text_content"] = text_content
    data["length"] = len(result.text_content)
    data["truncated"] = (
        request.max_length is not None
        and max(len(result.text_content), len(result.markdown)) > request.max_length
    )
    if request.include_html:
        data["html"] = truncate(result.html, request.max_length)
    if request.include_keywords:
        data["keywords"] = [k.model_dump() for k in result.keywords]
    if request.include_summary:
        data["summary"] = result.summary.model_dump()
    return data


def _header_lines(result: ExtractionResult) -> list[str]:
    lines = [f"Title: {result.title or 'No title'}", f"Source: {result.url}"]
    if result.byline:
        lines.append(f"Author: {result.byline}")
    return lines


def _extras(result: ExtractionResult, request: ExtractionRequest, markdown: bool) -> list[str]:
    sections: list[str] = []
    if request.include_summary and result.summary.text:
        heading = "## Summary" if markdown else "Summary:"
        sections.append(f"{heading}\n{result.summary.text}")
    if request.include_keywords and result.keywords:
        heading = "## Keywords" if markdown else "Keywords:"
        terms = ", ".join(k.term for k in result.keywords)
        sections.append(f"{heading}\n{terms}")
    return sections


def _format_text(result: ExtractionResult, request: ExtractionRequest, markdown: bool) -> str:
    body = result.markdown if markdown else result.text_content
    blocks = ["\n".join(_header_lines(result)), truncate(body, request.max_length)]
    blocks.extend(_extras(result, request, markdown))
    if request.include_html and result.html:
        blocks.append(truncate(result.html, request.max_length))
    return "\n\n".join(b for b in blocks if b).strip()


def _format_html(result: ExtractionResult, request: ExtractionRequest) -> str:
    title = html.escape(result.title or "No title")
    source = html.escape(result.url, quote=True)
    byline = f"<p class=\"byline\">{html.escape(result.byline)}</p>" if result.byline else ""
    return (
        "<!DOCTYPE html>\n"
        "<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{title}</title>\n"
        f"<link rel=\"canonical\" href=\"{source}\">\n"
        "</head>\n<body>\n"
        f"<h1>{title}</h1>\n{byline}\n"
        f"<article>\n{truncate(result.html, request.max_length)}\n</article>\n"
        "</body>\n</html>\n"
    )


def format_result(result: ExtractionResult, request: ExtractionRequest) -> FormattedOutput:
    """
    Render a result in the requested output format.

    Args:
        result: Full extraction result
        request: The request, for format and toggles

    Returns:
        FormattedOutput with body and media type
    """
    if request.format == "json":
        body = json.dumps(
            {"success": True, "data": build_payload(result, request)},
            indent=2,
            ensure_ascii=False,
        )
    elif request.format == "html":
        body = _format_html(result, request)
    else:
        body = _format_text(result, request, markdown=request.format == "markdown")
    return FormattedOutput(body=body, media_type=MEDIA_TYPES[request.format])
