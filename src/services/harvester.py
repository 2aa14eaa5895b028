"""Metadata and image harvesting from a parsed page.

Runs over the whole parsed document, before noise removal, so page-level
``<meta>`` and ``<link>`` tags in the head are still present.
"""

from urllib.parse import urljoin

import logfire
from bs4 import BeautifulSoup

from src.constants import AUTO_DESCRIPTION_MAX_CHARS, DEFAULT_MAX_IMAGES
from src.models.analysis_models import ImageRef


def _attr(tag, name: str) -> str:
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _parse_dimension(value: str) -> int | None:
    return int(value) if value.isdigit() else None


def harvest_metadata(soup: BeautifulSoup) -> dict[str, str]:
    """
    Collect page metadata into a flat dict.

    Keys come from ``meta[name]``, ``meta[property^="og:"]``,
    ``meta[name^="twitter:"]`` and ``link[rel=canonical]``. When the page has
    no ``description``, the first non-empty paragraph (truncated) is stored
    under ``autoDescription``. Later tags overwrite earlier ones with the
    same key.

    Failures are logged and yield an empty dict; metadata never fails an
    extraction.
    """
    try:
        metadata: dict[str, str] = {}

        for meta in soup.find_all("meta"):
            content = meta.get("content")
            if content is None:
                continue
            name = _attr(meta, "name")
            prop = _attr(meta, "property")
            if name:
                metadata[name] = content
            if prop.startswith("og:"):
                metadata[prop] = content

        for link in soup.find_all("link", href=True):
            rel = link.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if "canonical" in (r.lower() for r in rel):
                metadata["canonical"] = link["href"]

        if "description" not in metadata:
            for paragraph in soup.find_all("p"):
                text = paragraph.get_text().strip()
                if text:
                    if len(text) > AUTO_DESCRIPTION_MAX_CHARS:
                        text = text[:AUTO_DESCRIPTION_MAX_CHARS] + "..."
                    metadata["autoDescription"] = text
                    break

        return metadata
    except Exception as e:
        logfire.warn("Metadata extraction failed", error=str(e))
        return {}


def harvest_images(
    soup: BeautifulSoup, base_url: str, limit: int = DEFAULT_MAX_IMAGES
) -> list[ImageRef]:
    """
    Collect up to ``limit`` images with absolute http(s) sources.

    Relative sources are resolved against the document's ``<base href>`` if
    present, else against ``base_url``. Images that do not resolve to an
    http(s) URL (data URIs, javascript:, and so on) are dropped.

    Failures are logged and yield an empty list.
    """
    try:
        base_tag = soup.find("base", href=True)
        base = urljoin(base_url, base_tag["href"]) if base_tag else base_url

        images: list[ImageRef] = []
        for img in soup.find_all("img", src=True):
            if len(images) >= limit:
                break
            src = _attr(img, "src")
            if not src:
                continue
            absolute = urljoin(base, src)
            if not absolute.lower().startswith(("http://", "https://")):
                continue
            images.append(
                ImageRef(
                    src=absolute,
                    alt=_attr(img, "alt"),
                    title=_attr(img, "title"),
                    width=_parse_dimension(_attr(img, "width")),
                    height=_parse_dimension(_attr(img, "height")),
                )
            )
        return images
    except Exception as e:
        logfire.warn("Image extraction failed", base_url=base_url, error=str(e))
        return []


def derive_title(metadata: dict[str, str], soup: BeautifulSoup, detected: str | None = None) -> str | None:
    """Pick the page title: detector title, then og:title, then <title>."""
    if detected and detected.strip():
        return detected.strip()
    if metadata.get("og:title"):
        return metadata["og:title"].strip()
    if soup.title and soup.title.string:
        return soup.title.string.strip() or None
    return None


def derive_byline(metadata: dict[str, str]) -> str | None:
    return metadata.get("author") or metadata.get("article:author") or None


def derive_excerpt(metadata: dict[str, str]) -> str | None:
    return (
        metadata.get("description")
        or metadata.get("og:description")
        or metadata.get("autoDescription")
        or None
    )


def derive_site_name(metadata: dict[str, str]) -> str | None:
    return metadata.get("og:site_name") or None
