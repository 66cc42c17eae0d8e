"""Field extraction: turns a parsed tree into an :class:`ExtractedDocument`."""

from __future__ import annotations

import re
from typing import Iterable, List
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag
from bs4.element import NavigableString, PreformattedString

from pagerelay.scraper.models import ExtractedDocument
from pagerelay.scraper.parser import parse_document

MAX_LINKS = 50
MAX_IMAGES = 20

_WHITESPACE = re.compile(r"\s+")
# Browsers drop these anywhere in a URL before parsing it.
_URL_NOISE = re.compile(r"[\t\r\n]")
# C0 controls and space, stripped from both ends.
_C0_AND_SPACE = "".join(chr(c) for c in range(0x21))
_HEAD_ONLY = ("head", "title")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (newlines and tabs included) and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def _effective_base(tree: BeautifulSoup, base_url: str) -> str:
    """Return the URL relative references resolve against.

    A ``<base href>`` in the document wins, itself resolved against
    *base_url*.
    """
    base = tree.find("base", href=True)
    if isinstance(base, Tag):
        href = str(base.get("href", "")).strip()
        if href:
            return urljoin(base_url, href)
    return base_url


def _clean_ref(value: object) -> str:
    """Strip a raw attribute value the way a browser's URL parser does."""
    return _URL_NOISE.sub("", str(value or "")).strip(_C0_AND_SPACE)


def is_script_url(url: str) -> bool:
    """Return ``True`` if following *url* would run script (``javascript:``)."""
    ref = _clean_ref(url)
    try:
        scheme = urlsplit(ref).scheme
    except ValueError:
        return ref.lower().startswith("javascript:")
    return scheme.lower() == "javascript"


def _resolve(base: str, value: object) -> str:
    """Resolve an ``href``/``src`` value; ``""`` means nothing usable.

    An empty reference resolves to *base* itself, as in a browser.
    """
    ref = _clean_ref(value)
    if not base:
        return ref
    try:
        return urljoin(base, ref)
    except ValueError:
        # urljoin rejects some malformed IPv6 hosts; keep the reference as written.
        return ref


def _extract_title(tree: BeautifulSoup) -> str:
    """Return the text content of the first ``<title>`` tag, or empty string."""
    title = tree.find("title")
    if title is None:
        return ""
    return title.get_text()


def _body_strings(tree: BeautifulSoup) -> Iterable[str]:
    """Yield the document's text nodes outside ``<head>``, in order.

    Script and style text counts, as it does for ``textContent``; comments,
    doctypes and other preformatted nodes do not.  Stray text before or
    after ``<body>`` is kept because html.parser leaves it outside the body
    element where a browser would move it in.
    """
    for node in tree.descendants:
        if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
            continue
        if any(p.name in _HEAD_ONLY for p in node.parents):
            continue
        yield node


def _extract_content(tree: BeautifulSoup) -> str:
    return normalize_whitespace("".join(_body_strings(tree)))


def _collect_attr(
    tree: BeautifulSoup, tag: str, attr: str, base: str
) -> List[str]:
    values: List[str] = []
    for el in tree.find_all(tag, attrs={attr: True}):
        resolved = _resolve(base, el.get(attr))
        if resolved:
            values.append(resolved)
    return values


def _extract_links(tree: BeautifulSoup, base: str) -> List[str]:
    """Return resolved ``<a href>`` targets, minus ``javascript:`` ones, capped."""
    links = [
        href for href in _collect_attr(tree, "a", "href", base)
        if not is_script_url(href)
    ]
    return links[:MAX_LINKS]


def _extract_images(tree: BeautifulSoup, base: str) -> List[str]:
    # No scheme filtering here, unlike links.
    return _collect_attr(tree, "img", "src", base)[:MAX_IMAGES]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_fields(tree: BeautifulSoup, base_url: str = "") -> ExtractedDocument:
    """Derive title, content, links and images from a parsed *tree*.

    Never raises.  Relative ``href``/``src`` values are resolved against
    the document's ``<base href>`` or, failing that, *base_url* (normally
    the page's own URL).  Links are capped at :data:`MAX_LINKS` and images
    at :data:`MAX_IMAGES`, both in document order.
    """
    base = _effective_base(tree, base_url)
    return ExtractedDocument(
        title=_extract_title(tree),
        content=_extract_content(tree),
        links=tuple(_extract_links(tree, base)),
        images=tuple(_extract_images(tree, base)),
    )


def extract_from_markup(markup: str, base_url: str = "") -> ExtractedDocument:
    """Parse *markup* and extract its fields in one step."""
    return extract_fields(parse_document(markup), base_url)


def bound_document(
    title: str, content: str, links: Iterable[str], images: Iterable[str]
) -> ExtractedDocument:
    """Build an :class:`ExtractedDocument` from untrusted field values.

    Applies the same guarantees :func:`extract_fields` gives: normalised
    content, no empty or ``javascript:`` links, and both caps.
    """
    kept_links = [
        link for link in links
        if link and not is_script_url(link)
    ]
    kept_images = [src for src in images if src]
    return ExtractedDocument(
        title=title or "",
        content=normalize_whitespace(content or ""),
        links=tuple(kept_links[:MAX_LINKS]),
        images=tuple(kept_images[:MAX_IMAGES]),
    )
