"""
Best-effort metadata scraping for arbitrary web pages (blog posts, articles).

Extraction works on the raw response text with a handful of regular
expressions; it does not build a DOM. Pages that put their metadata somewhere
else simply yield fewer fields.
"""

from __future__ import annotations

import html
import re

from config import settings
from ptlite.fetch import BoundedResponse, bounded_get

_TITLE_RE = re.compile(r"<title[^>]*>([^<]*)</title>", re.IGNORECASE)
_DATE_PUBLISHED_RE = re.compile(r'"datePublished"\s*:\s*"([^"]*)"')
_WHITESPACE_RE = re.compile(r"\s+")

# field -> ordered list of (attribute, value) meta-tag lookups
_META_LOOKUPS = {
    "title": [("property", "og:title"), ("name", "twitter:title")],
    "abstract": [("name", "description"), ("property", "og:description"), ("name", "twitter:description")],
    "published_at": [("name", "date"), ("property", "article:published_time")],
}


def _meta_pattern(attr: str, value: str) -> re.Pattern:
    return re.compile(
        r"<meta\s+[^>]*?\b%s\s*=\s*[\"']%s[\"'][^>]*?\bcontent\s*=\s*(?:\"([^\"]*)\"|'([^']*)')"
        % (attr, re.escape(value)),
        re.IGNORECASE,
    )


_META_PATTERNS = {
    field: [_meta_pattern(attr, value) for attr, value in lookups] for field, lookups in _META_LOOKUPS.items()
}


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    text = _WHITESPACE_RE.sub(" ", html.unescape(value)).strip()
    return text or None


def _first_meta(page: str, field: str) -> str | None:
    for pattern in _META_PATTERNS[field]:
        m = pattern.search(page)
        if m:
            value = _clean(m.group(1) if m.group(1) is not None else m.group(2))
            if value:
                return value
    return None


def extract_page_metadata(page: str) -> dict:
    """
    Pull title / abstract / published_at out of an HTML document.

    Priority per field:
      title:        <title>, og:title, twitter:title
      abstract:     description, og:description, twitter:description
      published_at: date, article:published_time, JSON-LD "datePublished"
    Missing fields are None.
    """
    page = page or ""

    title = None
    m = _TITLE_RE.search(page)
    if m:
        title = _clean(m.group(1))
    if not title:
        title = _first_meta(page, "title")

    published_at = _first_meta(page, "published_at")
    if not published_at:
        m = _DATE_PUBLISHED_RE.search(page)
        if m:
            published_at = m.group(1).strip() or None

    return {
        "title": title,
        "abstract": _first_meta(page, "abstract"),
        "published_at": published_at,
    }


def fetch_page(
    url: str, session=None, timeout: float | None = None, user_agent: str | None = None
) -> BoundedResponse:
    """
    GET a page with the configured User-Agent; one attempt. The timeout covers
    the whole download and only the first settings.metadata.max_page_bytes of
    the body are kept, which is plenty for the <head> the extractor reads.
    """
    return bounded_get(
        url,
        session=session,
        headers={"User-Agent": user_agent or settings.metadata.user_agent},
        timeout=settings.metadata.generic_timeout if timeout is None else timeout,
        max_bytes=settings.metadata.max_page_bytes,
    )
