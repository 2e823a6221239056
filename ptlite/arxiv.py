"""
Utils for dealing with arxiv links and the arxiv metadata API
"""

from __future__ import annotations

import re

import feedparser

from config import settings
from ptlite.fetch import BoundedResponse, bounded_get

# abs/pdf links, legacy "archive/NNNNNNN" ids and modern "NNNN.NNNNN" ids, optional vN
_ARXIV_URL_RE = re.compile(r"arxiv\.org/(?:abs|pdf)/((?:[\w-]+/)?[\d.]+(?:v\d+)?)")
_ARXIV_VERSION_RE = re.compile(r"^(.+?)v(\d+)$")
_WHITESPACE_RE = re.compile(r"\s+")


def extract_arxiv_id(url: str) -> str | None:
    """
    examples: https://arxiv.org/abs/2103.14030, arxiv.org/pdf/2103.14030v2.pdf?download=true,
    http://www.arxiv.org/abs/hep-th/9901001
    returns the id as it appears in the link ("2103.14030", "2103.14030v2", "hep-th/9901001")
    or None when the url is not an arxiv abs/pdf link
    """
    if not url:
        return None
    clean = url.split("?", 1)[0]
    if clean.endswith(".pdf"):
        clean = clean[: -len(".pdf")]
    m = _ARXIV_URL_RE.search(clean)
    if not m or not m.group(1):
        return None
    arxiv_id = m.group(1)
    if arxiv_id.endswith("."):
        arxiv_id = arxiv_id[:-1]
    return arxiv_id


def split_arxiv_version(arxiv_id: str) -> tuple[str, int | None]:
    """'2103.14030v2' -> ('2103.14030', 2); '2103.14030' -> ('2103.14030', None)"""
    m = _ARXIV_VERSION_RE.match(arxiv_id or "")
    if not m:
        return arxiv_id, None
    return m.group(1), int(m.group(2))


def get_response(arxiv_id: str, session=None, timeout: float | None = None) -> BoundedResponse:
    """
    pings the arxiv.org API for a single paper; one attempt, no retry.
    timeout bounds the whole exchange, and the reply is capped at
    settings.arxiv.max_response_bytes
    """
    return bounded_get(
        settings.arxiv.api_url,
        session=session,
        params={"id_list": arxiv_id},
        headers={"User-Agent": settings.metadata.user_agent},
        timeout=settings.arxiv.api_timeout if timeout is None else timeout,
        max_bytes=settings.arxiv.max_response_bytes,
    )


def _clean_text(value) -> str | None:
    if value is None:
        return None
    text = _WHITESPACE_RE.sub(" ", str(value)).strip()
    return text or None


def _is_error_entry(entry) -> bool:
    # the API answers malformed ids with a single entry whose id points at /api/errors
    return "arxiv.org/api/errors" in str(entry.get("id", ""))


def parse_response(document: str | bytes) -> dict | None:
    """
    parses an Atom document returned by the query API and returns the metadata
    of its first entry, or None when the document carries no usable entry
    """
    if isinstance(document, str):
        document = document.encode("utf-8")
    parse = feedparser.parse(document)
    if not parse.entries:
        return None
    e = parse.entries[0]
    if _is_error_entry(e):
        return None

    names = [(a.get("name") or "").strip() for a in e.get("authors", [])]
    names = [n for n in names if n]

    # only <category> elements end up in tags; arxiv:primary_category is a separate key
    tags = [t.get("term") for t in e.get("tags", []) if t.get("term")]

    published = e.get("published")
    return {
        "title": _clean_text(e.get("title")),
        "abstract": _clean_text(e.get("summary")),
        "authors": ", ".join(names) if names else None,
        "tags": tags,
        "published_at": published.strip() if published and published.strip() else None,
    }
