"""Metadata fetch strategies.

Each strategy turns a lookup target (an arXiv id or a page URL) into a
:class:`FetchOutcome`: either a :class:`MetadataResult` or a typed
:class:`FetchError`. Nothing here raises for network or parsing problems; the
error is kept so callers can log or count it, and the ``fetch_*`` wrappers
collapse it to ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import requests
from loguru import logger

from ptlite.arxiv import get_response, parse_response, split_arxiv_version
from ptlite.web import extract_page_metadata, fetch_page

from ..schemas.metadata import MetadataResult


class FetchErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class FetchError:
    kind: FetchErrorKind
    message: str
    status_code: int | None = None


@dataclass(frozen=True)
class FetchOutcome:
    result: MetadataResult | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def failed(cls, kind: FetchErrorKind, message: str, status_code: int | None = None) -> FetchOutcome:
        return cls(error=FetchError(kind=kind, message=message, status_code=status_code))


class MetadataFetcher(Protocol):
    def __call__(self, target: str, *, session=None) -> FetchOutcome: ...


def _request_error(exc: Exception) -> FetchOutcome:
    if isinstance(exc, (requests.Timeout, TimeoutError)):
        return FetchOutcome.failed(FetchErrorKind.TIMEOUT, str(exc) or "request timed out")
    return FetchOutcome.failed(FetchErrorKind.NETWORK, str(exc) or exc.__class__.__name__)


def _status_error(response) -> FetchOutcome | None:
    status = int(getattr(response, "status_code", 0) or 0)
    if 200 <= status < 300:
        return None
    return FetchOutcome.failed(FetchErrorKind.HTTP_STATUS, f"HTTP {status}", status_code=status)


# -----------------------------------------------------------------------------
# arXiv
# -----------------------------------------------------------------------------


def try_fetch_arxiv_metadata(arxiv_id: str, *, session=None) -> FetchOutcome:
    """Query the arXiv API for one id and parse the first feed entry."""
    raw_id, version = split_arxiv_version(arxiv_id)
    logger.debug(f"Querying arXiv for {raw_id} (version: {version if version is not None else 'latest'})")
    try:
        response = get_response(arxiv_id, session=session)
    except Exception as exc:
        return _request_error(exc)

    failed = _status_error(response)
    if failed is not None:
        return failed

    try:
        parsed = parse_response(response.content)
    except Exception as exc:
        return FetchOutcome.failed(FetchErrorKind.MALFORMED, f"unparseable arXiv feed: {exc}")
    if parsed is None:
        return FetchOutcome.failed(FetchErrorKind.MALFORMED, f"no entry for arXiv id {arxiv_id}")
    return FetchOutcome(result=MetadataResult(**parsed))


def fetch_arxiv_metadata(arxiv_id: str, *, session=None) -> MetadataResult | None:
    outcome = try_fetch_arxiv_metadata(arxiv_id, session=session)
    if outcome.error is not None:
        logger.warning(f"arXiv metadata fetch failed for {arxiv_id}: {outcome.error.kind.value} ({outcome.error.message})")
    return outcome.result


# -----------------------------------------------------------------------------
# Generic web pages
# -----------------------------------------------------------------------------


def try_fetch_generic_metadata(url: str, *, session=None) -> FetchOutcome:
    """GET the page and scrape title/description/date from its markup."""
    try:
        response = fetch_page(url, session=session)
    except Exception as exc:
        return _request_error(exc)

    failed = _status_error(response)
    if failed is not None:
        return failed
    if response.truncated:
        logger.debug(f"Page body of {url} cut off at {len(response.content)} bytes")

    try:
        parsed = extract_page_metadata(response.text)
    except Exception as exc:
        return FetchOutcome.failed(FetchErrorKind.MALFORMED, f"failed to read page body: {exc}")
    return FetchOutcome(result=MetadataResult(**parsed))


def fetch_generic_metadata(url: str, *, session=None) -> MetadataResult | None:
    outcome = try_fetch_generic_metadata(url, session=session)
    if outcome.error is not None:
        logger.warning(f"Generic metadata fetch failed for {url}: {outcome.error.kind.value} ({outcome.error.message})")
    return outcome.result
