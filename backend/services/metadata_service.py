"""Metadata resolution service.

Given a source URL, produce the metadata used to create a paper record:

1. Unless ``bust_cache`` is set, return the cached record for the exact URL
   (a cached arXiv record without ``publishedAt`` predates that field and is
   refetched).
2. Otherwise classify the URL: arXiv abs/pdf links go to the arXiv API, all
   other URLs are scraped as web pages.
3. A successful fetch is written back to the cache.
4. The fetched (or cached) record is merged with caller overrides. Fetched
   values win, then overrides, then defaults (the URL itself as title).

Upstream or cache failures never raise; the worst case is a record built from
overrides alone. Concurrent resolutions of the same URL are not coordinated:
each one fetches and the last cache write wins.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from loguru import logger

from config import settings
from ptlite.arxiv import extract_arxiv_id

from ..schemas.metadata import MetadataOverrides, MetadataResult
from .metadata_cache import MetadataCache
from .metadata_fetchers import (
    FetchError,
    FetchOutcome,
    MetadataFetcher,
    try_fetch_arxiv_metadata,
    try_fetch_generic_metadata,
)

SOURCE_ARXIV = "arxiv"
SOURCE_GENERIC = "generic"


@dataclass(frozen=True)
class Resolution:
    metadata: MetadataResult
    source_kind: str
    cache_hit: bool = False
    fetched: MetadataResult | None = None
    error: FetchError | None = None

    @property
    def outcome(self) -> str:
        if self.cache_hit:
            return "cache_hit"
        return "fetched" if self.fetched is not None else "fetch_failed"


def merge_metadata(
    fetched: MetadataResult | None,
    overrides: MetadataOverrides | None,
    source_url: str,
) -> MetadataResult:
    """Field-by-field precedence: fetched value, then override, then default."""
    fetched = fetched or MetadataResult()
    overrides = overrides or MetadataOverrides()

    def pick(fetched_value, override_value, default):
        if fetched_value is not None:
            return fetched_value
        if override_value is not None:
            return override_value
        return default

    return MetadataResult(
        title=pick(fetched.title, overrides.title, source_url),
        authors=pick(fetched.authors, overrides.authors, ""),
        abstract=pick(fetched.abstract, overrides.abstract, ""),
        canonical_id=pick(fetched.canonical_id, overrides.canonical_id, ""),
        tags=list(fetched.tags) if fetched.tags is not None else [],
        published_at=fetched.published_at,
    )


def is_cache_entry_usable(source_url: str, cached: MetadataResult) -> bool:
    """Reject cache shapes written before a field became mandatory for the source."""
    if extract_arxiv_id(source_url) and not cached.published_at:
        return False
    return True


class MetadataResolver:
    """Cache-first metadata resolver.

    Collaborators are injected: the cache, the HTTP session handed to the
    fetchers, and the fetch strategies themselves.
    """

    def __init__(
        self,
        cache: MetadataCache,
        *,
        session=None,
        arxiv_fetcher: MetadataFetcher = try_fetch_arxiv_metadata,
        generic_fetcher: MetadataFetcher = try_fetch_generic_metadata,
        ttl_s: float | None = None,
    ):
        self.cache = cache
        self.session = session
        self.arxiv_fetcher = arxiv_fetcher
        self.generic_fetcher = generic_fetcher
        self.ttl_s = ttl_s

    def _read_cache(self, source_url: str) -> MetadataResult | None:
        cached = self.cache.get(source_url)
        if cached is None:
            logger.debug(f"Metadata cache miss: {source_url}")
            return None
        if not is_cache_entry_usable(source_url, cached):
            logger.debug(f"Metadata cache entry has a stale shape, refetching: {source_url}")
            return None
        logger.debug(f"Metadata cache hit: {source_url}")
        return cached

    def _fetch(self, source_url: str, arxiv_id: str | None) -> FetchOutcome:
        if arxiv_id:
            outcome = self.arxiv_fetcher(arxiv_id, session=self.session)
            if outcome.result is not None:
                outcome = FetchOutcome(result=outcome.result.model_copy(update={"canonical_id": arxiv_id}))
            return outcome
        return self.generic_fetcher(source_url, session=self.session)

    def resolve_detailed(
        self,
        source_url: str,
        overrides: MetadataOverrides | None = None,
        bust_cache: bool = False,
    ) -> Resolution:
        arxiv_id = extract_arxiv_id(source_url)
        source_kind = SOURCE_ARXIV if arxiv_id else SOURCE_GENERIC

        if bust_cache:
            logger.debug(f"Metadata cache bypassed: {source_url}")
        else:
            cached = self._read_cache(source_url)
            if cached is not None:
                return Resolution(
                    metadata=merge_metadata(cached, overrides, source_url),
                    source_kind=source_kind,
                    cache_hit=True,
                    fetched=cached,
                )

        try:
            outcome = self._fetch(source_url, arxiv_id)
        except Exception as e:
            # strategies are expected to return errors, but a broken one must not fail the caller
            logger.opt(exception=True).error(f"Metadata fetcher crashed for {source_url}: {e}")
            outcome = FetchOutcome()

        if outcome.result is not None:
            self.cache.put(source_url, outcome.result, self.ttl_s)
        elif outcome.error is not None:
            logger.warning(
                f"Metadata fetch failed for {source_url} ({source_kind}): "
                f"{outcome.error.kind.value} ({outcome.error.message})"
            )

        return Resolution(
            metadata=merge_metadata(outcome.result, overrides, source_url),
            source_kind=source_kind,
            fetched=outcome.result,
            error=outcome.error,
        )

    def resolve(
        self,
        source_url: str,
        overrides: MetadataOverrides | None = None,
        bust_cache: bool = False,
    ) -> MetadataResult:
        return self.resolve_detailed(source_url, overrides, bust_cache).metadata


# -----------------------------------------------------------------------------
# Process-wide default resolver
# -----------------------------------------------------------------------------

_DEFAULT_RESOLVER: MetadataResolver | None = None
_DEFAULT_RESOLVER_LOCK = threading.Lock()


def build_metadata_store():
    """Open the cache store selected by ``settings.metadata.cache_backend``."""
    if settings.metadata.cache_backend == "memory":
        from ..utils.cache import TTLMemoryStore

        return TTLMemoryStore(maxsize=settings.metadata.memory_cache_size)

    from ptlite.db import get_metadata_cache_db

    return get_metadata_cache_db(flag="c")


def create_metadata_resolver(store=None, session=None) -> MetadataResolver:
    cache = MetadataCache(store if store is not None else build_metadata_store())
    return MetadataResolver(cache, session=session)


def get_metadata_resolver() -> MetadataResolver:
    global _DEFAULT_RESOLVER
    if _DEFAULT_RESOLVER is None:
        with _DEFAULT_RESOLVER_LOCK:
            if _DEFAULT_RESOLVER is None:
                import requests

                _DEFAULT_RESOLVER = create_metadata_resolver(session=requests.Session())
                logger.info(f"Metadata resolver ready ({settings.metadata.cache_backend} cache)")
    return _DEFAULT_RESOLVER


def resolve_metadata(
    source_url: str,
    overrides: MetadataOverrides | None = None,
    bust_cache: bool = False,
) -> MetadataResult:
    return get_metadata_resolver().resolve(source_url, overrides, bust_cache)
