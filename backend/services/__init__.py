"""Services package initialization."""

from .api_helpers import api_error, api_success, parse_api_request
from .metadata_cache import MetadataCache
from .metadata_fetchers import (
    FetchError,
    FetchErrorKind,
    FetchOutcome,
    fetch_arxiv_metadata,
    fetch_generic_metadata,
    try_fetch_arxiv_metadata,
    try_fetch_generic_metadata,
)
from .metadata_service import (
    MetadataResolver,
    Resolution,
    create_metadata_resolver,
    get_metadata_resolver,
    merge_metadata,
    resolve_metadata,
)

__all__ = [
    # API helpers
    "api_error",
    "api_success",
    "parse_api_request",
    # Fetchers
    "FetchError",
    "FetchErrorKind",
    "FetchOutcome",
    "fetch_arxiv_metadata",
    "fetch_generic_metadata",
    "try_fetch_arxiv_metadata",
    "try_fetch_generic_metadata",
    # Cache + resolver
    "MetadataCache",
    "MetadataResolver",
    "Resolution",
    "create_metadata_resolver",
    "get_metadata_resolver",
    "merge_metadata",
    "resolve_metadata",
]
