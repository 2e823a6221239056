"""Metadata cache keyed by exact source URL.

The store only sees strings: ``<prefix><source_url>`` -> JSON payload. Any
failure reading or decoding an entry turns into a cache miss, and an entry
that cannot be decoded is deleted. A failed write is logged and dropped;
resolution never depends on the cache working.
"""

from __future__ import annotations

import json
from typing import Protocol

from loguru import logger
from pydantic import ValidationError

from config import METADATA_CACHE_TTL_S, settings

from ..schemas.metadata import MetadataResult


class KeyValueStore(Protocol):
    def get(self, key: str, default=None): ...

    def put(self, key: str, value: str, ttl_s: float | None = None): ...

    def delete(self, key: str) -> bool: ...


class MetadataCache:
    def __init__(self, store: KeyValueStore, ttl_s: float | None = None, key_prefix: str | None = None):
        self.store = store
        self.ttl_s = float(ttl_s if ttl_s is not None else settings.metadata.cache_ttl or METADATA_CACHE_TTL_S)
        self.key_prefix = settings.metadata.cache_key_prefix if key_prefix is None else key_prefix

    def key_for(self, source_url: str) -> str:
        return f"{self.key_prefix}{source_url}"

    def get(self, source_url: str) -> MetadataResult | None:
        key = self.key_for(source_url)
        try:
            raw = self.store.get(key)
        except Exception as e:
            logger.error(f"Metadata cache read failed for {source_url}: {e}")
            return None
        if raw is None:
            return None

        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
            return MetadataResult.model_validate(payload)
        except (ValueError, TypeError, ValidationError) as e:
            logger.warning(f"Dropping undecodable metadata cache entry for {source_url}: {e}")
            self._discard(key, source_url)
            return None

    def _discard(self, key: str, source_url: str) -> None:
        try:
            self.store.delete(key)
        except Exception as e:
            logger.error(f"Metadata cache delete failed for {source_url}: {e}")

    def put(self, source_url: str, result: MetadataResult, ttl_s: float | None = None) -> bool:
        key = self.key_for(source_url)
        ttl = self.ttl_s if ttl_s is None else float(ttl_s)
        try:
            self.store.put(key, json.dumps(result.to_payload(), ensure_ascii=False), ttl)
        except Exception as e:
            logger.error(f"Metadata cache write failed for {source_url}: {e}")
            return False
        return True
