"""Pydantic schemas for resolved paper metadata and the ingest API."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MetadataResult(BaseModel):
    """Bibliographic metadata for one source URL.

    Every field is optional: ``None`` means the source did not provide it.
    Serialized with camelCase aliases and without ``None`` fields, which is
    also the cache payload format.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    title: str | None = None
    abstract: str | None = None
    authors: str | None = None
    tags: list[str] | None = None
    published_at: str | None = Field(default=None, alias="publishedAt")
    canonical_id: str | None = Field(default=None, alias="canonicalId")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class MetadataOverrides(BaseModel):
    """Caller-supplied values used only for fields a fetch did not produce."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    title: str | None = None
    authors: str | None = None
    abstract: str | None = None
    canonical_id: str | None = Field(default=None, alias="canonicalId")

    @field_validator("title", "authors", "abstract", "canonical_id")
    @classmethod
    def empty_as_missing(cls, v: str | None) -> str | None:
        return v or None


class IngestRequest(MetadataOverrides):
    source_url: str = Field(alias="sourceUrl")
    bust_cache: bool = Field(default=False, alias="bustCache")

    @field_validator("source_url")
    @classmethod
    def validate_source_url(cls, v: str) -> str:
        # no normalization beyond whitespace stripping: the exact string is the cache key
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("sourceUrl must be an absolute http(s) URL")
        return v

    def overrides(self) -> MetadataOverrides:
        return MetadataOverrides(
            title=self.title,
            authors=self.authors,
            abstract=self.abstract,
            canonical_id=self.canonical_id,
        )
