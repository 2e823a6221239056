"""Pydantic schemas."""

from .metadata import IngestRequest, MetadataOverrides, MetadataResult

__all__ = [
    "IngestRequest",
    "MetadataOverrides",
    "MetadataResult",
]
