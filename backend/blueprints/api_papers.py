"""Paper-related API routes."""

from __future__ import annotations

from flask import Blueprint, current_app

from ..schemas.metadata import IngestRequest
from ..services.api_helpers import api_success, parse_api_request
from ..services.metadata_service import MetadataResolver, get_metadata_resolver
from . import metrics

bp = Blueprint("papers", __name__)


def _resolver() -> MetadataResolver:
    resolver = current_app.extensions.get("metadata_resolver")
    if resolver is None:
        resolver = get_metadata_resolver()
        current_app.extensions["metadata_resolver"] = resolver
    return resolver


@bp.route("/api/papers/ingest", methods=["POST"])
def api_ingest_paper():
    """Resolve metadata for a source URL
    ---
    tags:
      - Papers
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - sourceUrl
          properties:
            sourceUrl:
              type: string
              description: arXiv abs/pdf link or any article URL
            title:
              type: string
            authors:
              type: string
            abstract:
              type: string
            canonicalId:
              type: string
            bustCache:
              type: boolean
              default: false
              description: Skip the cache and refetch from the source
    responses:
      200:
        description: Merged metadata (fetched values override the supplied ones)
      400:
        description: Invalid request data
    """
    req, err = parse_api_request(IngestRequest)
    if err:
        return err

    resolution = _resolver().resolve_detailed(req.source_url, req.overrides(), bust_cache=req.bust_cache)
    metrics.record_resolution(resolution.source_kind, resolution.outcome)

    # publishedAt stays absent when unknown; the other fields always carry a value
    payload = resolution.metadata.model_dump(by_alias=True)
    if payload.get("publishedAt") is None:
        payload.pop("publishedAt", None)
    return api_success(metadata=payload, cached=resolution.cache_hit)
