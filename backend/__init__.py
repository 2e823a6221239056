"""Backend package for the Paper Tracker API.

This package provides the Flask application factory and blueprints.
The main entry point is `create_app()` from `backend.app`.

Modules:
- app: Flask application factory
- blueprints/: Route handlers (paper ingest, metrics)
- schemas/: Pydantic request/response models
- services/: Metadata fetchers, cache and resolver
- utils/: In-memory TTL store
"""

from .app import create_app

__all__ = ["create_app"]
