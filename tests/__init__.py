"""Test package for paper-tracker.

This package contains tests organized into two categories:

- **unit/**: Unit tests for individual functions and classes
  - test_arxiv_parse.py: arXiv link classification and Atom parsing
  - test_web_extract.py: Web page meta-tag extraction
  - test_bounded_fetch.py: Download deadline and body size cap (local socket server)
  - test_metadata_fetchers.py: Fetch strategies and their error kinds
  - test_cache.py: In-memory TTL store
  - test_sqlitekv_*.py: SQLite store expiry, retries, table names
  - test_metadata_cache.py: JSON cache entries over a store
  - test_metadata_service.py: Resolver (cache, bypass, stale entries, degradation)
  - test_schemas.py: Pydantic schema tests
  - test_config_reload.py, test_settings_path_resolution.py, test_config_cli.py: Settings
  - test_metrics_endpoint.py: Optional /metrics endpoint
  - test_logging.py: loguru stdout and file sinks

- **integration/**: Integration tests using Flask test client
  - test_app.py: Application setup, blueprints, routes
  - test_api_papers.py: Paper ingest API

Running tests:
    # Run all tests
    pytest tests/

    # Run only unit tests
    pytest tests/unit/

No test touches the network: HTTP is served by in-process fake sessions, or
by a socket server bound to 127.0.0.1 for the download deadline tests.
"""
