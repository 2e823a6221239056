"""Shared pytest fixtures and test configuration.

This module provides common fixtures and utilities for all tests.
"""

from __future__ import annotations

import os
import sys
import tempfile

import pytest

# Ensure repo root is on sys.path
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


def configure_test_env() -> None:
    """Configure environment variables for testing.

    The metadata cache database always lives in a throwaway directory unless
    PAPER_TRACKER_DATA_DIR is already set, so tests never touch real data/.
    """
    if "PAPER_TRACKER_DATA_DIR" not in os.environ:
        os.environ["PAPER_TRACKER_DATA_DIR"] = tempfile.mkdtemp(prefix="paper_tracker_test_")

    os.environ.setdefault("PAPER_TRACKER_LOG_LEVEL", "ERROR")
    os.environ["PAPER_TRACKER_ENABLE_METRICS"] = "0"
    os.environ["PAPER_TRACKER_LOG_TO_FILE"] = "0"


# Configure test environment on import
configure_test_env()


SAMPLE_ARXIV_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <link href="http://arxiv.org/api/query?search_query%3D%26id_list%3D1706.03762%26start%3D0%26max_results%3D10" rel="self" type="application/atom+xml"/>
  <title type="html">ArXiv Query: search_query=&amp;id_list=1706.03762&amp;start=0&amp;max_results=10</title>
  <id>http://arxiv.org/api/cHxbiOdZaP56ODnBPIenZhzg5f8</id>
  <updated>2017-06-12T00:00:00-04:00</updated>
  <opensearch:totalResults xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">1</opensearch:totalResults>
  <opensearch:startIndex xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">0</opensearch:startIndex>
  <opensearch:itemsPerPage xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">10</opensearch:itemsPerPage>
  <entry>
    <id>http://arxiv.org/abs/1706.03762v7</id>
    <updated>2023-08-02T00:41:18Z</updated>
    <published>2017-06-12T17:57:34Z</published>
    <title>Attention Is All
      You Need</title>
    <summary>  The dominant sequence transduction models are based on complex recurrent or
convolutional neural networks that include an encoder and a decoder. We propose
a new simple network architecture, the Transformer.
</summary>
    <author>
      <name>Ashish Vaswani</name>
    </author>
    <author>
      <name>Noam Shazeer</name>
    </author>
    <arxiv:comment xmlns:arxiv="http://arxiv.org/schemas/atom">15 pages, 5 figures</arxiv:comment>
    <link href="http://arxiv.org/abs/1706.03762v7" rel="alternate" type="text/html"/>
    <link title="pdf" href="http://arxiv.org/pdf/1706.03762v7" rel="related" type="application/pdf"/>
    <arxiv:primary_category xmlns:arxiv="http://arxiv.org/schemas/atom" term="cs.CL" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.CL" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.LG" scheme="http://arxiv.org/schemas/atom"/>
  </entry>
</feed>
"""

EMPTY_ARXIV_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title type="html">ArXiv Query: search_query=&amp;id_list=9999.99999</title>
  <id>http://arxiv.org/api/empty</id>
  <updated>2024-01-01T00:00:00-05:00</updated>
  <opensearch:totalResults xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/">0</opensearch:totalResults>
</feed>
"""


class FakeResponse:
    """Just enough of a streamed requests.Response for bounded_get."""

    def __init__(self, status_code: int = 200, text: str = "", headers: dict | None = None):
        self.status_code = status_code
        self.text = text
        self.content = text.encode("utf-8")
        self.headers = dict(headers or {"Content-Type": "text/html; charset=utf-8"})
        self.encoding = "utf-8"
        self.closed = False

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start : start + chunk_size]

    def close(self):
        self.closed = True


class FakeSession:
    """Records GET calls and replays canned responses (or raises) per URL prefix."""

    def __init__(self, routes: dict | None = None):
        self.routes = dict(routes or {})
        self.calls: list[dict] = []

    def get(self, url, params=None, headers=None, timeout=None, stream=False):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout, "stream": stream})
        for prefix, reply in self.routes.items():
            if url.startswith(prefix):
                if isinstance(reply, BaseException):
                    raise reply
                return reply
        return FakeResponse(404, "not found")


@pytest.fixture
def arxiv_feed() -> str:
    return SAMPLE_ARXIV_FEED


@pytest.fixture
def empty_arxiv_feed() -> str:
    return EMPTY_ARXIV_FEED


@pytest.fixture
def make_session():
    """Factory for FakeSession objects."""
    return FakeSession


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def memory_store():
    """In-memory TTL store with a controllable clock."""
    from backend.utils.cache import TTLMemoryStore

    class Clock:
        def __init__(self):
            self.now = 1_700_000_000.0

        def __call__(self):
            return self.now

        def advance(self, seconds: float):
            self.now += seconds

    clock = Clock()
    store = TTLMemoryStore(maxsize=64, clock=clock)
    store.clock = clock
    return store


@pytest.fixture
def app():
    """Flask app without an injected resolver."""
    from backend import create_app

    application = create_app()
    application.testing = True
    return application


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
