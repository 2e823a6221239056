"""Integration tests for the paper ingest API."""

from __future__ import annotations

import pytest

ARXIV_API = "https://export.arxiv.org/api/query"


@pytest.fixture
def session(make_session, fake_response, arxiv_feed):
    page = """<html><head>
<title>Scaling Notes</title>
<meta name="description" content="Notes on scaling.">
<meta property="article:published_time" content="2024-03-01T08:00:00Z">
</head></html>"""
    return make_session(
        {
            ARXIV_API: fake_response(200, arxiv_feed),
            "https://blog.example.com/": fake_response(200, page),
            "https://down.example.com/": fake_response(502, "bad gateway"),
        }
    )


@pytest.fixture
def ingest_client(session):
    from backend import create_app
    from backend.services.metadata_cache import MetadataCache
    from backend.services.metadata_service import MetadataResolver
    from backend.utils.cache import TTLMemoryStore

    resolver = MetadataResolver(MetadataCache(TTLMemoryStore(), ttl_s=86400), session=session)
    app = create_app(resolver=resolver)
    app.testing = True
    return app.test_client()


class TestIngestArxiv:
    """Tests for POST /api/papers/ingest with arXiv links."""

    def test_ingest_arxiv_link(self, ingest_client):
        resp = ingest_client.post("/api/papers/ingest", json={"sourceUrl": "https://arxiv.org/abs/1706.03762"})
        assert resp.status_code == 200

        data = resp.get_json()
        assert data["success"] is True
        assert data["cached"] is False
        meta = data["metadata"]
        assert meta["title"] == "Attention Is All You Need"
        assert meta["authors"] == "Ashish Vaswani, Noam Shazeer"
        assert meta["tags"] == ["cs.CL", "cs.LG"]
        assert meta["publishedAt"] == "2017-06-12T17:57:34Z"
        assert meta["canonicalId"] == "1706.03762"

    def test_second_ingest_is_cached(self, ingest_client, session):
        body = {"sourceUrl": "https://arxiv.org/abs/1706.03762"}
        ingest_client.post("/api/papers/ingest", json=body)
        resp = ingest_client.post("/api/papers/ingest", json=body)

        assert resp.get_json()["cached"] is True
        assert len(session.calls) == 1

    def test_bust_cache_refetches(self, ingest_client, session):
        body = {"sourceUrl": "https://arxiv.org/abs/1706.03762"}
        ingest_client.post("/api/papers/ingest", json=body)
        resp = ingest_client.post("/api/papers/ingest", json={**body, "bustCache": True})

        assert resp.get_json()["cached"] is False
        assert len(session.calls) == 2

    def test_fetched_title_beats_supplied_title(self, ingest_client):
        resp = ingest_client.post(
            "/api/papers/ingest",
            json={"sourceUrl": "https://arxiv.org/abs/1706.03762", "title": "My Own Title"},
        )
        assert resp.get_json()["metadata"]["title"] == "Attention Is All You Need"


class TestIngestGeneric:
    """Tests for POST /api/papers/ingest with ordinary web pages."""

    def test_ingest_blog_post(self, ingest_client):
        resp = ingest_client.post(
            "/api/papers/ingest",
            json={"sourceUrl": "https://blog.example.com/scaling", "authors": "Jane Doe"},
        )
        meta = resp.get_json()["metadata"]

        assert meta["title"] == "Scaling Notes"
        assert meta["abstract"] == "Notes on scaling."
        assert meta["authors"] == "Jane Doe"
        assert meta["publishedAt"] == "2024-03-01T08:00:00Z"
        assert meta["canonicalId"] == ""
        assert meta["tags"] == []

    def test_upstream_failure_degrades(self, ingest_client):
        resp = ingest_client.post(
            "/api/papers/ingest",
            json={"sourceUrl": "https://down.example.com/post", "title": "Fallback Title"},
        )
        assert resp.status_code == 200

        meta = resp.get_json()["metadata"]
        assert meta["title"] == "Fallback Title"
        assert "publishedAt" not in meta

    def test_upstream_failure_without_title_uses_url(self, ingest_client):
        url = "https://down.example.com/untitled"
        resp = ingest_client.post("/api/papers/ingest", json={"sourceUrl": url})
        assert resp.get_json()["metadata"]["title"] == url


class TestIngestValidation:
    def test_missing_body_returns_400(self, ingest_client):
        resp = ingest_client.post("/api/papers/ingest")
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_missing_source_url_returns_400(self, ingest_client):
        resp = ingest_client.post("/api/papers/ingest", json={"title": "No URL"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid request data"

    def test_invalid_source_url_returns_400(self, ingest_client):
        resp = ingest_client.post("/api/papers/ingest", json={"sourceUrl": "javascript:alert(1)"})
        assert resp.status_code == 400

    def test_get_not_allowed(self, ingest_client):
        resp = ingest_client.get("/api/papers/ingest")
        assert resp.status_code == 405
        assert resp.get_json()["error"] == "Method Not Allowed"
