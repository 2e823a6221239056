"""Prometheus metrics endpoint (optional)."""

from __future__ import annotations

import hmac
import threading
import time

from flask import Blueprint, Response, abort, g, request
from loguru import logger

bp = Blueprint("metrics", __name__)

METRICS_KEY_HEADER = "X-Paper-Tracker-Metrics-Key"

# Metric objects are created lazily and once per process (default registry).
_METRICS: dict = {}
_METRICS_LOCK = threading.Lock()


def _is_enabled() -> bool:
    import config

    return bool(config.settings.web.enable_metrics)


def _check_key() -> None:
    import config

    key = (config.settings.web.metrics_key or "").strip()
    if not key:
        return

    provided = (request.headers.get(METRICS_KEY_HEADER) or "").strip()
    if not hmac.compare_digest(provided, key):
        abort(403)


def _metric(name: str):
    with _METRICS_LOCK:
        if not _METRICS:
            from prometheus_client import Counter, Histogram

            _METRICS["requests"] = Counter(
                "http_requests_total",
                "Total HTTP requests",
                ["method", "endpoint", "status"],
            )
            _METRICS["latency"] = Histogram(
                "http_request_duration_seconds",
                "HTTP request duration in seconds",
                ["method", "endpoint"],
            )
            _METRICS["resolutions"] = Counter(
                "metadata_resolutions_total",
                "Metadata resolutions by source kind and outcome",
                ["source", "outcome"],
            )
        return _METRICS[name]


@bp.route("/metrics", methods=["GET"])
def metrics():
    if not _is_enabled():
        abort(404)
    _check_key()

    try:
        from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

        _metric("resolutions")
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)
    except Exception:
        logger.opt(exception=True).warning("Failed to generate Prometheus metrics")
        abort(503)


def record_resolution(source_kind: str, outcome: str) -> None:
    """Count one metadata resolution (outcome: cache_hit / fetched / fetch_failed)."""
    if not _is_enabled():
        return
    try:
        _metric("resolutions").labels(source=source_kind, outcome=outcome).inc()
    except Exception:
        logger.opt(exception=True).debug("Failed to record resolution metric")


def before_request_hook() -> None:
    """Record request start time (only when metrics are enabled)."""
    if _is_enabled():
        g._metrics_start_time = time.perf_counter()


def after_request_hook(response):
    """Update request counters/histograms (only when metrics are enabled)."""
    if not _is_enabled():
        return response

    start = getattr(g, "_metrics_start_time", None)
    if start is None:
        return response

    try:
        duration = max(0.0, time.perf_counter() - start)
        endpoint = request.endpoint or "unknown"
        method = request.method or "UNKNOWN"
        status = str(getattr(response, "status_code", 0) or 0)
        _metric("requests").labels(method=method, endpoint=endpoint, status=status).inc()
        _metric("latency").labels(method=method, endpoint=endpoint).observe(duration)
    except Exception:
        # metrics failures must not break responses
        logger.opt(exception=True).debug("Failed to record request metrics")

    return response
