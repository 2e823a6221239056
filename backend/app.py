"""Flask application factory."""

from __future__ import annotations

import logging
import sys

from flask import Flask, jsonify
from loguru import logger

from config import settings

from .blueprints import api_papers, metrics
from .services.metadata_service import MetadataResolver


def configure_logging() -> None:
    logger.remove()
    _serialize_logs = str(settings.log_format or "text").strip().lower() == "json"
    logger.add(sys.stdout, level=settings.log_level.upper(), serialize=_serialize_logs)
    if settings.log_to_file:
        logger.add(
            settings.log_dir / "paper_tracker.log",
            level=settings.log_level.upper(),
            serialize=_serialize_logs,
            rotation=settings.log_rotation,
            retention=settings.log_retention,
            encoding="utf-8",
        )

    if not settings.web.access_log:
        logging.getLogger("werkzeug").setLevel(logging.WARNING)


configure_logging()


def create_app(resolver: MetadataResolver | None = None) -> Flask:
    """Build the API app.

    ``resolver`` replaces the process-wide metadata resolver (tests pass fakes
    here); when omitted it is created lazily on the first ingest request.
    """
    app = Flask(__name__)
    app.config.update(
        JSON_SORT_KEYS=False,
        MAX_CONTENT_LENGTH=settings.web.max_content_length,
    )
    if resolver is not None:
        app.extensions["metadata_resolver"] = resolver

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({"ok": True, "service": settings.app_name})

    @app.errorhandler(404)
    def _handle_404(_err):
        return jsonify({"success": False, "error": "Not Found"}), 404

    @app.errorhandler(405)
    def _handle_405(_err):
        return jsonify({"success": False, "error": "Method Not Allowed"}), 405

    @app.errorhandler(413)
    def _handle_413(_err):
        return jsonify({"success": False, "error": "Request body too large"}), 413

    @app.errorhandler(500)
    def _handle_500(_err):
        return jsonify({"success": False, "error": "Internal Server Error"}), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        resp.headers.setdefault("Cache-Control", "no-store")
        return resp

    app.register_blueprint(api_papers.bp)
    app.register_blueprint(metrics.bp)

    # Prometheus request metrics (no-op unless enabled).
    app.before_request(metrics.before_request_hook)
    app.after_request(metrics.after_request_hook)

    logger.debug(f"{settings.app_name} app created")
    return app
