"""
Flask server entry point

Development:
    python serve.py
Production (any WSGI server):
    gunicorn 'serve:app' --bind 127.0.0.1:8787
"""

from loguru import logger

from backend import create_app
from config import settings

app = create_app()


if __name__ == "__main__":
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.serve_port}")
    app.run(host=settings.host, port=settings.serve_port)
