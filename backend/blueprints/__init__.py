"""Blueprint modules for app routes."""

from . import api_papers, metrics

__all__ = [
    "api_papers",
    "metrics",
]
