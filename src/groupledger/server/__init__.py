"""Server module - HTTP status and download endpoints."""
from .app import create_app

__all__ = ["create_app"]
