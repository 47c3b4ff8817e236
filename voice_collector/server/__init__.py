"""HTTP server for Voice Collector."""

from .app import create_app

__all__ = ["create_app"]
