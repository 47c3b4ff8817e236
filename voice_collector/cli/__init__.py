"""Command-line interface for Voice Collector."""

from .commands import app

__all__ = ["app"]
