"""Voice Collector - spoken letter and command sample collection.

This package records a student saying every letter and command word over
several runs, queues each sample locally and syncs it to a recordings server.
"""

from .cli.commands import app

__version__ = "1.0.0"

__all__ = ["app", "__version__"]
