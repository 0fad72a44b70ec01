"""HTTP surface: batch-run trigger and feedback hook."""

from .app import create_app

__all__ = ["create_app"]
