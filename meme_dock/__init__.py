"""Meme Dock API - content backend for managing memes on Appwrite."""

__version__ = "1.0.0"

from .app import app, create_app  # noqa: E402

__all__ = ["__version__", "app", "create_app"]
