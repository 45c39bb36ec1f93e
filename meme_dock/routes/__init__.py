"""API routers."""

from . import auth, collections, documents, files, images, memes, translate

__all__ = ["auth", "collections", "documents", "files", "images", "memes", "translate"]
