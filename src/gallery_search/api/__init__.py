"""HTTP API for gallery search."""

from gallery_search.api.app import create_app

__all__ = ["create_app"]
