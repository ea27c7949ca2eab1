# src/forum_content/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import history_router, posts_router, replies_router

__all__ = ["history_router", "posts_router", "replies_router"]
