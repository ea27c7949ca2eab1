"""API endpoint modules for version 1."""

from .history import router as history_router
from .posts import router as posts_router
from .replies import router as replies_router

__all__ = ["history_router", "posts_router", "replies_router"]
