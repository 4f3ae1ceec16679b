"""API endpoints package for the rule store."""

from shortlink.app.api.links import router as links_router

__all__ = [
    "links_router",
]
