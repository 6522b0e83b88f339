"""API routes."""

from .folders import router as folders_router
from .links import router as links_router
from .tags import router as tags_router
from .extension import router as extension_router

__all__ = [
    "folders_router",
    "links_router",
    "tags_router",
    "extension_router",
]
