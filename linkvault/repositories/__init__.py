"""Data access repositories."""

from .base import BaseRepository
from .folder_repository import FolderRepository
from .link_repository import LinkRepository
from .tag_repository import TagRepository

__all__ = [
    "BaseRepository",
    "FolderRepository",
    "LinkRepository",
    "TagRepository",
]
