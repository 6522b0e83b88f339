"""Business logic services."""

from .folder_service import FolderService
from .link_service import LinkService
from .tag_service import TagService
from .quick_save_service import QuickSaveService
from .import_service import BookmarkImportService
from .classification_service import ClassificationAdvisor

__all__ = [
    "FolderService",
    "LinkService",
    "TagService",
    "QuickSaveService",
    "BookmarkImportService",
    "ClassificationAdvisor",
]
