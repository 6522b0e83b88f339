"""Pydantic schemas for API validation."""

from .folder import (
    FolderCreate,
    FolderUpdate,
    FolderMove,
    FolderReorderRequest,
    FolderResponse,
    FolderListItem,
    FolderTreeNode,
    FolderTreeResponse,
    FolderDeleteResponse,
    ReorderItem,
)
from .link import (
    LinkCreate,
    LinkUpdate,
    LinkResponse,
    LinkListResponse,
    LinkReorderRequest,
    BulkDeleteRequest,
    BulkDeleteResponse,
    TransferRequest,
    TransferResponse,
    ViewResponse,
    BookmarkNode,
    BookmarkImportRequest,
    BookmarkImportResponse,
    ClassificationResult,
)
from .tag import (
    TagCreate,
    TagUpdate,
    TagBrief,
    TagResponse,
    AllTagsResponse,
)
from .extension import (
    QuickSaveRequest,
    QuickSaveResult,
    QuickSaveResponse,
    LinkSaveSettings,
    AuthCheckResponse,
)

__all__ = [
    "FolderCreate",
    "FolderUpdate",
    "FolderMove",
    "FolderReorderRequest",
    "FolderResponse",
    "FolderListItem",
    "FolderTreeNode",
    "FolderTreeResponse",
    "FolderDeleteResponse",
    "ReorderItem",
    "LinkCreate",
    "LinkUpdate",
    "LinkResponse",
    "LinkListResponse",
    "LinkReorderRequest",
    "BulkDeleteRequest",
    "BulkDeleteResponse",
    "TransferRequest",
    "TransferResponse",
    "ViewResponse",
    "BookmarkNode",
    "BookmarkImportRequest",
    "BookmarkImportResponse",
    "ClassificationResult",
    "TagCreate",
    "TagUpdate",
    "TagBrief",
    "TagResponse",
    "AllTagsResponse",
    "QuickSaveRequest",
    "QuickSaveResult",
    "QuickSaveResponse",
    "LinkSaveSettings",
    "AuthCheckResponse",
]
