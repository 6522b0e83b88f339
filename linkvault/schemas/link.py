"""Link schemas."""

from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Literal, Optional, List

from ..core.scope import OwnerType
from .folder import ReorderItem
from .tag import TagBrief

TITLE_MAX = 500
DESCRIPTION_MAX = 2000


def validate_http_url(v: str) -> str:
    """Accept only absolute http(s) URLs with a host."""
    v = v.strip()
    parsed = urlparse(v)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("URL must be an absolute http or https URL")
    return v


def _clean_title(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Title cannot be empty")
    if len(v) > TITLE_MAX:
        raise ValueError(f"Title must be at most {TITLE_MAX} characters")
    return v


def _clean_description(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if len(v) > DESCRIPTION_MAX:
        raise ValueError(f"Description must be at most {DESCRIPTION_MAX} characters")
    return v or None


class LinkCreate(BaseModel):
    """Create a link in a folder.

    The folder decides the owner scope. When ``owner_type`` is given the
    folder must belong to that scope.
    """
    folder_id: str
    owner_type: Optional[OwnerType] = None
    url: str
    title: str
    description: Optional[str] = None
    favicon: Optional[str] = None
    tag_ids: List[str] = []
    rating: Optional[int] = Field(default=None, ge=0, le=5)
    auto_tag: bool = True

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        return validate_http_url(v)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _clean_title(v)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)

    @field_validator('tag_ids')
    @classmethod
    def dedupe_tag_ids(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


class LinkUpdate(BaseModel):
    """Partial update. Fields that are not sent stay unchanged.

    ``tag_ids`` replaces the whole tag set; send ``[]`` to clear it.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=0, le=5)
    tag_ids: Optional[List[str]] = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_title(v)

    @field_validator('description')
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        return _clean_description(v)

    @field_validator('tag_ids')
    @classmethod
    def dedupe_tag_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else list(dict.fromkeys(v))


class ClassificationResult(BaseModel):
    """What the classification advisor contributed to a create."""
    tag_ids: List[str] = []
    reason: Optional[str] = None


class LinkResponse(BaseModel):
    """Link in API responses."""
    id: str
    owner_type: OwnerType
    folder_id: str
    url: str
    title: str
    description: Optional[str] = None
    favicon: Optional[str] = None
    rating: Optional[int] = None
    sort_order: int
    created_by_id: Optional[str] = None
    source_link_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    tags: List[TagBrief] = []
    viewed_by: List[str] = []
    classification: Optional[ClassificationResult] = None


class LinkListResponse(BaseModel):
    links: List[LinkResponse]
    total: int
    page: int
    per_page: int
    total_pages: int


class LinkReorderRequest(BaseModel):
    """New positions for links of one folder."""
    folder_id: str
    items: List[ReorderItem] = Field(min_length=1)


class BulkDeleteRequest(BaseModel):
    ids: List[str] = Field(min_length=1)


class BulkDeleteResponse(BaseModel):
    deleted: int
    skipped: List[str] = []


class TransferRequest(BaseModel):
    target_folder_id: str


class TransferResponse(BaseModel):
    """``moved`` keeps the link's identity; ``copied`` returns the new row."""
    action: Literal["moved", "copied"]
    link: LinkResponse


class ViewResponse(BaseModel):
    link_id: str
    viewed: bool


class BookmarkNode(BaseModel):
    """A browser bookmark or bookmark folder (folders have ``children``)."""
    title: Optional[str] = None
    url: Optional[str] = None
    children: Optional[List['BookmarkNode']] = None


class BookmarkImportRequest(BaseModel):
    owner_type: OwnerType = OwnerType.PERSONAL
    bookmarks: List[BookmarkNode]
    root_folder_name: Optional[str] = None

    @field_validator('root_folder_name')
    @classmethod
    def validate_root_folder_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v[:100] or None


class BookmarkImportResponse(BaseModel):
    folders_created: int = 0
    links_created: int = 0
    links_skipped: int = 0
    errors: List[str] = []


class LinkMetadata(BaseModel):
    """Suggested title and favicon for a URL, used to prefill a new link."""
    title: str
    favicon: Optional[str] = None
