"""Folder and tree schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from ..core.scope import OwnerType

FOLDER_NAME_MAX = 100
ICON_MAX = 50


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Folder name cannot be empty")
    if len(v) > FOLDER_NAME_MAX:
        raise ValueError(f"Folder name must be at most {FOLDER_NAME_MAX} characters")
    return v


def _clean_icon(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if len(v) > ICON_MAX:
        raise ValueError(f"Icon must be at most {ICON_MAX} characters")
    return v or None


class FolderCreate(BaseModel):
    """Create a folder in the caller's personal or team scope."""
    name: str
    icon: Optional[str] = None
    parent_id: Optional[str] = None  # None = root level
    owner_type: OwnerType = OwnerType.PERSONAL

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator('icon')
    @classmethod
    def validate_icon(cls, v: Optional[str]) -> Optional[str]:
        return _clean_icon(v)


class FolderUpdate(BaseModel):
    """Rename a folder and/or change its icon.

    Send ``icon: null`` to clear the icon; omit a field to leave it unchanged.
    """
    name: Optional[str] = None
    icon: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_name(v)

    @field_validator('icon')
    @classmethod
    def validate_icon(cls, v: Optional[str]) -> Optional[str]:
        return _clean_icon(v)


class FolderMove(BaseModel):
    """Move a folder to a new parent."""
    parent_id: Optional[str] = None  # None = root level


class ReorderItem(BaseModel):
    id: str
    sort_order: int = Field(ge=0)


class FolderReorderRequest(BaseModel):
    """New positions for some or all folders of one sibling group."""
    items: List[ReorderItem] = Field(min_length=1)


class FolderResponse(BaseModel):
    """Folder in API responses."""
    id: str
    owner_type: OwnerType
    parent_id: Optional[str] = None
    name: str
    icon: Optional[str] = None
    sort_order: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FolderListItem(BaseModel):
    """Flat folder entry with its display path, e.g. ``Work > Tools``."""
    id: str
    owner_type: OwnerType
    parent_id: Optional[str] = None
    name: str
    icon: Optional[str] = None
    sort_order: int
    path: str
    depth: int = 0


class FolderTreeNode(BaseModel):
    """One folder of a scope's forest with its children in sort order."""
    id: str
    name: str
    icon: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: int
    link_count: int = 0
    children: List['FolderTreeNode'] = []


class FolderTreeResponse(BaseModel):
    """Both forests visible to the caller."""
    personal: List[FolderTreeNode]
    team: List[FolderTreeNode]
    has_team: bool


class FolderDeleteResponse(BaseModel):
    folder_id: str
    deleted_folders: int
    deleted_links: int
