"""Tag schemas."""

import re

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, List

from ..core.scope import OwnerType
from ..models.tag import DEFAULT_TAG_COLOR

TAG_NAME_MAX = 50
_COLOR_RE = re.compile(r'^#[0-9A-Fa-f]{6}$')


def _clean_tag_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Tag name cannot be empty")
    if len(v) > TAG_NAME_MAX:
        raise ValueError(f"Tag name must be at most {TAG_NAME_MAX} characters")
    return v


def _clean_color(v: str) -> str:
    if not _COLOR_RE.match(v):
        raise ValueError("Color must be a hex value like #3B82F6")
    return v.upper()


class TagCreate(BaseModel):
    name: str
    color: str = DEFAULT_TAG_COLOR
    owner_type: OwnerType = OwnerType.PERSONAL

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _clean_tag_name(v)

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: str) -> str:
        return _clean_color(v)


class TagUpdate(BaseModel):
    name: Optional[str] = None
    color: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_tag_name(v)

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _clean_color(v)


class TagBrief(BaseModel):
    """Tag as embedded in a link."""
    id: str
    name: str
    color: str

    class Config:
        from_attributes = True


class TagResponse(BaseModel):
    id: str
    owner_type: OwnerType
    name: str
    color: str
    link_count: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AllTagsResponse(BaseModel):
    personal: List[TagResponse]
    team: List[TagResponse]
