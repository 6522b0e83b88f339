"""Tag API endpoints."""

from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import CallerContext, require_auth
from ..core.scope import OwnerType
from ..database import get_db
from ..schemas.tag import AllTagsResponse, TagCreate, TagResponse, TagUpdate
from ..services.ownership_service import resolve_scope
from ..services.tag_service import TagService

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("/all", response_model=AllTagsResponse)
def list_all_tags(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Personal and team tags with link counts."""
    return TagService(db).list_all_tags(caller)


@router.get("", response_model=List[TagResponse])
def list_tags(
    owner_type: OwnerType = Query(OwnerType.PERSONAL),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Tags of one scope ordered by name."""
    return TagService(db).list_tags(resolve_scope(caller, owner_type))


@router.post("", response_model=TagResponse, status_code=201)
def create_tag(
    data: TagCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    return TagService(db).create_tag(caller, data)


@router.put("/{tag_id}", response_model=TagResponse)
def update_tag(
    tag_id: str,
    data: TagUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    return TagService(db).update_tag(caller, tag_id, data)


@router.delete("/{tag_id}", status_code=204)
def delete_tag(
    tag_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Delete a tag. Links that carried it are kept."""
    TagService(db).delete_tag(caller, tag_id)
