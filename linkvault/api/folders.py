"""Folder API endpoints.

The owner scope is always resolved from the authenticated caller; request
bodies only say which kind of scope (PERSONAL or TEAM) they target.
"""

from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import CallerContext, require_auth
from ..core.scope import OwnerType
from ..database import get_db
from ..schemas.folder import (
    FolderCreate,
    FolderDeleteResponse,
    FolderListItem,
    FolderMove,
    FolderReorderRequest,
    FolderResponse,
    FolderTreeResponse,
    FolderUpdate,
)
from ..services.folder_service import FolderService
from ..services.ownership_service import resolve_scope

router = APIRouter(prefix="/api/folders", tags=["folders"])


@router.get("/tree", response_model=FolderTreeResponse)
def get_folder_tree(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Personal and team folder forests, each node with its link count."""
    return FolderService(db).get_folder_tree(caller)


@router.get("", response_model=List[FolderListItem])
def list_folders(
    owner_type: OwnerType = Query(OwnerType.PERSONAL),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Flat folder list of one scope with ``A > B > C`` display paths."""
    scope = resolve_scope(caller, owner_type)
    return FolderService(db).list_folders(scope)


@router.post("", response_model=FolderResponse, status_code=201)
def create_folder(
    data: FolderCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Create a folder. New folders go to the front of their sibling group."""
    return FolderService(db).create_folder(caller, data)


@router.put("/reorder", response_model=List[FolderResponse])
def reorder_folders(
    data: FolderReorderRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Reorder folders of one sibling group. Returns the whole group in its new order."""
    updates = [(item.id, item.sort_order) for item in data.items]
    return FolderService(db).reorder_folders(caller, updates)


@router.put("/{folder_id}", response_model=FolderResponse)
def update_folder(
    folder_id: str,
    data: FolderUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Rename a folder and/or change its icon."""
    return FolderService(db).update_folder(caller, folder_id, data)


@router.put("/{folder_id}/move", response_model=FolderResponse)
def move_folder(
    folder_id: str,
    data: FolderMove,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Move a folder under another folder of the same scope, or to the root."""
    return FolderService(db).move_folder(caller, folder_id, data.parent_id)


@router.delete("/{folder_id}", response_model=FolderDeleteResponse)
def delete_folder(
    folder_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Delete a folder with all its subfolders and links. Irreversible."""
    return FolderService(db).delete_folder(caller, folder_id)
