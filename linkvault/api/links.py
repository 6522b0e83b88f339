"""Link API endpoints."""

from datetime import datetime
from typing import List, Optional

import httpx
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import CallerContext, require_auth
from ..core.scope import OwnerType
from ..database import get_db
from ..schemas.link import (
    BookmarkImportRequest,
    BookmarkImportResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    LinkCreate,
    LinkListResponse,
    LinkMetadata,
    LinkReorderRequest,
    LinkResponse,
    LinkUpdate,
    TransferRequest,
    TransferResponse,
    ViewResponse,
)
from ..services.import_service import BookmarkImportService
from ..services.link_service import MAX_PER_PAGE, LinkService, to_link_response
from ..services.metadata_service import fetch_metadata, get_http_transport

router = APIRouter(prefix="/api/links", tags=["links"])


@router.get("", response_model=LinkListResponse)
def list_links(
    owner_type: Optional[OwnerType] = Query(None),
    folder_id: Optional[str] = Query(None),
    min_rating: Optional[int] = Query(None, ge=0, le=5),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=MAX_PER_PAGE),
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """List links across the caller's scopes.

    Within a folder links follow their manual order; otherwise newest first.
    """
    return LinkService(db).list_links(
        caller,
        owner_type=owner_type,
        folder_id=folder_id,
        min_rating=min_rating,
        date_from=date_from,
        date_to=date_to,
        page=page,
        per_page=per_page,
    )


@router.post("", response_model=LinkResponse, status_code=201)
def create_link(
    data: LinkCreate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Create a link at the end of its folder.

    Without ``tag_ids`` the classification advisor may pick tags; what it
    picked is reported in ``classification``.
    """
    link, classification = LinkService(db).create_link(caller, data)
    return to_link_response(link, classification)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_links(
    data: BulkDeleteRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Delete several links; ids that are unknown or not accessible are skipped."""
    return LinkService(db).delete_links(caller, data.ids)


@router.put("/reorder", response_model=List[LinkResponse])
def reorder_links(
    data: LinkReorderRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Reorder links of one folder. Returns the folder's links in their new order."""
    updates = [(item.id, item.sort_order) for item in data.items]
    links = LinkService(db).reorder_links(caller, data.folder_id, updates)
    return [to_link_response(link) for link in links]


@router.post("/import", response_model=BookmarkImportResponse)
def import_bookmarks(
    data: BookmarkImportRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Import a browser bookmark tree into one scope."""
    return BookmarkImportService(db).import_bookmarks(caller, data)


@router.get("/metadata", response_model=LinkMetadata)
def link_metadata(
    url: str = Query(..., min_length=1),
    transport: Optional[httpx.BaseTransport] = Depends(get_http_transport),
    caller: CallerContext = Depends(require_auth),
):
    """Suggested title and favicon for a URL.

    Unreachable pages still answer 200 with the hostname and /favicon.ico.
    """
    return fetch_metadata(url, transport=transport)


@router.get("/{link_id}", response_model=LinkResponse)
def get_link(
    link_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    return to_link_response(LinkService(db).get_link(caller, link_id))


@router.put("/{link_id}", response_model=LinkResponse)
def update_link(
    link_id: str,
    data: LinkUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Update title, description, rating and/or the full tag set."""
    return to_link_response(LinkService(db).update_link(caller, link_id, data))


@router.delete("/{link_id}", status_code=204)
def delete_link(
    link_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    LinkService(db).delete_link(caller, link_id)


@router.post("/{link_id}/transfer", response_model=TransferResponse)
def transfer_link(
    link_id: str,
    data: TransferRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Move the link (same scope) or copy it (other scope) into a folder."""
    action, link = LinkService(db).transfer_link(caller, link_id, data.target_folder_id)
    return TransferResponse(action=action, link=to_link_response(link))


@router.post("/{link_id}/view", response_model=ViewResponse)
def record_view(
    link_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Mark a team link as viewed. Personal links report ``viewed: false``."""
    viewed = LinkService(db).record_view(caller, link_id)
    return ViewResponse(link_id=link_id, viewed=viewed)


@router.delete("/{link_id}/view", response_model=ViewResponse)
def unrecord_view(
    link_id: str,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    viewed = LinkService(db).unrecord_view(caller, link_id)
    return ViewResponse(link_id=link_id, viewed=viewed)
