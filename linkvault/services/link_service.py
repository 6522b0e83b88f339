"""Deep module for link operations: CRUD, bulk delete, reorder, transfer and views.

A link always lives in a folder of its own scope. Transfers between folders
of the same scope move the row; transfers across scopes copy it, leaving
the original untouched.
"""

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.auth import CallerContext
from ..core.scope import OwnerScope, OwnerType, describe, owner_type_of, scope_of
from ..exceptions import (
    LinkNotFoundError,
    ScopeMismatchError,
    TagNotFoundError,
    ValidationError,
)
from ..models.link import Link
from ..models.tag import Tag
from ..repositories.link_repository import LinkRepository
from ..repositories.tag_repository import TagRepository
from ..schemas.link import (
    BulkDeleteResponse,
    ClassificationResult,
    LinkCreate,
    LinkListResponse,
    LinkResponse,
    LinkUpdate,
)
from ..schemas.tag import TagBrief
from . import ai_settings_service
from .classification_service import ClassificationAdvisor, TagCandidate
from .folder_service import FolderService
from .ordering import apply_reorder, next_sort_order
from .ownership_service import accessible_scopes, can_access, require_row, resolve_scope

MAX_PER_PAGE = 100

logger = logging.getLogger(__name__)


def to_link_response(link: Link, classification: Optional[ClassificationResult] = None) -> LinkResponse:
    """Serialize a link with its tags and viewers."""
    return LinkResponse(
        id=link.id,
        owner_type=link.owner_type,
        folder_id=link.folder_id,
        url=link.url,
        title=link.title,
        description=link.description,
        favicon=link.favicon,
        rating=link.rating,
        sort_order=link.sort_order,
        created_by_id=link.created_by_id,
        source_link_id=link.source_link_id,
        created_at=link.created_at,
        updated_at=link.updated_at,
        tags=[TagBrief.model_validate(tag) for tag in link.tags],
        viewed_by=[view.user_id for view in link.views],
        classification=classification,
    )


class LinkService:
    """All link operations behind a simple interface.

    Public methods:
        get_link       -- lookup by id, scoped to the caller
        create_link    -- append to a folder; optional advisor tagging
        update_link    -- title / description / rating / full tag replace
        delete_link    -- remove one link
        delete_links   -- remove many; unknown or foreign ids are skipped
        reorder_links  -- all-or-nothing reorder within one folder
        transfer_link  -- move within a scope, copy across scopes
        record_view    -- mark a team link as viewed by the caller
        unrecord_view  -- clear that mark
        list_links     -- filtered, paginated listing
        advisor_for    -- the classification advisor for a caller
    """

    def __init__(self, db: Session, advisor: Optional[ClassificationAdvisor] = None):
        self.db = db
        self.repo = LinkRepository(db)
        self.tag_repo = TagRepository(db)
        self.folders = FolderService(db)
        self.advisor = advisor

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_link(self, caller: CallerContext, link_id: str) -> Link:
        """Link by id. Raises LinkNotFoundError if missing or not accessible."""
        link = self.repo.get_by_id_optional(link_id)
        return require_row(caller, link, link_id, LinkNotFoundError)

    def create_link(
        self, caller: CallerContext, data: LinkCreate, commit: bool = True
    ) -> Tuple[Link, Optional[ClassificationResult]]:
        """Create a link at the end of its folder.

        When no tags are given and auto-tagging is on, the classification
        advisor picks from the scope's existing tags. Advisor failures never
        fail the create.

        Returns the link and the advisor's contribution (None if it was not
        consulted or had nothing to say).
        """
        folder = self.folders.get_folder(caller, data.folder_id, lock=True)
        scope = scope_of(folder)
        if data.owner_type is not None and resolve_scope(caller, data.owner_type) != scope:
            raise ScopeMismatchError("Folder belongs to a different owner", field="folder_id")

        tags = self._resolve_tags(caller, scope, data.tag_ids)

        classification = None
        if not tags and data.auto_tag and ai_settings_service.auto_tag_enabled(self.db, caller):
            tags, classification = self._suggest_tags(caller, scope, data.url, data.title)

        sort_order = next_sort_order(sibling.sort_order for sibling in self.repo.in_folder(folder.id))
        link = self.repo.create(
            scope,
            folder.id,
            sort_order,
            url=data.url,
            title=data.title,
            description=data.description,
            favicon=data.favicon,
            rating=data.rating,
            created_by_id=caller.user_id,
        )
        link.tags = tags
        self.db.flush()

        if commit:
            self.db.commit()
        logger.info(
            "Link created",
            extra={
                "link_id": link.id,
                "folder_id": folder.id,
                "scope": describe(scope),
                "auto_tagged": bool(classification and classification.tag_ids),
            },
        )
        return link, classification

    def update_link(self, caller: CallerContext, link_id: str, data: LinkUpdate) -> Link:
        """Partial update. ``tag_ids`` replaces the whole tag set in one transaction."""
        link = self.get_link(caller, link_id)
        fields = data.model_fields_set

        if "title" in fields:
            if data.title is None:
                raise ValidationError("Title cannot be empty", field="title")
            link.title = data.title
        if "description" in fields:
            link.description = data.description
        if "rating" in fields:
            link.rating = data.rating
        if "tag_ids" in fields:
            link.tags = self._resolve_tags(caller, scope_of(link), data.tag_ids or [])

        self.db.commit()
        logger.info("Link updated", extra={"link_id": link.id, "fields": sorted(fields)})
        return link

    def delete_link(self, caller: CallerContext, link_id: str) -> None:
        link = self.get_link(caller, link_id)
        self.repo.delete_ids([link.id])
        self.db.commit()
        logger.info("Link deleted", extra={"link_id": link_id})

    def delete_links(self, caller: CallerContext, link_ids: Sequence[str]) -> BulkDeleteResponse:
        """Delete every accessible link among ``link_ids`` in one transaction.

        Unknown and inaccessible ids are reported in ``skipped``. Links that
        remain keep their sort_order.
        """
        unique_ids = list(dict.fromkeys(link_ids))
        found = {link.id: link for link in self.repo.get_many(unique_ids)}

        allowed: List[str] = []
        skipped: List[str] = []
        for link_id in unique_ids:
            link = found.get(link_id)
            if link is not None and can_access(caller, scope_of(link)):
                allowed.append(link_id)
            else:
                skipped.append(link_id)

        deleted = self.repo.delete_ids(allowed)
        self.db.commit()
        logger.info(
            "Links bulk deleted",
            extra={"requested": len(unique_ids), "deleted": deleted, "skipped": len(skipped)},
        )
        return BulkDeleteResponse(deleted=deleted, skipped=skipped)

    def reorder_links(
        self, caller: CallerContext, folder_id: str, updates: Sequence[Tuple[str, int]]
    ) -> List[Link]:
        """Apply new positions to links of one folder and renumber it densely.

        All-or-nothing: every id must be a link of that folder.
        """
        folder = self.folders.get_folder(caller, folder_id, lock=True)
        links = self.repo.in_folder(folder.id)

        known = {link.id for link in links}
        for link_id, _ in updates:
            if link_id not in known:
                existing = self.repo.get_by_id_optional(link_id)
                if existing is None or not can_access(caller, scope_of(existing)):
                    raise LinkNotFoundError(link_id)

        new_orders = apply_reorder({link.id: link.sort_order for link in links}, updates)
        for link in links:
            link.sort_order = new_orders[link.id]

        self.db.commit()
        logger.info("Links reordered", extra={"folder_id": folder.id, "count": len(updates)})
        return sorted(links, key=lambda link: link.sort_order)

    def transfer_link(
        self, caller: CallerContext, link_id: str, target_folder_id: str
    ) -> Tuple[str, Link]:
        """Put a link into another folder.

        Same scope: the link itself moves to the end of the target folder,
        keeping its id, tags and rating. Returns ``("moved", link)``.

        Different scope: a new link is created at the end of the target
        folder with the same url, title, description, favicon and rating.
        Each tag whose name also exists in the target scope is mapped to
        that scope's tag; other tags are dropped. Returns
        ``("copied", new_link)``.
        """
        link = self.get_link(caller, link_id)
        target = self.folders.get_folder(caller, target_folder_id, lock=True)
        source_scope = scope_of(link)
        target_scope = scope_of(target)

        if source_scope == target_scope:
            if link.folder_id != target.id:
                link.sort_order = next_sort_order(sibling.sort_order for sibling in self.repo.in_folder(target.id))
                link.folder_id = target.id
            self.db.commit()
            logger.info("Link moved", extra={"link_id": link.id, "folder_id": target.id})
            return "moved", link

        tags: List[Tag] = []
        for tag in link.tags:
            match = self.tag_repo.get_by_name(target_scope, tag.name)
            if match is not None:
                tags.append(match)

        copy = self.repo.create(
            target_scope,
            target.id,
            next_sort_order(sibling.sort_order for sibling in self.repo.in_folder(target.id)),
            url=link.url,
            title=link.title,
            description=link.description,
            favicon=link.favicon,
            rating=link.rating,
            created_by_id=caller.user_id,
            source_link_id=link.id,
        )
        copy.tags = tags
        self.db.commit()
        logger.info(
            "Link copied",
            extra={
                "link_id": link.id,
                "copy_id": copy.id,
                "from_scope": describe(source_scope),
                "to_scope": describe(target_scope),
                "tags_kept": len(tags),
            },
        )
        return "copied", copy

    def record_view(self, caller: CallerContext, link_id: str) -> bool:
        """Mark a team link as viewed by the caller, refreshing the time of an
        existing mark.

        Personal links have no viewers; the call is a no-op returning False.
        """
        link = self.get_link(caller, link_id)
        if link.owner_type != OwnerType.TEAM.value:
            return False

        view = self.repo.get_view(link.id, caller.user_id)
        if view is None:
            savepoint = self.db.begin_nested()
            try:
                self.repo.add_view(link.id, caller.user_id)
                savepoint.commit()
            except IntegrityError:
                # A concurrent request recorded the same view first.
                savepoint.rollback()
                view = self.repo.get_view(link.id, caller.user_id)
        if view is not None:
            view.viewed_at = datetime.now(timezone.utc)
        self.db.commit()
        return True

    def unrecord_view(self, caller: CallerContext, link_id: str) -> bool:
        """Clear the caller's view mark. Idempotent; returns the new state (False)."""
        link = self.get_link(caller, link_id)
        view = self.repo.get_view(link.id, caller.user_id)
        if view is not None:
            self.db.delete(view)
            self.db.commit()
        return False

    def list_links(
        self,
        caller: CallerContext,
        owner_type: Optional[OwnerType] = None,
        folder_id: Optional[str] = None,
        min_rating: Optional[int] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        page: int = 1,
        per_page: int = 50,
    ) -> LinkListResponse:
        """Paginated links across the caller's scopes, optionally filtered."""
        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if not 1 <= per_page <= MAX_PER_PAGE:
            raise ValidationError(f"per_page must be between 1 and {MAX_PER_PAGE}", field="per_page")
        if min_rating is not None and not 0 <= min_rating <= 5:
            raise ValidationError("min_rating must be between 0 and 5", field="min_rating")

        if owner_type is not None:
            scopes = [resolve_scope(caller, owner_type)]
        else:
            scopes = accessible_scopes(caller)

        if folder_id is not None:
            folder = self.folders.get_folder(caller, folder_id)
            if scope_of(folder) not in scopes:
                scopes = []

        links, total = ([], 0)
        if scopes:
            links, total = self.repo.search(
                scopes,
                folder_id=folder_id,
                min_rating=min_rating,
                created_from=date_from,
                created_to=date_to,
                offset=(page - 1) * per_page,
                limit=per_page,
            )

        return LinkListResponse(
            links=[to_link_response(link) for link in links],
            total=total,
            page=page,
            per_page=per_page,
            total_pages=math.ceil(total / per_page) if total else 0,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_tags(self, caller: CallerContext, scope: OwnerScope, tag_ids: Sequence[str]) -> List[Tag]:
        """Load tags for a link in ``scope``; every tag must belong to that scope."""
        unique_ids = list(dict.fromkeys(tag_ids))
        found = {tag.id: tag for tag in self.tag_repo.get_many(unique_ids)}

        tags: List[Tag] = []
        for tag_id in unique_ids:
            tag = require_row(caller, found.get(tag_id), tag_id, TagNotFoundError)
            if scope_of(tag) != scope:
                raise ScopeMismatchError(
                    f"Tag {tag_id} belongs to a different owner than the link", field="tag_ids"
                )
            tags.append(tag)
        return tags

    def advisor_for(self, caller: CallerContext) -> ClassificationAdvisor:
        """The advisor given at construction, else one for the caller's own settings."""
        return self.advisor or ai_settings_service.advisor_for(self.db, caller)

    def _suggest_tags(
        self, caller: CallerContext, scope: OwnerScope, url: str, title: str
    ) -> Tuple[List[Tag], Optional[ClassificationResult]]:
        scope_tags = self.tag_repo.list_by_scope(scope)
        if not scope_tags:
            return [], None

        suggestion = self.advisor_for(caller).suggest_tags(
            url, title, [TagCandidate(id=tag.id, name=tag.name) for tag in scope_tags]
        )
        if suggestion is None:
            return [], None

        by_id = {tag.id: tag for tag in scope_tags}
        tags = [by_id[tag_id] for tag_id in suggestion.tag_ids if tag_id in by_id]
        logger.info(
            "Advisor suggested tags",
            extra={"scope": describe(scope), "owner_type": owner_type_of(scope).value, "count": len(tags)},
        )
        return tags, ClassificationResult(tag_ids=[tag.id for tag in tags], reason=suggestion.reason)
