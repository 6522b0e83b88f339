"""Service for scope-owned tags."""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.auth import CallerContext
from ..core.scope import OwnerScope, PersonalScope, TeamScope, describe, scope_of
from ..exceptions import DuplicateNameError, TagNotFoundError
from ..models.tag import Tag
from ..repositories.tag_repository import TagRepository
from ..schemas.tag import AllTagsResponse, TagCreate, TagResponse, TagUpdate
from .ownership_service import require_row, resolve_scope

logger = logging.getLogger(__name__)


class TagService:
    """Tag CRUD with per-scope name uniqueness.

    Public methods:
        get_tag       -- lookup by id, scoped to the caller
        create_tag    -- new tag in the caller's personal or team scope
        update_tag    -- rename / recolor
        delete_tag    -- drop the tag and its link associations
        list_tags     -- one scope's tags with link counts
        list_all_tags -- personal and team tags for the caller
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = TagRepository(db)

    def get_tag(self, caller: CallerContext, tag_id: str) -> Tag:
        tag = self.repo.get_by_id_optional(tag_id)
        return require_row(caller, tag, tag_id, TagNotFoundError)

    def create_tag(self, caller: CallerContext, data: TagCreate) -> Tag:
        scope = resolve_scope(caller, data.owner_type)
        if self.repo.get_by_name(scope, data.name) is not None:
            raise DuplicateNameError("tag", data.name)

        savepoint = self.db.begin_nested()
        try:
            tag = self.repo.create(scope, data.name, data.color)
            savepoint.commit()
        except IntegrityError:
            # A concurrent create took the name between the check and the insert.
            savepoint.rollback()
            self._raise_if_name_taken(scope, data.name)
            raise
        self.db.commit()
        logger.info("Tag created", extra={"tag_id": tag.id, "scope": describe(scope)})
        return tag

    def update_tag(self, caller: CallerContext, tag_id: str, data: TagUpdate) -> Tag:
        tag = self.get_tag(caller, tag_id)

        if data.name is not None and data.name != tag.name:
            if self.repo.get_by_name(scope_of(tag), data.name, exclude_id=tag.id) is not None:
                raise DuplicateNameError("tag", data.name)
            savepoint = self.db.begin_nested()
            try:
                tag.name = data.name
                savepoint.commit()
            except IntegrityError:
                savepoint.rollback()
                self._raise_if_name_taken(scope_of(tag), data.name, exclude_id=tag.id)
                raise
        if data.color is not None:
            tag.color = data.color

        self.db.commit()
        logger.info("Tag updated", extra={"tag_id": tag.id})
        return tag

    def delete_tag(self, caller: CallerContext, tag_id: str) -> None:
        """Delete a tag. Links that carried it are kept."""
        tag = self.get_tag(caller, tag_id)
        self.repo.delete(tag)
        self.db.commit()
        logger.info("Tag deleted", extra={"tag_id": tag_id})

    def list_tags(self, scope: OwnerScope) -> List[TagResponse]:
        tags = self.repo.list_by_scope(scope)
        counts = self.repo.link_counts([tag.id for tag in tags])
        return [
            TagResponse(
                id=tag.id,
                owner_type=tag.owner_type,
                name=tag.name,
                color=tag.color,
                link_count=counts.get(tag.id, 0),
                created_at=tag.created_at,
            )
            for tag in tags
        ]

    def list_all_tags(self, caller: CallerContext) -> AllTagsResponse:
        team: List[TagResponse] = []
        if caller.has_team:
            team = self.list_tags(TeamScope(team_id=caller.active_team_id))
        return AllTagsResponse(
            personal=self.list_tags(PersonalScope(user_id=caller.user_id)),
            team=team,
        )

    def _raise_if_name_taken(self, scope: OwnerScope, name: str, exclude_id: Optional[str] = None) -> None:
        if self.repo.get_by_name(scope, name, exclude_id=exclude_id) is not None:
            raise DuplicateNameError("tag", name)
