"""Repository for tags."""

from typing import Dict, List, Optional

from sqlalchemy import func

from .base import BaseRepository
from ..core.scope import OwnerScope, scope_columns
from ..models.link import link_tags
from ..models.tag import Tag


class TagRepository(BaseRepository[Tag]):
    """CRUD for tags plus usage counts."""

    model_class = Tag
    id_prefix = "tag"

    def create(self, scope: OwnerScope, name: str, color: str) -> Tag:
        tag = Tag(id=self.new_id(), name=name, color=color, **scope_columns(scope))
        self.db.add(tag)
        self.db.flush()
        return tag

    def list_by_scope(self, scope: OwnerScope) -> List[Tag]:
        return self.in_scope(scope).order_by(Tag.name).all()

    def get_by_name(self, scope: OwnerScope, name: str, exclude_id: Optional[str] = None) -> Optional[Tag]:
        query = self.in_scope(scope).filter(Tag.name == name)
        if exclude_id:
            query = query.filter(Tag.id != exclude_id)
        return query.first()

    def link_counts(self, tag_ids: List[str]) -> Dict[str, int]:
        if not tag_ids:
            return {}
        rows = (
            self.db.query(link_tags.c.tag_id, func.count(link_tags.c.link_id))
            .filter(link_tags.c.tag_id.in_(tag_ids))
            .group_by(link_tags.c.tag_id)
            .all()
        )
        return {tag_id: count for tag_id, count in rows}

    def delete(self, tag: Tag) -> None:
        """Delete a tag and its link associations; links themselves are kept."""
        self.db.execute(link_tags.delete().where(link_tags.c.tag_id == tag.id))
        self.db.delete(tag)
        self.db.flush()
