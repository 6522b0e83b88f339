"""Repository for links and link views."""

from datetime import datetime
from typing import List, Optional, Set, Tuple

from sqlalchemy import and_, or_
from sqlalchemy.orm import selectinload

from .base import BaseRepository
from ..core.scope import OwnerScope, scope_columns, scope_filter
from ..models.link import Link, LinkView, link_tags


class LinkRepository(BaseRepository[Link]):
    """CRUD, listing and view tracking for links."""

    model_class = Link
    id_prefix = "lnk"

    def _base_query(self):
        return self.db.query(Link).options(selectinload(Link.tags), selectinload(Link.views))

    def create(self, scope: OwnerScope, folder_id: str, sort_order: int, **fields) -> Link:
        link = Link(
            id=self.new_id(),
            folder_id=folder_id,
            sort_order=sort_order,
            **scope_columns(scope),
            **fields,
        )
        self.db.add(link)
        self.db.flush()
        return link

    def in_folder(self, folder_id: str) -> List[Link]:
        return (
            self.db.query(Link)
            .filter(Link.folder_id == folder_id)
            .order_by(Link.sort_order, Link.created_at, Link.id)
            .all()
        )

    def ids_in_folders(self, folder_ids: List[str]) -> List[str]:
        if not folder_ids:
            return []
        return [row.id for row in self.db.query(Link.id).filter(Link.folder_id.in_(folder_ids)).all()]

    def urls_in_scope(self, scope: OwnerScope) -> Set[str]:
        return {row.url for row in self.db.query(Link.url).filter(*scope_filter(Link, scope)).all()}

    def search(
        self,
        scopes: List[OwnerScope],
        folder_id: Optional[str] = None,
        min_rating: Optional[int] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Link], int]:
        """Filtered page of links across ``scopes`` plus the total match count.

        Folder listings follow manual order; everything else is newest first.
        """
        query = self._base_query().filter(
            or_(*[and_(*scope_filter(Link, scope)) for scope in scopes])
        )
        if folder_id:
            query = query.filter(Link.folder_id == folder_id)
        if min_rating is not None:
            query = query.filter(Link.rating >= min_rating)
        if created_from is not None:
            query = query.filter(Link.created_at >= created_from)
        if created_to is not None:
            query = query.filter(Link.created_at <= created_to)

        total = query.count()
        if folder_id:
            query = query.order_by(Link.sort_order, Link.created_at, Link.id)
        else:
            query = query.order_by(Link.created_at.desc(), Link.id)
        return query.offset(offset).limit(limit).all(), total

    def delete_ids(self, link_ids: List[str]) -> int:
        """Delete links together with their tag and view rows."""
        if not link_ids:
            return 0
        self.db.flush()
        self.db.execute(link_tags.delete().where(link_tags.c.link_id.in_(link_ids)))
        self.db.query(LinkView).filter(LinkView.link_id.in_(link_ids)).delete(synchronize_session="fetch")
        deleted = self.db.query(Link).filter(Link.id.in_(link_ids)).delete(synchronize_session="fetch")
        return deleted

    # --- Views ---

    def get_view(self, link_id: str, user_id: str) -> Optional[LinkView]:
        return (
            self.db.query(LinkView)
            .filter(LinkView.link_id == link_id, LinkView.user_id == user_id)
            .first()
        )

    def add_view(self, link_id: str, user_id: str) -> LinkView:
        view = LinkView(link_id=link_id, user_id=user_id)
        self.db.add(view)
        self.db.flush()
        return view
