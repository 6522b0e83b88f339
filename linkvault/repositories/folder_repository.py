"""Repository for the link folder forest."""

from typing import Dict, List, Optional, Set

from sqlalchemy import func

from .base import BaseRepository
from ..core.scope import OwnerScope, scope_columns
from ..database import is_postgresql
from ..models.folder import LinkFolder
from ..models.link import Link


class FolderRepository(BaseRepository[LinkFolder]):
    """CRUD and tree queries for link_folders."""

    model_class = LinkFolder
    id_prefix = "fld"

    def create(
        self,
        scope: OwnerScope,
        name: str,
        icon: Optional[str] = None,
        parent_id: Optional[str] = None,
        sort_order: int = 0,
    ) -> LinkFolder:
        folder = LinkFolder(
            id=self.new_id(),
            name=name,
            icon=icon,
            parent_id=parent_id,
            sort_order=sort_order,
            **scope_columns(scope),
        )
        self.db.add(folder)
        self.db.flush()
        return folder

    def list_by_scope(self, scope: OwnerScope) -> List[LinkFolder]:
        return (
            self.in_scope(scope)
            .order_by(LinkFolder.sort_order, LinkFolder.created_at, LinkFolder.id)
            .all()
        )

    def siblings(
        self,
        scope: OwnerScope,
        parent_id: Optional[str],
        exclude_id: Optional[str] = None,
        lock: bool = False,
    ) -> List[LinkFolder]:
        """Folders of one ``(scope, parent_id)`` group in sort order."""
        if parent_id is None:
            query = self.in_scope(scope).filter(LinkFolder.parent_id.is_(None))
        else:
            query = self.in_scope(scope).filter(LinkFolder.parent_id == parent_id)
        if exclude_id:
            query = query.filter(LinkFolder.id != exclude_id)
        if lock and is_postgresql():
            query = query.with_for_update()
        return query.order_by(LinkFolder.sort_order, LinkFolder.created_at, LinkFolder.id).all()

    def name_taken(
        self,
        scope: OwnerScope,
        parent_id: Optional[str],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        return any(f.name == name for f in self.siblings(scope, parent_id, exclude_id=exclude_id))

    def first_root(self, scope: OwnerScope) -> Optional[LinkFolder]:
        roots = self.siblings(scope, None)
        return roots[0] if roots else None

    def ancestor_ids(self, folder_id: Optional[str], lock: bool = False) -> List[str]:
        """Ids on the parent chain starting at ``folder_id`` (inclusive).

        Stops at the root or at the first repeated id, so a corrupted chain
        cannot loop forever.
        """
        chain: List[str] = []
        seen: Set[str] = set()
        current_id = folder_id
        while current_id and current_id not in seen:
            seen.add(current_id)
            chain.append(current_id)
            folder = self.get_by_id_optional(current_id, lock=lock)
            if folder is None:
                break
            current_id = folder.parent_id
        return chain

    def descendant_ids(self, folder_id: str) -> List[str]:
        """``folder_id`` and every folder below it, breadth first."""
        result = [folder_id]
        frontier = [folder_id]
        while frontier:
            children = [
                row.id
                for row in self.db.query(LinkFolder.id)
                .filter(LinkFolder.parent_id.in_(frontier))
                .all()
            ]
            children = [c for c in children if c not in result]
            result.extend(children)
            frontier = children
        return result

    def link_counts(self, folder_ids: List[str]) -> Dict[str, int]:
        if not folder_ids:
            return {}
        rows = (
            self.db.query(Link.folder_id, func.count(Link.id))
            .filter(Link.folder_id.in_(folder_ids))
            .group_by(Link.folder_id)
            .all()
        )
        return {folder_id: count for folder_id, count in rows}

    def delete_ids(self, folder_ids: List[str]) -> int:
        if not folder_ids:
            return 0
        return (
            self.db.query(LinkFolder)
            .filter(LinkFolder.id.in_(folder_ids))
            .delete(synchronize_session="fetch")
        )
