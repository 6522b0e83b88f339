"""Deep module for all folder operations: CRUD, move, delete, reorder and tree building.

Callers hand in a CallerContext and plain values; scope resolution, sibling
uniqueness, cycle checks and sibling ordering all happen here.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.auth import CallerContext
from ..core.scope import OwnerScope, PersonalScope, TeamScope, describe, owner_type_of, scope_of
from ..exceptions import (
    CyclicMoveError,
    DuplicateNameError,
    FolderNotFoundError,
    ScopeMismatchError,
    ValidationError,
)
from ..models.folder import LinkFolder
from ..repositories.folder_repository import FolderRepository
from ..repositories.link_repository import LinkRepository
from ..schemas.folder import (
    FolderCreate,
    FolderDeleteResponse,
    FolderListItem,
    FolderTreeNode,
    FolderTreeResponse,
    FolderUpdate,
)
from .ordering import apply_reorder, compact, next_sort_order, unshift
from .ownership_service import require_row, resolve_scope

PATH_SEPARATOR = " > "

logger = logging.getLogger(__name__)


class FolderService:
    """All folder and tree operations behind a simple interface.

    Public methods:
        get_folder      -- lookup by id, scoped to the caller
        create_folder   -- insert at the front of its sibling group
        update_folder   -- rename and/or change icon
        move_folder     -- re-parent within the scope; rejects cycles
        delete_folder   -- remove the subtree and every link in it
        reorder_folders -- all-or-nothing reorder of one sibling group
        list_tree       -- one scope's forest with link counts
        list_folders    -- one scope's folders flattened with display paths
        get_folder_tree -- personal and team forests for the caller
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = FolderRepository(db)
        self.link_repo = LinkRepository(db)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_folder(self, caller: CallerContext, folder_id: str, lock: bool = False) -> LinkFolder:
        """Folder by id. Raises FolderNotFoundError if missing or not accessible."""
        folder = self.repo.get_by_id_optional(folder_id, lock=lock)
        return require_row(caller, folder, folder_id, FolderNotFoundError)

    def create_folder(self, caller: CallerContext, data: FolderCreate, commit: bool = True) -> LinkFolder:
        """Create a folder at position 0, shifting its siblings back by one."""
        scope = resolve_scope(caller, data.owner_type)

        if data.parent_id is not None:
            parent = self.get_folder(caller, data.parent_id)
            if scope_of(parent) != scope:
                raise ScopeMismatchError(
                    "Parent folder belongs to a different owner", field="parent_id"
                )

        siblings = self.repo.siblings(scope, data.parent_id, lock=True)
        if any(s.name == data.name for s in siblings):
            raise DuplicateNameError("folder", data.name)

        savepoint = self.db.begin_nested()
        try:
            unshift(siblings)
            folder = self.repo.create(scope, data.name, data.icon, data.parent_id, sort_order=0)
            savepoint.commit()
        except IntegrityError:
            # A concurrent create took the name between the check and the insert.
            savepoint.rollback()
            self._raise_if_name_taken(scope, data.parent_id, data.name)
            raise

        if commit:
            self.db.commit()
        logger.info(
            "Folder created",
            extra={"folder_id": folder.id, "scope": describe(scope), "parent_id": data.parent_id},
        )
        return folder

    def update_folder(self, caller: CallerContext, folder_id: str, data: FolderUpdate) -> LinkFolder:
        """Rename and/or set the icon. Only fields present in ``data`` change."""
        folder = self.get_folder(caller, folder_id)
        fields = data.model_fields_set

        if "name" in fields and data.name is not None and data.name != folder.name:
            if self.repo.name_taken(scope_of(folder), folder.parent_id, data.name, exclude_id=folder.id):
                raise DuplicateNameError("folder", data.name)
            savepoint = self.db.begin_nested()
            try:
                folder.name = data.name
                savepoint.commit()
            except IntegrityError:
                savepoint.rollback()
                self._raise_if_name_taken(scope_of(folder), folder.parent_id, data.name, exclude_id=folder.id)
                raise

        if "icon" in fields:
            folder.icon = data.icon

        self.db.commit()
        logger.info("Folder updated", extra={"folder_id": folder.id, "fields": sorted(fields)})
        return folder

    def move_folder(self, caller: CallerContext, folder_id: str, new_parent_id: Optional[str]) -> LinkFolder:
        """Re-parent a folder within its own scope.

        The parent chain is read under row locks where the backend supports
        them so two concurrent moves cannot jointly create a cycle. The folder
        is appended to the end of its new sibling group and the group it left
        is compacted. Moving to the current parent changes nothing.
        """
        folder = self.get_folder(caller, folder_id, lock=True)
        scope = scope_of(folder)

        if new_parent_id == folder.parent_id:
            return folder

        if new_parent_id is not None:
            if new_parent_id == folder.id:
                raise CyclicMoveError(folder.id, new_parent_id)
            parent = self.get_folder(caller, new_parent_id, lock=True)
            if scope_of(parent) != scope:
                raise ScopeMismatchError(
                    "Folders can only be moved within the same owner", field="parent_id"
                )
            if folder.id in self.repo.ancestor_ids(new_parent_id, lock=True):
                raise CyclicMoveError(folder.id, new_parent_id)

        if self.repo.name_taken(scope, new_parent_id, folder.name, exclude_id=folder.id):
            raise DuplicateNameError("folder", folder.name)

        old_parent_id = folder.parent_id
        destination = self.repo.siblings(scope, new_parent_id, exclude_id=folder.id, lock=True)
        source = self.repo.siblings(scope, old_parent_id, exclude_id=folder.id, lock=True)

        savepoint = self.db.begin_nested()
        try:
            folder.parent_id = new_parent_id
            folder.sort_order = next_sort_order(s.sort_order for s in compact(destination))
            compact(source)
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            self._raise_if_name_taken(scope, new_parent_id, folder.name, exclude_id=folder.id)
            raise

        self.db.commit()
        logger.info(
            "Folder moved",
            extra={"folder_id": folder.id, "from_parent": old_parent_id, "to_parent": new_parent_id},
        )
        return folder

    def delete_folder(self, caller: CallerContext, folder_id: str) -> FolderDeleteResponse:
        """Delete a folder, its whole subtree and every link inside it."""
        folder = self.get_folder(caller, folder_id)
        scope = scope_of(folder)
        parent_id = folder.parent_id

        folder_ids = self.repo.descendant_ids(folder.id)
        link_ids = self.link_repo.ids_in_folders(folder_ids)

        self.link_repo.delete_ids(link_ids)
        self.repo.delete_ids(folder_ids)
        compact(self.repo.siblings(scope, parent_id))

        self.db.commit()
        logger.info(
            "Folder deleted",
            extra={
                "folder_id": folder_id,
                "deleted_folders": len(folder_ids),
                "deleted_links": len(link_ids),
            },
        )
        return FolderDeleteResponse(
            folder_id=folder_id,
            deleted_folders=len(folder_ids),
            deleted_links=len(link_ids),
        )

    def reorder_folders(
        self, caller: CallerContext, updates: Sequence[Tuple[str, int]]
    ) -> List[LinkFolder]:
        """Apply new positions to folders of one sibling group.

        All-or-nothing: every id must be an accessible folder and all must
        share a parent. The group is renumbered densely and returned in its
        new order.
        """
        if not updates:
            raise ValidationError("Reorder requires at least one item", field="items")

        folders = {}
        for folder_id, _ in updates:
            if folder_id not in folders:
                folders[folder_id] = self.get_folder(caller, folder_id)

        groups = {(scope_of(f), f.parent_id) for f in folders.values()}
        if len(groups) != 1:
            raise ValidationError("All folders in a reorder must share the same parent", field="items")
        scope, parent_id = groups.pop()

        siblings = self.repo.siblings(scope, parent_id, lock=True)
        new_orders = apply_reorder({s.id: s.sort_order for s in siblings}, updates)
        for sibling in siblings:
            sibling.sort_order = new_orders[sibling.id]

        self.db.commit()
        logger.info(
            "Folders reordered",
            extra={"scope": describe(scope), "parent_id": parent_id, "count": len(updates)},
        )
        return sorted(siblings, key=lambda s: s.sort_order)

    def list_tree(self, scope: OwnerScope) -> List[FolderTreeNode]:
        """Build the forest of one scope, children ordered by sort_order."""
        folders = self.repo.list_by_scope(scope)
        counts = self.repo.link_counts([f.id for f in folders])

        children_by_parent: Dict[Optional[str], List[LinkFolder]] = {}
        for folder in folders:
            children_by_parent.setdefault(folder.parent_id, []).append(folder)

        def build_children(parent_id: Optional[str]) -> List[FolderTreeNode]:
            return [
                FolderTreeNode(
                    id=folder.id,
                    name=folder.name,
                    icon=folder.icon,
                    parent_id=folder.parent_id,
                    sort_order=folder.sort_order,
                    link_count=counts.get(folder.id, 0),
                    children=build_children(folder.id),
                )
                for folder in children_by_parent.get(parent_id, [])
            ]

        return build_children(None)

    def list_folders(self, scope: OwnerScope) -> List[FolderListItem]:
        """Flatten one scope's forest depth-first, each entry with its path."""
        folders = self.repo.list_by_scope(scope)
        owner_type = owner_type_of(scope)

        children_by_parent: Dict[Optional[str], List[LinkFolder]] = {}
        for folder in folders:
            children_by_parent.setdefault(folder.parent_id, []).append(folder)

        items: List[FolderListItem] = []

        def walk(parent_id: Optional[str], prefix: str, depth: int) -> None:
            for folder in children_by_parent.get(parent_id, []):
                path = f"{prefix}{PATH_SEPARATOR}{folder.name}" if prefix else folder.name
                items.append(FolderListItem(
                    id=folder.id,
                    owner_type=owner_type,
                    parent_id=folder.parent_id,
                    name=folder.name,
                    icon=folder.icon,
                    sort_order=folder.sort_order,
                    path=path,
                    depth=depth,
                ))
                walk(folder.id, path, depth + 1)

        walk(None, "", 0)
        return items

    def get_folder_tree(self, caller: CallerContext) -> FolderTreeResponse:
        team: List[FolderTreeNode] = []
        if caller.has_team:
            team = self.list_tree(TeamScope(team_id=caller.active_team_id))
        return FolderTreeResponse(
            personal=self.list_tree(PersonalScope(user_id=caller.user_id)),
            team=team,
            has_team=caller.has_team,
        )

    def ensure_path(
        self,
        caller: CallerContext,
        scope: OwnerScope,
        names: Sequence[str],
        cache: Dict[Tuple[str, ...], str],
    ) -> Tuple[str, int]:
        """Folder id for a name path like ``["Work", "Tools"]``, creating missing folders.

        Existing folders with the same name are reused. ``cache`` maps name
        paths to folder ids across calls. Returns ``(folder_id, created)``.
        Does not commit.
        """
        created = 0
        parent_id: Optional[str] = None
        for depth in range(1, len(names) + 1):
            key = tuple(names[:depth])
            folder_id = cache.get(key)
            if folder_id is None:
                existing = next(
                    (s for s in self.repo.siblings(scope, parent_id) if s.name == names[depth - 1]),
                    None,
                )
                if existing is not None:
                    folder_id = existing.id
                else:
                    folder = self.create_folder(
                        caller,
                        FolderCreate(name=names[depth - 1], parent_id=parent_id, owner_type=owner_type_of(scope)),
                        commit=False,
                    )
                    folder_id = folder.id
                    created += 1
                cache[key] = folder_id
            parent_id = folder_id
        return parent_id, created

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _raise_if_name_taken(
        self, scope: OwnerScope, parent_id: Optional[str], name: str, exclude_id: Optional[str] = None
    ) -> None:
        if self.repo.name_taken(scope, parent_id, name, exclude_id=exclude_id):
            raise DuplicateNameError("folder", name)
