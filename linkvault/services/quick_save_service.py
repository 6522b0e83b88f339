"""Quick-save: the browser extension's one-click save into several scopes.

Each requested scope is handled in its own savepoint, so one scope failing
(no team, no folder, ...) never undoes another scope's save.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.auth import CallerContext
from ..core.scope import OwnerScope, scope_of
from ..exceptions import ErrorCode, LinkVaultException, ValidationError
from ..repositories.folder_repository import FolderRepository
from ..schemas.extension import QuickSaveRequest, QuickSaveResponse, QuickSaveResult
from ..schemas.link import TITLE_MAX, LinkCreate
from .classification_service import ClassificationAdvisor, FolderCandidate
from .link_service import LinkService
from .ownership_service import can_access, resolve_scope
from .preferences_service import default_owner_types

logger = logging.getLogger(__name__)


class QuickSaveService:
    """Saves one URL into every requested scope and reports per-scope outcomes."""

    def __init__(self, db: Session, advisor: Optional[ClassificationAdvisor] = None):
        self.db = db
        self.links = LinkService(db, advisor=advisor)
        self.folder_repo = FolderRepository(db)

    def save(self, caller: CallerContext, data: QuickSaveRequest) -> QuickSaveResponse:
        owner_types = data.owner_types or default_owner_types(self.db, caller)
        title = (data.title or data.url)[:TITLE_MAX]
        results = []

        for owner_type in owner_types:
            savepoint = self.db.begin_nested()
            try:
                scope = resolve_scope(caller, owner_type)
                folder_id = self._choose_folder(caller, scope, data.folder_id, data.url, title)
                if folder_id is None:
                    raise ValidationError("No folder to save into. Create a folder first.", field="folder_id")

                link, _ = self.links.create_link(
                    caller,
                    LinkCreate(
                        folder_id=folder_id,
                        owner_type=owner_type,
                        url=data.url,
                        title=title,
                        favicon=data.favicon,
                    ),
                    commit=False,
                )
                savepoint.commit()
                results.append(QuickSaveResult(
                    owner_type=owner_type, success=True, link_id=link.id, folder_id=folder_id,
                ))
            except LinkVaultException as e:
                savepoint.rollback()
                logger.warning(
                    "Quick-save failed for %s: %s", owner_type.value, e.message,
                    extra={"error_code": e.error_code.value},
                )
                results.append(QuickSaveResult(
                    owner_type=owner_type, success=False, error=e.message, error_code=e.error_code,
                ))
            except ValueError as e:
                savepoint.rollback()
                logger.warning("Quick-save rejected for %s: %s", owner_type.value, e)
                results.append(QuickSaveResult(
                    owner_type=owner_type, success=False, error=str(e), error_code=ErrorCode.VALIDATION_ERROR,
                ))
            except Exception as e:
                savepoint.rollback()
                logger.exception("Quick-save failed for %s", owner_type.value)
                results.append(QuickSaveResult(
                    owner_type=owner_type, success=False, error=str(e), error_code=ErrorCode.INTERNAL_ERROR,
                ))

        self.db.commit()

        succeeded = sum(1 for r in results if r.success)
        if succeeded == len(results):
            status = "success"
        elif succeeded:
            status = "partial"
        else:
            status = "failure"

        logger.info(
            "Quick-save finished",
            extra={"status": status, "scopes": [t.value for t in owner_types], "succeeded": succeeded},
        )
        return QuickSaveResponse(status=status, results=results)

    def _choose_folder(
        self,
        caller: CallerContext,
        scope: OwnerScope,
        requested_folder_id: Optional[str],
        url: str,
        title: str,
    ) -> Optional[str]:
        """Folder for one scope: the requested folder when it belongs to the
        scope, else the advisor's pick, else the scope's first root folder."""
        if requested_folder_id:
            folder = self.folder_repo.get_by_id_optional(requested_folder_id)
            if folder is not None and can_access(caller, scope_of(folder)) and scope_of(folder) == scope:
                return folder.id

        candidates = [
            FolderCandidate(id=item.id, name=item.name, path=item.path)
            for item in self.links.folders.list_folders(scope)
        ]
        if not candidates:
            return None

        suggestion = self.links.advisor_for(caller).suggest_folder(url, title, candidates)
        if suggestion is not None:
            return suggestion.folder_id

        root = self.folder_repo.first_root(scope)
        return root.id if root else None
