"""Import a browser bookmark tree into one scope.

Bookmark folders become link folders (matched by name path, created when
missing); bookmarks become links. URLs the scope already holds are skipped,
as are non-http(s) entries such as ``javascript:`` bookmarklets. Top-level
bookmarks that sit outside any folder go to ``DEFAULT_FOLDER_NAME`` (or the
requested root folder).
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.auth import CallerContext
from ..core.scope import OwnerScope
from ..exceptions import LinkVaultException
from ..schemas.folder import FOLDER_NAME_MAX
from ..schemas.link import (
    TITLE_MAX,
    BookmarkImportRequest,
    BookmarkImportResponse,
    BookmarkNode,
    LinkCreate,
    validate_http_url,
)
from .link_service import LinkService
from .ownership_service import resolve_scope

DEFAULT_FOLDER_NAME = "Imported bookmarks"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlatBookmark:
    url: str
    title: str
    folder_path: Tuple[str, ...]


def _folder_name(title: Optional[str]) -> Optional[str]:
    if title is None:
        return None
    name = title.strip()[:FOLDER_NAME_MAX].strip()
    return name or None


def extract_bookmarks(node: BookmarkNode, parent_path: Tuple[str, ...] = ()) -> List[FlatBookmark]:
    """Every bookmark under ``node`` with the folder path that holds it.

    Untitled folders (browser root containers) do not add a path segment.
    """
    results: List[FlatBookmark] = []
    name = _folder_name(node.title)
    current_path = parent_path + (name,) if name else parent_path

    if node.url:
        results.append(FlatBookmark(url=node.url.strip(), title=(node.title or "").strip(), folder_path=parent_path))

    for child in node.children or []:
        results.extend(extract_bookmarks(child, current_path))
    return results


def extract_folder_paths(node: BookmarkNode, parent_path: Tuple[str, ...] = ()) -> List[Tuple[str, ...]]:
    """Path of every titled, non-empty folder under ``node`` (parents first)."""
    paths: List[Tuple[str, ...]] = []
    name = _folder_name(node.title)
    current_path = parent_path + (name,) if name else parent_path

    if node.children:
        if name:
            paths.append(current_path)
        for child in node.children:
            paths.extend(extract_folder_paths(child, current_path))
    return paths


def _is_importable(url: str) -> bool:
    try:
        validate_http_url(url)
    except ValueError:
        return False
    return True


def _unique(paths: Iterable[Tuple[str, ...]]) -> List[Tuple[str, ...]]:
    return sorted(dict.fromkeys(paths), key=len)


class BookmarkImportService:
    """Runs one bookmark import; each folder path and link is its own savepoint."""

    def __init__(self, db: Session):
        self.db = db
        self.links = LinkService(db)

    def import_bookmarks(self, caller: CallerContext, request: BookmarkImportRequest) -> BookmarkImportResponse:
        scope = resolve_scope(caller, request.owner_type)
        root_path: Tuple[str, ...] = (request.root_folder_name,) if request.root_folder_name else ()

        folder_paths: List[Tuple[str, ...]] = [root_path] if root_path else []
        bookmarks: List[FlatBookmark] = []
        for node in request.bookmarks:
            folder_paths.extend(extract_folder_paths(node, root_path))
            bookmarks.extend(extract_bookmarks(node, root_path))

        importable = [b for b in bookmarks if _is_importable(b.url)]
        result = BookmarkImportResponse(links_skipped=len(bookmarks) - len(importable))

        default_path = root_path or (DEFAULT_FOLDER_NAME,)
        if any(not b.folder_path for b in importable):
            folder_paths.append(default_path)

        cache: Dict[Tuple[str, ...], str] = {}
        for path in _unique(folder_paths):
            self._ensure(caller, scope, path, cache, result)

        existing_urls = self.links.repo.urls_in_scope(scope)
        for bookmark in importable:
            if bookmark.url in existing_urls:
                result.links_skipped += 1
                continue

            path = bookmark.folder_path or default_path
            folder_id = cache.get(path) or self._ensure(caller, scope, path, cache, result)
            if folder_id is None:
                result.links_skipped += 1
                continue

            title = (bookmark.title or bookmark.url)[:TITLE_MAX]
            savepoint = self.db.begin_nested()
            try:
                self.links.create_link(
                    caller,
                    LinkCreate(folder_id=folder_id, url=bookmark.url, title=title, auto_tag=False),
                    commit=False,
                )
                savepoint.commit()
            except (LinkVaultException, ValueError) as e:
                savepoint.rollback()
                logger.warning("Bookmark import skipped %s: %s", bookmark.url, e)
                result.errors.append(f"{bookmark.url}: {e}")
                continue

            existing_urls.add(bookmark.url)
            result.links_created += 1

        self.db.commit()
        logger.info(
            "Bookmarks imported",
            extra={
                "owner_type": request.owner_type.value,
                "folders_created": result.folders_created,
                "links_created": result.links_created,
                "links_skipped": result.links_skipped,
                "errors": len(result.errors),
            },
        )
        return result

    def _ensure(
        self,
        caller: CallerContext,
        scope: OwnerScope,
        path: Sequence[str],
        cache: Dict[Tuple[str, ...], str],
        result: BookmarkImportResponse,
    ) -> Optional[str]:
        """Folder id for ``path``, creating what is missing inside a savepoint."""
        snapshot = dict(cache)
        savepoint = self.db.begin_nested()
        try:
            folder_id, created = self.links.folders.ensure_path(caller, scope, list(path), cache)
            savepoint.commit()
        except (LinkVaultException, ValueError) as e:
            savepoint.rollback()
            cache.clear()
            cache.update(snapshot)
            logger.warning("Bookmark import could not create folder %s: %s", "/".join(path), e)
            result.errors.append(f"{'/'.join(path)}: {e}")
            return None

        result.folders_created += created
        return folder_id
