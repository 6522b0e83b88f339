"""Unit tests for bookmark import."""

import pytest

from linkvault.core.scope import OwnerType
from linkvault.exceptions import NoActiveTeamError
from linkvault.models import Link, LinkFolder
from linkvault.schemas.link import BookmarkImportRequest, BookmarkNode
from linkvault.services.import_service import (
    DEFAULT_FOLDER_NAME,
    BookmarkImportService,
    extract_bookmarks,
    extract_folder_paths,
)
from tests.conftest import make_folder, make_link

BAR = {
    "title": "Bookmarks bar",
    "children": [
        {"title": "Dev", "children": [{"title": "Python", "url": "https://python.org"}]},
        {"title": "Bookmarklet", "url": "javascript:void(0)"},
        {"title": "Top", "url": "https://top.example"},
        {"title": "Empty", "children": []},
    ],
}


def _request(*nodes, **overrides):
    return BookmarkImportRequest(bookmarks=[BookmarkNode(**n) for n in nodes], **overrides)


class TestExtraction:

    def test_bookmarks_carry_folder_path(self):
        flat = extract_bookmarks(BookmarkNode(**BAR))
        by_url = {b.url: b.folder_path for b in flat}
        assert by_url["https://python.org"] == ("Bookmarks bar", "Dev")
        assert by_url["https://top.example"] == ("Bookmarks bar",)

    def test_untitled_root_adds_no_segment(self):
        flat = extract_bookmarks(BookmarkNode(children=[BookmarkNode(title="Loose", url="https://loose.example")]))
        assert flat[0].folder_path == ()

    def test_empty_folders_are_skipped(self):
        paths = extract_folder_paths(BookmarkNode(**BAR))
        assert paths == [("Bookmarks bar",), ("Bookmarks bar", "Dev")]


class TestImport:

    def test_import_creates_folders_and_links(self, db, caller):
        result = BookmarkImportService(db).import_bookmarks(caller, _request(BAR))

        assert result.folders_created == 2
        assert result.links_created == 2
        assert result.links_skipped == 1
        assert result.errors == []

        dev = db.query(LinkFolder).filter_by(name="Dev").one()
        assert db.query(Link).filter_by(folder_id=dev.id).one().url == "https://python.org"

    def test_reimport_skips_existing_urls(self, db, caller):
        BookmarkImportService(db).import_bookmarks(caller, _request(BAR))
        result = BookmarkImportService(db).import_bookmarks(caller, _request(BAR))

        assert result.folders_created == 0
        assert result.links_created == 0
        assert result.links_skipped == 3
        assert db.query(Link).count() == 2

    def test_loose_bookmarks_go_to_default_folder(self, db, caller):
        result = BookmarkImportService(db).import_bookmarks(
            caller, _request({"children": [{"title": "Loose", "url": "https://loose.example"}]})
        )
        folder = db.query(LinkFolder).filter_by(name=DEFAULT_FOLDER_NAME).one()
        assert result.links_created == 1
        assert db.query(Link).one().folder_id == folder.id

    def test_root_folder_name_wraps_everything(self, db, caller):
        BookmarkImportService(db).import_bookmarks(caller, _request(BAR, root_folder_name="Chrome"))
        chrome = db.query(LinkFolder).filter_by(name="Chrome").one()
        bar = db.query(LinkFolder).filter_by(name="Bookmarks bar").one()
        assert chrome.parent_id is None
        assert bar.parent_id == chrome.id

    def test_existing_folders_are_reused(self, db, caller):
        existing = make_folder(db, caller, "Bookmarks bar")
        make_link(db, caller, existing.id, url="https://already.example")

        result = BookmarkImportService(db).import_bookmarks(caller, _request(BAR))

        assert result.folders_created == 1
        assert db.query(LinkFolder).filter_by(name="Bookmarks bar").count() == 1

    def test_team_import(self, db, caller):
        BookmarkImportService(db).import_bookmarks(caller, _request(BAR, owner_type=OwnerType.TEAM))
        assert {link.owner_type for link in db.query(Link).all()} == {"TEAM"}

    def test_team_import_without_team(self, db, solo_caller):
        with pytest.raises(NoActiveTeamError):
            BookmarkImportService(db).import_bookmarks(solo_caller, _request(BAR, owner_type=OwnerType.TEAM))
