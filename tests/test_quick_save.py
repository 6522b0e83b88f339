"""Unit tests for QuickSaveService: per-scope saves with partial success."""

from unittest.mock import MagicMock, patch

from linkvault.core.scope import OwnerType
from linkvault.exceptions import ErrorCode
from linkvault.models import Link
from linkvault.schemas.extension import LinkSaveSettings, QuickSaveRequest
from linkvault.schemas.link import TITLE_MAX
from linkvault.services import preferences_service
from linkvault.services.classification_service import ClassificationAdvisor, FolderSuggestion
from linkvault.services.link_service import LinkService
from linkvault.services.quick_save_service import QuickSaveService
from tests.conftest import make_folder


def _advisor(folder_id=None):
    advisor = MagicMock(spec=ClassificationAdvisor)
    advisor.suggest_folder.return_value = FolderSuggestion(folder_id=folder_id) if folder_id else None
    advisor.suggest_tags.return_value = None
    return advisor


def _request(**overrides):
    payload = {"url": "https://example.com/article", "title": "Article"}
    payload.update(overrides)
    return QuickSaveRequest(**payload)


class TestQuickSave:

    def test_partial_success_without_team(self, db, solo_caller):
        make_folder(db, solo_caller, "Inbox")

        result = QuickSaveService(db, advisor=_advisor()).save(
            solo_caller, _request(owner_types=[OwnerType.PERSONAL, OwnerType.TEAM])
        )

        assert result.status == "partial"
        personal, team = result.results
        assert personal.success is True
        assert personal.link_id is not None
        assert team.success is False
        assert team.error_code == ErrorCode.NO_ACTIVE_TEAM
        assert db.query(Link).count() == 1

    def test_saves_into_both_scopes(self, db, caller):
        make_folder(db, caller, "Inbox")
        make_folder(db, caller, "Team inbox", owner_type=OwnerType.TEAM)

        result = QuickSaveService(db, advisor=_advisor()).save(
            caller, _request(owner_types=[OwnerType.PERSONAL, OwnerType.TEAM])
        )

        assert result.status == "success"
        assert {link.owner_type for link in db.query(Link).all()} == {"PERSONAL", "TEAM"}

    def test_failure_when_scope_has_no_folder(self, db, caller):
        result = QuickSaveService(db, advisor=_advisor()).save(caller, _request(owner_types=[OwnerType.PERSONAL]))

        assert result.status == "failure"
        assert result.results[0].error_code == ErrorCode.VALIDATION_ERROR
        assert db.query(Link).count() == 0

    def test_requested_folder_used_for_its_scope(self, db, caller):
        make_folder(db, caller, "Inbox")
        chosen = make_folder(db, caller, "Chosen")
        team_root = make_folder(db, caller, "Team inbox", owner_type=OwnerType.TEAM)

        result = QuickSaveService(db, advisor=_advisor()).save(
            caller, _request(owner_types=[OwnerType.PERSONAL, OwnerType.TEAM], folder_id=chosen.id)
        )

        personal, team = result.results
        assert personal.folder_id == chosen.id
        assert team.folder_id == team_root.id

    def test_advisor_folder_preferred_over_first_root(self, db, caller):
        make_folder(db, caller, "Inbox")
        reading = make_folder(db, caller, "Reading")
        articles = make_folder(db, caller, "Articles", parent_id=reading.id)
        advisor = _advisor(folder_id=articles.id)

        result = QuickSaveService(db, advisor=advisor).save(caller, _request(owner_types=[OwnerType.PERSONAL]))

        assert result.results[0].folder_id == articles.id
        candidates = advisor.suggest_folder.call_args.args[2]
        assert "Reading > Articles" in [c.path for c in candidates]

    def test_falls_back_to_first_root(self, db, caller):
        make_folder(db, caller, "Second")
        first = make_folder(db, caller, "First")

        result = QuickSaveService(db, advisor=_advisor()).save(caller, _request(owner_types=[OwnerType.PERSONAL]))

        assert result.results[0].folder_id == first.id

    def test_defaults_to_saved_preferences(self, db, caller):
        make_folder(db, caller, "Inbox")
        make_folder(db, caller, "Team inbox", owner_type=OwnerType.TEAM)
        preferences_service.update_settings(db, caller, LinkSaveSettings(save_personal=False, save_team=True))

        result = QuickSaveService(db, advisor=_advisor()).save(caller, _request())

        assert [r.owner_type for r in result.results] == [OwnerType.TEAM]

    def test_title_defaults_to_url(self, db, caller):
        make_folder(db, caller, "Inbox")
        QuickSaveService(db, advisor=_advisor()).save(
            caller, QuickSaveRequest(url="https://untitled.example", owner_types=[OwnerType.PERSONAL])
        )
        assert db.query(Link).one().title == "https://untitled.example"

    def test_long_url_without_title_is_saved(self, db, caller):
        make_folder(db, caller, "Inbox")
        url = "https://example.com/?q=" + "a" * 600

        result = QuickSaveService(db, advisor=_advisor()).save(
            caller, QuickSaveRequest(url=url, owner_types=[OwnerType.PERSONAL])
        )

        assert result.status == "success"
        link = db.query(Link).one()
        assert link.url == url
        assert link.title == url[:TITLE_MAX]

    def test_invalid_link_data_reported_as_validation_error(self, db, caller):
        make_folder(db, caller, "Inbox")

        with patch.object(LinkService, "create_link", side_effect=ValueError("Title cannot be empty")):
            result = QuickSaveService(db, advisor=_advisor()).save(
                caller, _request(owner_types=[OwnerType.PERSONAL])
            )

        assert result.status == "failure"
        assert result.results[0].error_code == ErrorCode.VALIDATION_ERROR
