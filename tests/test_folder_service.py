"""Unit tests for FolderService: the deep module owning folder trees.

Covers creation order, sibling name uniqueness, moves and cycle rejection,
subtree deletion, reordering and tree building.
"""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from linkvault.core.scope import OwnerType, PersonalScope, TeamScope
from linkvault.exceptions import (
    CyclicMoveError,
    DuplicateNameError,
    FolderNotFoundError,
    NoActiveTeamError,
    ScopeMismatchError,
    ValidationError,
)
from linkvault.models import Link, LinkFolder
from linkvault.repositories.folder_repository import FolderRepository
from linkvault.schemas.folder import FolderUpdate
from linkvault.services.folder_service import FolderService
from linkvault.services.ordering import is_dense
from tests.conftest import TEAM_ID, USER_ID, make_folder, make_link


def _root_orders(db, **scope):
    rows = db.query(LinkFolder).filter_by(parent_id=None, **scope).all()
    return {f.name: f.sort_order for f in rows}


class TestCreateFolder:

    def test_new_folder_goes_to_front(self, db, caller):
        make_folder(db, caller, "Work")
        make_folder(db, caller, "Reading")
        assert _root_orders(db, user_id=USER_ID) == {"Reading": 0, "Work": 1}

    def test_duplicate_sibling_name_rejected(self, db, caller):
        make_folder(db, caller, "Work")
        with pytest.raises(DuplicateNameError):
            make_folder(db, caller, "Work")

    def test_same_name_allowed_under_different_parents(self, db, caller):
        a = make_folder(db, caller, "A")
        b = make_folder(db, caller, "B")
        make_folder(db, caller, "Docs", parent_id=a.id)
        make_folder(db, caller, "Docs", parent_id=b.id)
        assert db.query(LinkFolder).filter_by(name="Docs").count() == 2

    def test_same_name_allowed_in_personal_and_team(self, db, caller):
        make_folder(db, caller, "Shared")
        team_folder = make_folder(db, caller, "Shared", owner_type=OwnerType.TEAM)
        assert team_folder.team_id == TEAM_ID
        assert team_folder.user_id is None

    def test_team_folder_without_team_rejected(self, db, solo_caller):
        with pytest.raises(NoActiveTeamError):
            make_folder(db, solo_caller, "Team stuff", owner_type=OwnerType.TEAM)

    def test_parent_in_other_scope_rejected(self, db, caller):
        personal = make_folder(db, caller, "Mine")
        with pytest.raises(ScopeMismatchError):
            make_folder(db, caller, "Child", owner_type=OwnerType.TEAM, parent_id=personal.id)

    def test_parent_of_other_user_is_not_found(self, db, caller, solo_caller):
        foreign = make_folder(db, solo_caller, "Theirs")
        with pytest.raises(FolderNotFoundError):
            make_folder(db, caller, "Child", parent_id=foreign.id)


class TestUpdateFolder:

    def test_rename_and_icon(self, db, caller):
        folder = make_folder(db, caller, "Old", icon="star")
        updated = FolderService(db).update_folder(caller, folder.id, FolderUpdate(name="New"))
        assert updated.name == "New"
        assert updated.icon == "star"

    def test_explicit_null_clears_icon(self, db, caller):
        folder = make_folder(db, caller, "F", icon="star")
        updated = FolderService(db).update_folder(caller, folder.id, FolderUpdate(icon=None))
        assert updated.icon is None

    def test_rename_to_sibling_name_rejected(self, db, caller):
        make_folder(db, caller, "Taken")
        folder = make_folder(db, caller, "Free")
        with pytest.raises(DuplicateNameError):
            FolderService(db).update_folder(caller, folder.id, FolderUpdate(name="Taken"))

    def test_rename_to_own_name_is_fine(self, db, caller):
        folder = make_folder(db, caller, "Same")
        updated = FolderService(db).update_folder(caller, folder.id, FolderUpdate(name="Same"))
        assert updated.name == "Same"


class TestMoveFolder:

    def test_move_into_descendant_rejected(self, db, caller):
        a = make_folder(db, caller, "A")
        b = make_folder(db, caller, "B", parent_id=a.id)
        c = make_folder(db, caller, "C", parent_id=b.id)

        with pytest.raises(CyclicMoveError):
            FolderService(db).move_folder(caller, a.id, c.id)

        db.expire_all()
        assert db.get(LinkFolder, a.id).parent_id is None
        assert db.get(LinkFolder, c.id).parent_id == b.id

    def test_move_into_itself_rejected(self, db, caller):
        a = make_folder(db, caller, "A")
        with pytest.raises(CyclicMoveError):
            FolderService(db).move_folder(caller, a.id, a.id)

    def test_move_across_scopes_rejected(self, db, caller):
        personal = make_folder(db, caller, "P")
        team = make_folder(db, caller, "T", owner_type=OwnerType.TEAM)
        with pytest.raises(ScopeMismatchError):
            FolderService(db).move_folder(caller, personal.id, team.id)

    def test_move_appends_and_compacts_source(self, db, caller):
        target = make_folder(db, caller, "Target")
        make_folder(db, caller, "Existing", parent_id=target.id)
        third = make_folder(db, caller, "Third")
        make_folder(db, caller, "Fourth")

        moved = FolderService(db).move_folder(caller, third.id, target.id)

        assert moved.parent_id == target.id
        assert moved.sort_order == 1
        assert is_dense(_root_orders(db, user_id=USER_ID).values())

    def test_move_to_root(self, db, caller):
        parent = make_folder(db, caller, "Parent")
        child = make_folder(db, caller, "Child", parent_id=parent.id)
        moved = FolderService(db).move_folder(caller, child.id, None)
        assert moved.parent_id is None
        assert _root_orders(db, user_id=USER_ID) == {"Parent": 0, "Child": 1}

    def test_move_onto_duplicate_name_rejected(self, db, caller):
        parent = make_folder(db, caller, "Parent")
        make_folder(db, caller, "Docs", parent_id=parent.id)
        loose = make_folder(db, caller, "Docs")
        with pytest.raises(DuplicateNameError):
            FolderService(db).move_folder(caller, loose.id, parent.id)

    def test_move_to_current_parent_is_noop(self, db, caller):
        folder = make_folder(db, caller, "Stay")
        assert FolderService(db).move_folder(caller, folder.id, None).sort_order == 0


class TestDeleteFolder:

    def test_deletes_subtree_and_links(self, db, caller):
        outer = make_folder(db, caller, "Outer")
        inner = make_folder(db, caller, "Inner", parent_id=outer.id)
        make_link(db, caller, outer.id, url="https://a.example")
        make_link(db, caller, inner.id, url="https://b.example")
        keep = make_folder(db, caller, "Keep")
        make_link(db, caller, keep.id, url="https://c.example")

        result = FolderService(db).delete_folder(caller, outer.id)

        assert result.deleted_folders == 2
        assert result.deleted_links == 2
        assert db.query(LinkFolder).count() == 1
        assert db.query(Link).count() == 1

    def test_remaining_siblings_stay_dense(self, db, caller):
        make_folder(db, caller, "One")
        two = make_folder(db, caller, "Two")
        make_folder(db, caller, "Three")
        FolderService(db).delete_folder(caller, two.id)
        assert _root_orders(db, user_id=USER_ID) == {"Three": 0, "One": 1}

    def test_other_users_folder_is_not_found(self, db, caller, solo_caller):
        foreign = make_folder(db, solo_caller, "Theirs")
        with pytest.raises(FolderNotFoundError):
            FolderService(db).delete_folder(caller, foreign.id)


class TestReorderFolders:

    def test_reorder_renumbers_group(self, db, caller):
        c = make_folder(db, caller, "C")
        b = make_folder(db, caller, "B")
        a = make_folder(db, caller, "A")  # A=0, B=1, C=2

        result = FolderService(db).reorder_folders(caller, [(c.id, 0)])

        assert [f.name for f in result] == ["C", "A", "B"]
        assert [f.sort_order for f in result] == [0, 1, 2]

    def test_mixed_parents_rejected(self, db, caller):
        parent = make_folder(db, caller, "Parent")
        child = make_folder(db, caller, "Child", parent_id=parent.id)
        with pytest.raises(ValidationError):
            FolderService(db).reorder_folders(caller, [(parent.id, 0), (child.id, 1)])

    def test_unknown_folder_rejects_whole_request(self, db, caller):
        a = make_folder(db, caller, "A")
        make_folder(db, caller, "B")
        with pytest.raises(FolderNotFoundError):
            FolderService(db).reorder_folders(caller, [(a.id, 1), ("fld-missing", 0)])
        db.expire_all()
        assert db.get(LinkFolder, a.id).sort_order == 1


class TestTree:

    def test_tree_nests_children_with_link_counts(self, db, caller):
        work = make_folder(db, caller, "Work")
        tools = make_folder(db, caller, "Tools", parent_id=work.id)
        make_link(db, caller, tools.id)
        make_folder(db, caller, "Team root", owner_type=OwnerType.TEAM)

        tree = FolderService(db).get_folder_tree(caller)

        assert tree.has_team is True
        assert [n.name for n in tree.personal] == ["Work"]
        assert tree.personal[0].children[0].name == "Tools"
        assert tree.personal[0].children[0].link_count == 1
        assert [n.name for n in tree.team] == ["Team root"]

    def test_tree_without_team(self, db, solo_caller):
        tree = FolderService(db).get_folder_tree(solo_caller)
        assert tree.has_team is False
        assert tree.team == []

    def test_list_folders_has_paths(self, db, caller):
        work = make_folder(db, caller, "Work")
        make_folder(db, caller, "Tools", parent_id=work.id)

        items = FolderService(db).list_folders(PersonalScope(user_id=USER_ID))

        assert [(i.path, i.depth) for i in items] == [("Work", 0), ("Work > Tools", 1)]

    def test_list_is_scoped(self, db, caller, solo_caller):
        make_folder(db, solo_caller, "Theirs")
        assert FolderService(db).list_folders(PersonalScope(user_id=USER_ID)) == []
        assert FolderService(db).list_folders(TeamScope(team_id=TEAM_ID)) == []


class TestEnsurePath:

    def test_creates_missing_then_reuses(self, db, caller):
        svc = FolderService(db)
        scope = PersonalScope(user_id=USER_ID)

        folder_id, created = svc.ensure_path(caller, scope, ["Work", "Tools"], {})
        db.commit()
        again_id, created_again = svc.ensure_path(caller, scope, ["Work", "Tools"], {})

        assert created == 2
        assert created_again == 0
        assert again_id == folder_id
        assert db.get(LinkFolder, folder_id).name == "Tools"

    def test_reuses_existing_folder_by_name(self, db, caller):
        existing = make_folder(db, caller, "Work")
        folder_id, created = FolderService(db).ensure_path(
            caller, PersonalScope(user_id=USER_ID), ["Work"], {}
        )
        assert folder_id == existing.id
        assert created == 0


class TestSiblingNameConstraint:

    def test_database_rejects_duplicate_root_name(self, db, caller):
        make_folder(db, caller, "Work")
        with pytest.raises(IntegrityError):
            FolderRepository(db).create(PersonalScope(user_id=USER_ID), "Work")
        db.rollback()

    def test_database_rejects_duplicate_child_name(self, db, caller):
        parent = make_folder(db, caller, "Work", owner_type=OwnerType.TEAM)
        make_folder(db, caller, "Tools", owner_type=OwnerType.TEAM, parent_id=parent.id)
        with pytest.raises(IntegrityError):
            FolderRepository(db).create(TeamScope(team_id=TEAM_ID), "Tools", parent_id=parent.id)
        db.rollback()

    def test_same_root_name_for_different_users(self, db, caller, solo_caller):
        make_folder(db, caller, "Work")
        make_folder(db, solo_caller, "Work")
        assert db.query(LinkFolder).filter_by(name="Work").count() == 2

    def test_concurrent_create_reports_duplicate(self, db, caller):
        make_folder(db, caller, "Work")
        real_siblings = FolderRepository.siblings
        calls = []

        def stale_siblings(self, *args, **kwargs):
            # First read misses the row another request just committed.
            calls.append(args)
            if len(calls) == 1:
                return []
            return real_siblings(self, *args, **kwargs)

        with patch.object(FolderRepository, "siblings", stale_siblings):
            with pytest.raises(DuplicateNameError):
                make_folder(db, caller, "Work")

        assert _root_orders(db, user_id=USER_ID) == {"Work": 0}
