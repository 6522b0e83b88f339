"""Shared test fixtures for the LinkVault test suite.

Tests run against a throwaway SQLite file (or TEST_DATABASE_URL when set).
Importing the app creates the tables; every test starts from empty tables.

Two callers are available everywhere:
    ``caller``      -- user-1, member of team-1
    ``solo_caller`` -- user-2, no active team
"""

import os
import tempfile

# Auth on, deterministic secret, no classifier, before any app imports.
_DB_DIR = tempfile.mkdtemp(prefix="linkvault-tests-")
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
)
os.environ["AUTH_ENABLED"] = "true"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CLASSIFIER_MODEL"] = ""
os.environ["CLASSIFIER_API_KEY"] = ""
os.environ["AUTO_TAG_ENABLED"] = "true"
os.environ["LOG_FORMAT"] = "text"

import pytest
from sqlalchemy import text
from fastapi.testclient import TestClient

from linkvault.database import get_db, SessionLocal
from linkvault.main import app
from linkvault.core.auth import CallerContext
from linkvault.core.config import settings
from linkvault.core.scope import OwnerType
from linkvault.core.token_factory import create_token
from linkvault.models import Team, User
from linkvault.schemas.folder import FolderCreate
from linkvault.schemas.link import LinkCreate
from linkvault.schemas.tag import TagCreate
from linkvault.services.folder_service import FolderService
from linkvault.services.link_service import LinkService
from linkvault.services.tag_service import TagService

# Children first so foreign keys never block the delete.
_CLEAN_TABLES = [
    "link_tags", "link_views", "links", "tags", "link_folders", "users", "teams",
]

TEAM_ID = "team-1"
USER_ID = "user-1"
SOLO_USER_ID = "user-2"


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty all tables before each test.

    Runs before the test (not after) so failures leave data for debugging.
    """
    db = SessionLocal()
    try:
        for table in _CLEAN_TABLES:
            db.execute(text(f"DELETE FROM {table}"))
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session with the two standard users and one team."""
    session = SessionLocal()
    session.add(Team(team_id=TEAM_ID, name="Team One"))
    session.flush()
    session.add(User(user_id=USER_ID, display_name="User One", email="one@example.com", team_id=TEAM_ID))
    session.add(User(user_id=SOLO_USER_ID, display_name="User Two", email="two@example.com"))
    session.commit()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def caller() -> CallerContext:
    return CallerContext(user_id=USER_ID, active_team_id=TEAM_ID)


@pytest.fixture()
def solo_caller() -> CallerContext:
    return CallerContext(user_id=SOLO_USER_ID)


def bearer(user_id: str = USER_ID) -> dict:
    token = create_token(subject=user_id, secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_headers() -> dict:
    """Bearer headers for user-1 (member of team-1)."""
    return bearer(USER_ID)


@pytest.fixture()
def solo_headers() -> dict:
    """Bearer headers for user-2 (no team)."""
    return bearer(SOLO_USER_ID)


def make_folder(db, caller, name="Folder", owner_type=OwnerType.PERSONAL, parent_id=None, icon=None):
    return FolderService(db).create_folder(
        caller, FolderCreate(name=name, owner_type=owner_type, parent_id=parent_id, icon=icon)
    )


def make_tag(db, caller, name="tag", owner_type=OwnerType.PERSONAL, color="#3B82F6"):
    return TagService(db).create_tag(caller, TagCreate(name=name, owner_type=owner_type, color=color))


def make_link(db, caller, folder_id, url="https://example.com", title="Example", **overrides):
    overrides.setdefault("auto_tag", False)
    link, _ = LinkService(db).create_link(
        caller, LinkCreate(folder_id=folder_id, url=url, title=title, **overrides)
    )
    return link
