"""Team and User models.

Teams and users are owned by the dashboard's identity service; LinkVault keeps
a local row per user so it can resolve the caller's active team and store
link-save preferences.
"""

from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from ..database import Base


class Team(Base):
    """A team whose members share the TEAM scope."""

    __tablename__ = "teams"

    team_id = Column(String(50), primary_key=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class User(Base):
    """A dashboard user.

    ``team_id`` is the caller's active team; NULL means the user can only
    work in their PERSONAL scope.

    ``save_personal`` / ``save_team`` are the default scopes for the browser
    extension's quick-save. At least one of them is always true.

    ``ai_provider`` / ``ai_api_key`` / ``ai_model`` are the user's own
    classification provider; when unset the server-wide classifier (if any)
    is used. ``ai_auto_tag_enabled`` lets the user opt out of auto-tagging.
    """

    __tablename__ = "users"

    user_id = Column(String(50), primary_key=True)
    display_name = Column(String(255), nullable=False, default="Default User")
    email = Column(String(255), unique=True, nullable=True)
    team_id = Column(String(50), ForeignKey("teams.team_id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    save_personal = Column(Boolean, nullable=False, default=True)
    save_team = Column(Boolean, nullable=False, default=False)
    ai_provider = Column(String(30), nullable=True)
    ai_api_key = Column(Text, nullable=True)
    ai_model = Column(String(100), nullable=True)
    ai_auto_tag_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
