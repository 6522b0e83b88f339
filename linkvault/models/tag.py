"""Tag model."""

from datetime import datetime, timezone

from sqlalchemy import Column, Index, String, DateTime, ForeignKey, text
from ..database import Base

DEFAULT_TAG_COLOR = "#3B82F6"

_PERSONAL = text("owner_type = 'PERSONAL'")
_TEAM = text("owner_type = 'TEAM'")


class Tag(Base):
    """A label scoped to one owner; names are unique per scope."""

    __tablename__ = "tags"
    __table_args__ = (
        Index(
            "uq_tags_personal_name", "user_id", "name",
            unique=True, postgresql_where=_PERSONAL, sqlite_where=_PERSONAL,
        ),
        Index(
            "uq_tags_team_name", "team_id", "name",
            unique=True, postgresql_where=_TEAM, sqlite_where=_TEAM,
        ),
    )

    id = Column(String(50), primary_key=True)
    owner_type = Column(String(10), nullable=False)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=True)
    team_id = Column(String(50), ForeignKey("teams.team_id", ondelete="CASCADE"), nullable=True)
    name = Column(String(50), nullable=False)
    color = Column(String(7), nullable=False, default=DEFAULT_TAG_COLOR)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
