"""Link folder model: one node of a scope's folder forest."""

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, Index, String, Integer, DateTime, ForeignKey, func, text
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LinkFolder(Base):
    """A folder owned by exactly one scope.

    Siblings share ``(owner scope, parent_id)``; their ``sort_order`` values
    are always exactly ``0..n-1`` and their names are unique. Deleting a
    folder cascades to its subtree and the links inside it.
    """

    __tablename__ = "link_folders"
    __table_args__ = (
        Index("ix_link_folders_user_parent", "owner_type", "user_id", "parent_id"),
        Index("ix_link_folders_team_parent", "owner_type", "team_id", "parent_id"),
        CheckConstraint("sort_order >= 0", name="ck_link_folders_sort_order"),
    )

    id = Column(String(50), primary_key=True)
    owner_type = Column(String(10), nullable=False)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=True)
    team_id = Column(String(50), ForeignKey("teams.team_id", ondelete="CASCADE"), nullable=True)
    parent_id = Column(String(50), ForeignKey("link_folders.id", ondelete="CASCADE"), nullable=True)
    name = Column(String(100), nullable=False)
    icon = Column(String(50), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# Sibling names are unique per scope. Root folders have a NULL parent, which
# a plain unique index would treat as distinct, hence the COALESCE.
_PERSONAL = text("owner_type = 'PERSONAL'")
_TEAM = text("owner_type = 'TEAM'")

Index(
    "uq_link_folders_personal_name",
    LinkFolder.user_id,
    func.coalesce(LinkFolder.parent_id, ""),
    LinkFolder.name,
    unique=True,
    postgresql_where=_PERSONAL,
    sqlite_where=_PERSONAL,
)
Index(
    "uq_link_folders_team_name",
    LinkFolder.team_id,
    func.coalesce(LinkFolder.parent_id, ""),
    LinkFolder.name,
    unique=True,
    postgresql_where=_TEAM,
    sqlite_where=_TEAM,
)
