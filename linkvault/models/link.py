"""Link, link-tag association and link-view models."""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint, Column, Index, String, Text, Integer, DateTime, ForeignKey, Table,
)
from sqlalchemy.orm import relationship
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


link_tags = Table(
    "link_tags",
    Base.metadata,
    Column("link_id", String(50), ForeignKey("links.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(50), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Link(Base):
    """A bookmark stored in exactly one folder of its own scope.

    ``sort_order`` orders links inside the folder. Deletes and moves leave
    gaps; a reorder renumbers the folder densely. ``source_link_id`` points at
    the link this row was copied from when it arrived through a cross-scope
    transfer.
    """

    __tablename__ = "links"
    __table_args__ = (
        Index("ix_links_folder_sort", "folder_id", "sort_order"),
        Index("ix_links_user", "owner_type", "user_id"),
        Index("ix_links_team", "owner_type", "team_id"),
        CheckConstraint("rating IS NULL OR (rating >= 0 AND rating <= 5)", name="ck_links_rating"),
        CheckConstraint("sort_order >= 0", name="ck_links_sort_order"),
    )

    id = Column(String(50), primary_key=True)
    owner_type = Column(String(10), nullable=False)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=True)
    team_id = Column(String(50), ForeignKey("teams.team_id", ondelete="CASCADE"), nullable=True)
    folder_id = Column(String(50), ForeignKey("link_folders.id", ondelete="CASCADE"), nullable=False)
    url = Column(Text, nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    favicon = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_by_id = Column(String(50), nullable=True)
    source_link_id = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    tags = relationship("Tag", secondary=link_tags, order_by="Tag.name")
    views = relationship(
        "LinkView",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="LinkView.viewed_at",
    )


class LinkView(Base):
    """A team member marking a team link as viewed. At most one per (link, user)."""

    __tablename__ = "link_views"

    link_id = Column(String(50), ForeignKey("links.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String(50), ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    viewed_at = Column(DateTime(timezone=True), default=_utcnow)
