"""Database models."""

from .user import Team, User
from .folder import LinkFolder
from .tag import Tag
from .link import Link, LinkView, link_tags

__all__ = [
    "Team", "User",
    "LinkFolder",
    "Tag",
    "Link", "LinkView", "link_tags",
]
