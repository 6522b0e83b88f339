"""Owner scopes: who a folder, link or tag belongs to.

Every row carries ``owner_type`` plus exactly one of ``user_id`` / ``team_id``.
The functions here are the only place that maps between those columns and
an ``OwnerScope`` value, so no query elsewhere spells out the owner columns
by hand.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Union


class OwnerType(str, Enum):
    PERSONAL = "PERSONAL"
    TEAM = "TEAM"


@dataclass(frozen=True)
class PersonalScope:
    user_id: str


@dataclass(frozen=True)
class TeamScope:
    team_id: str


OwnerScope = Union[PersonalScope, TeamScope]


def _unknown(scope: Any) -> TypeError:
    return TypeError(f"Unknown owner scope: {scope!r}")


def owner_type_of(scope: OwnerScope) -> OwnerType:
    if isinstance(scope, PersonalScope):
        return OwnerType.PERSONAL
    if isinstance(scope, TeamScope):
        return OwnerType.TEAM
    raise _unknown(scope)


def scope_columns(scope: OwnerScope) -> Dict[str, Any]:
    """Column values for inserting a row owned by ``scope``."""
    if isinstance(scope, PersonalScope):
        return {"owner_type": OwnerType.PERSONAL.value, "user_id": scope.user_id, "team_id": None}
    if isinstance(scope, TeamScope):
        return {"owner_type": OwnerType.TEAM.value, "user_id": None, "team_id": scope.team_id}
    raise _unknown(scope)


def scope_filter(model, scope: OwnerScope) -> List[Any]:
    """SQLAlchemy criteria restricting ``model`` to rows owned by ``scope``."""
    if isinstance(scope, PersonalScope):
        return [model.owner_type == OwnerType.PERSONAL.value, model.user_id == scope.user_id]
    if isinstance(scope, TeamScope):
        return [model.owner_type == OwnerType.TEAM.value, model.team_id == scope.team_id]
    raise _unknown(scope)


def scope_of(row) -> OwnerScope:
    """Rebuild the scope of a stored folder, link or tag."""
    if row.owner_type == OwnerType.PERSONAL.value:
        return PersonalScope(user_id=row.user_id)
    if row.owner_type == OwnerType.TEAM.value:
        return TeamScope(team_id=row.team_id)
    raise ValueError(f"Row {getattr(row, 'id', '?')} has unknown owner_type {row.owner_type!r}")


def describe(scope: OwnerScope) -> str:
    """Short form for log records, e.g. ``TEAM:acme``."""
    if isinstance(scope, PersonalScope):
        return f"PERSONAL:{scope.user_id}"
    if isinstance(scope, TeamScope):
        return f"TEAM:{scope.team_id}"
    raise _unknown(scope)
