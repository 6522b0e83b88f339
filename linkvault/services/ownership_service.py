"""Ownership resolution: which scopes a caller may act in.

This is the ONE place where scope access rules are defined:
    - PERSONAL is always available and means the caller's own user id.
    - TEAM requires an active team and means that team.
    - A stored row is accessible when its scope is one of the two above.

Scopes are always derived from the caller, never taken from request bodies.
Rows outside the caller's scopes are reported as not found so their
existence is not disclosed.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, List, Union

from ..core.scope import OwnerScope, OwnerType, PersonalScope, TeamScope, scope_of
from ..exceptions import LinkVaultException, NoActiveTeamError, ValidationError

if TYPE_CHECKING:
    from ..core.auth import CallerContext


def resolve_scope(caller: CallerContext, requested: Union[OwnerType, str]) -> OwnerScope:
    """Turn a requested owner type into the caller's concrete scope.

    Raises:
        NoActiveTeamError: TEAM was requested by a caller without a team.
        ValidationError: ``requested`` is not a known owner type.
    """
    try:
        owner_type = OwnerType(requested)
    except ValueError:
        raise ValidationError(f"Unknown owner type: {requested}", field="owner_type")

    if owner_type == OwnerType.PERSONAL:
        return PersonalScope(user_id=caller.user_id)
    if not caller.active_team_id:
        raise NoActiveTeamError()
    return TeamScope(team_id=caller.active_team_id)


def accessible_scopes(caller: CallerContext) -> List[OwnerScope]:
    """The caller's personal scope, followed by the active team's if any."""
    scopes: List[OwnerScope] = [PersonalScope(user_id=caller.user_id)]
    if caller.active_team_id:
        scopes.append(TeamScope(team_id=caller.active_team_id))
    return scopes


def can_access(caller: CallerContext, scope: OwnerScope) -> bool:
    return scope in accessible_scopes(caller)


def require_access(
    caller: CallerContext,
    row,
    not_found: Callable[[str], LinkVaultException],
) -> OwnerScope:
    """Return the scope of ``row`` or raise ``not_found(row.id)``."""
    scope = scope_of(row)
    if not can_access(caller, scope):
        raise not_found(row.id)
    return scope


def require_row(
    caller: CallerContext,
    row,
    row_id: str,
    not_found: Callable[[str], LinkVaultException],
):
    """Return ``row`` when it exists and is accessible, else raise ``not_found``."""
    if row is None:
        raise not_found(row_id)
    require_access(caller, row, not_found)
    return row

