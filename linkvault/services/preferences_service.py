"""Link-save preferences: which scopes quick-save targets by default."""

import logging

from sqlalchemy.orm import Session

from ..core.auth import CallerContext
from ..core.scope import OwnerType
from ..exceptions import NoActiveTeamError, ValidationError
from ..models.user import User
from ..schemas.extension import LinkSaveSettings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS = LinkSaveSettings(save_personal=True, save_team=False)


def get_settings(db: Session, caller: CallerContext) -> LinkSaveSettings:
    """Stored preferences, or the defaults for a user without a row."""
    user = db.query(User).filter(User.user_id == caller.user_id).first()
    if user is None:
        return DEFAULT_SETTINGS
    return LinkSaveSettings(save_personal=user.save_personal, save_team=user.save_team)


def update_settings(db: Session, caller: CallerContext, data: LinkSaveSettings) -> LinkSaveSettings:
    """Store new preferences.

    Raises:
        ValidationError: Both scopes disabled.
        NoActiveTeamError: Team saving enabled without an active team.
    """
    if not data.save_personal and not data.save_team:
        raise ValidationError("Select at least one place to save links")
    if data.save_team and not caller.has_team:
        raise NoActiveTeamError()

    user = db.query(User).filter(User.user_id == caller.user_id).first()
    if user is None:
        user = User(user_id=caller.user_id, team_id=caller.active_team_id)
        db.add(user)
    user.save_personal = data.save_personal
    user.save_team = data.save_team
    db.commit()

    logger.info(
        "Link-save settings updated",
        extra={"user_id": caller.user_id, "save_personal": data.save_personal, "save_team": data.save_team},
    )
    return LinkSaveSettings(save_personal=user.save_personal, save_team=user.save_team)


def default_owner_types(db: Session, caller: CallerContext) -> list[OwnerType]:
    """Owner types quick-save uses when the request names none."""
    prefs = get_settings(db, caller)
    owner_types = []
    if prefs.save_personal:
        owner_types.append(OwnerType.PERSONAL)
    if prefs.save_team:
        owner_types.append(OwnerType.TEAM)
    return owner_types or [OwnerType.PERSONAL]
