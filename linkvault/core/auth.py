"""Authentication: turns a bearer token into a ``CallerContext``.

Public interface:
    ``require_auth`` returns the CallerContext or raises 401.

Token issuance belongs to the dashboard's identity service; this module only
verifies the HS256 signature and looks the subject up in ``users``. The
caller's active team is always read from the user row, never from the token.

When ``settings.auth_enabled`` is False every request runs as
``settings.dev_user_id`` so the development workflow is unbroken.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .config import settings
from .token_factory import TokenPayload, decode_token
from ..database import get_db
from ..exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CallerContext:
    """Identity of the caller for the duration of one request."""

    user_id: str
    active_team_id: Optional[str] = None

    @property
    def has_team(self) -> bool:
        return self.active_team_id is not None


def require_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    db: Session = Depends(get_db),
) -> CallerContext:
    """Require a valid token and return the caller's context.

    When ``AUTH_ENABLED=false`` returns the development caller.
    """
    if not settings.auth_enabled:
        return _dev_caller(db)

    if credentials is None:
        raise AuthenticationError("Missing authentication token")

    payload = decode_token(
        credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm
    )
    if payload is None:
        raise AuthenticationError("Invalid or expired token")

    return _load_caller(payload, db)


def _dev_caller(db: Session) -> CallerContext:
    from ..models.user import User

    user = db.query(User).filter(User.user_id == settings.dev_user_id).first()
    team_id = user.team_id if user is not None else None
    return CallerContext(user_id=settings.dev_user_id, active_team_id=team_id)


def _load_caller(payload: TokenPayload, db: Session) -> CallerContext:
    from ..models.user import User

    user = db.query(User).filter(User.user_id == payload.sub).first()
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("Account is deactivated")

    return CallerContext(user_id=user.user_id, active_team_id=user.team_id)
