"""Browser-extension endpoints: quick-save, save preferences, AI settings and auth check."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..core.auth import CallerContext, require_auth
from ..database import get_db
from ..schemas.extension import (
    AISettingsResponse,
    AISettingsUpdate,
    AuthCheckResponse,
    LinkSaveSettings,
    QuickSaveRequest,
    QuickSaveResponse,
)
from ..services import ai_settings_service, preferences_service
from ..services.quick_save_service import QuickSaveService

router = APIRouter(prefix="/api/extension", tags=["extension"])


@router.post("/links/quick", response_model=QuickSaveResponse)
def quick_save(
    data: QuickSaveRequest,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Save one URL into each requested scope.

    Returns 200 for ``success`` and ``partial``; 400 only when every scope failed.
    """
    result = QuickSaveService(db).save(caller, data)
    if result.status == "failure":
        return JSONResponse(status_code=400, content=result.model_dump(mode="json"))
    return result


@router.get("/settings", response_model=LinkSaveSettings)
def get_link_settings(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    return preferences_service.get_settings(db, caller)


@router.post("/settings", response_model=LinkSaveSettings)
def update_link_settings(
    data: LinkSaveSettings,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Set the default quick-save scopes. At least one must stay enabled."""
    return preferences_service.update_settings(db, caller, data)


@router.get("/ai-settings", response_model=AISettingsResponse)
def get_ai_settings(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    return ai_settings_service.get_ai_settings(db, caller)


@router.post("/ai-settings", response_model=AISettingsResponse)
def save_ai_settings(
    data: AISettingsUpdate,
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Store the caller's own classification provider and key."""
    return ai_settings_service.save_ai_settings(db, caller, data)


@router.delete("/ai-settings/api-key", response_model=AISettingsResponse)
def delete_ai_api_key(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    return ai_settings_service.delete_ai_api_key(db, caller)


@router.get("/auth/check", response_model=AuthCheckResponse)
def auth_check(
    db: Session = Depends(get_db),
    caller: CallerContext = Depends(require_auth),
):
    """Identity, active team and advisor availability for the extension popup."""
    return AuthCheckResponse(
        authenticated=True,
        user_id=caller.user_id,
        team_id=caller.active_team_id,
        classifier_available=ai_settings_service.advisor_for(db, caller).is_configured(),
        auto_tag_enabled=ai_settings_service.auto_tag_enabled(db, caller),
        settings=preferences_service.get_settings(db, caller),
    )
