"""Per-user classification settings: provider, API key, model and auto-tag opt-out.

A user with their own provider and key gets an advisor that talks to that
provider; everyone else falls back to the server-wide classifier, if one is
configured.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ..core.auth import CallerContext
from ..core.config import settings
from ..models.user import User
from ..schemas.extension import AISettingsResponse, AISettingsUpdate
from .classification_service import AdvisorConfig, ClassificationAdvisor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Provider:
    """How a provider name maps onto LiteLLM."""
    prefix: str
    default_model: str
    api_base: str = ""


PROVIDERS = {
    "cerebras": Provider("cerebras", "llama-3.3-70b"),
    "groq": Provider("groq", "llama-3.3-70b-versatile"),
    "gemini": Provider("gemini", "gemini-2.5-flash"),
    "openrouter": Provider("openrouter", "meta-llama/llama-3.3-70b-instruct:free"),
    "together": Provider("together_ai", "meta-llama/Llama-3.3-70B-Instruct-Turbo"),
    "cohere": Provider("cohere", "command-a-03-2025"),
    # OpenAI-compatible endpoint
    "glm": Provider("openai", "glm-4-flash", api_base="https://open.bigmodel.cn/api/paas/v4"),
    "mistral": Provider("mistral", "mistral-small-latest"),
}


def _user(db: Session, caller: CallerContext) -> Optional[User]:
    return db.query(User).filter(User.user_id == caller.user_id).first()


def user_config(user: Optional[User]) -> Optional[AdvisorConfig]:
    """The user's own advisor configuration, if provider and key are both set."""
    if user is None or not user.ai_provider or not user.ai_api_key:
        return None
    provider = PROVIDERS.get(user.ai_provider)
    if provider is None:
        logger.warning("Unknown AI provider stored for user", extra={"provider": user.ai_provider})
        return None
    return AdvisorConfig(
        model=f"{provider.prefix}/{user.ai_model or provider.default_model}",
        api_key=user.ai_api_key,
        api_base=provider.api_base,
        timeout=settings.classifier_timeout,
    )


def advisor_for(db: Session, caller: CallerContext) -> ClassificationAdvisor:
    return ClassificationAdvisor(user_config(_user(db, caller)))


def auto_tag_enabled(db: Session, caller: CallerContext) -> bool:
    """Auto-tagging needs the server switch on and the user not opted out."""
    if not settings.auto_tag_enabled:
        return False
    user = _user(db, caller)
    return user is None or user.ai_auto_tag_enabled


def _response(db: Session, caller: CallerContext, user: Optional[User]) -> AISettingsResponse:
    return AISettingsResponse(
        provider=user.ai_provider if user else None,
        has_api_key=bool(user and user.ai_api_key),
        model=user.ai_model if user else None,
        auto_tag_enabled=auto_tag_enabled(db, caller),
        classifier_available=ClassificationAdvisor(user_config(user)).is_configured(),
    )


def get_ai_settings(db: Session, caller: CallerContext) -> AISettingsResponse:
    return _response(db, caller, _user(db, caller))


def save_ai_settings(db: Session, caller: CallerContext, data: AISettingsUpdate) -> AISettingsResponse:
    """Store the caller's provider, key, model and auto-tag choice."""
    user = _user(db, caller)
    if user is None:
        user = User(user_id=caller.user_id, team_id=caller.active_team_id)
        db.add(user)
    user.ai_provider = data.provider
    user.ai_api_key = data.api_key
    user.ai_model = data.model
    user.ai_auto_tag_enabled = data.auto_tag_enabled
    db.commit()

    logger.info(
        "AI settings updated",
        extra={"user_id": caller.user_id, "provider": data.provider, "auto_tag_enabled": data.auto_tag_enabled},
    )
    return _response(db, caller, user)


def delete_ai_api_key(db: Session, caller: CallerContext) -> AISettingsResponse:
    """Forget the caller's provider, key and model. The auto-tag choice stays."""
    user = _user(db, caller)
    if user is not None and (user.ai_provider or user.ai_api_key or user.ai_model):
        user.ai_provider = None
        user.ai_api_key = None
        user.ai_model = None
        db.commit()
        logger.info("AI API key removed", extra={"user_id": caller.user_id})
    return _response(db, caller, user)
