"""Schemas for the browser-extension endpoints."""

from pydantic import BaseModel, field_validator
from typing import Literal, Optional, List

from ..core.scope import OwnerType
from ..exceptions import ErrorCode
from .link import validate_http_url


class QuickSaveRequest(BaseModel):
    """Save the current tab into one or more scopes.

    ``owner_types`` defaults to the caller's link-save preferences.
    ``folder_id`` is used for the scope that owns it; other scopes pick a
    folder on their own.
    """
    url: str
    title: Optional[str] = None
    favicon: Optional[str] = None
    owner_types: Optional[List[OwnerType]] = None
    folder_id: Optional[str] = None

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        return validate_http_url(v)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v[:500] or None

    @field_validator('owner_types')
    @classmethod
    def dedupe_owner_types(cls, v: Optional[List[OwnerType]]) -> Optional[List[OwnerType]]:
        if v is None:
            return None
        if not v:
            raise ValueError("owner_types cannot be empty")
        return list(dict.fromkeys(v))


class QuickSaveResult(BaseModel):
    owner_type: OwnerType
    success: bool
    link_id: Optional[str] = None
    folder_id: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None


class QuickSaveResponse(BaseModel):
    status: Literal["success", "partial", "failure"]
    results: List[QuickSaveResult]


class LinkSaveSettings(BaseModel):
    """Default scopes for quick-save."""
    save_personal: bool = True
    save_team: bool = False


class AuthCheckResponse(BaseModel):
    authenticated: bool
    user_id: Optional[str] = None
    team_id: Optional[str] = None
    classifier_available: bool = False
    auto_tag_enabled: bool = False
    settings: LinkSaveSettings = LinkSaveSettings()


AIProvider = Literal["cerebras", "groq", "gemini", "openrouter", "together", "cohere", "glm", "mistral"]


class AISettingsUpdate(BaseModel):
    """A user's own classification provider. ``model`` defaults per provider."""
    provider: AIProvider
    api_key: str
    model: Optional[str] = None
    auto_tag_enabled: bool = True

    @field_validator('api_key')
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("API key cannot be empty")
        return v

    @field_validator('model')
    @classmethod
    def validate_model(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if len(v) > 100:
            raise ValueError("Model must be at most 100 characters")
        return v or None


class AISettingsResponse(BaseModel):
    """Stored provider settings. The key itself is never returned."""
    provider: Optional[AIProvider] = None
    has_api_key: bool = False
    model: Optional[str] = None
    auto_tag_enabled: bool = True
    classifier_available: bool = False
