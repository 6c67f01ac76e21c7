"""
API Request Models.

Request fields are optional at the schema level so that missing values get
the endpoint's own 400 message instead of a generic schema error.
"""

from copy import deepcopy
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Accepts the camelCase keys the frontend sends, or snake_case."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ============================================================================
# Auth Models
# ============================================================================

class RegisterRequest(CamelModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")


class LoginRequest(CamelModel):
    # Holds either an email address or a username
    email: Optional[str] = None
    password: Optional[str] = None
    two_factor_code: Optional[str] = Field(None, alias="twoFactorCode")


class ForgotPasswordRequest(CamelModel):
    email: Optional[str] = None


class ResetPasswordRequest(CamelModel):
    token: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")


class ChangePasswordRequest(CamelModel):
    current_password: Optional[str] = Field(None, alias="currentPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")


class UpdateProfileRequest(CamelModel):
    username: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")


class TwoFactorCodeRequest(CamelModel):
    code: Optional[str] = None


class DisableTwoFactorRequest(CamelModel):
    code: Optional[str] = None
    password: Optional[str] = None


class VerifyTwoFactorRequest(CamelModel):
    email: Optional[str] = None
    code: Optional[str] = None


class SendEmailVerificationRequest(CamelModel):
    new_email: Optional[str] = Field(None, alias="newEmail")


class VerifyEmailChangeRequest(CamelModel):
    verification_code: Optional[str] = Field(None, alias="verificationCode")


# ============================================================================
# Chat Session Models
# ============================================================================

class ChatSessionCreate(CamelModel):
    session_id: Optional[str] = Field(None, alias="sessionId")
    title: Optional[str] = None
    messages: Optional[List[Dict[str, Any]]] = None


class ChatSessionUpdate(ChatSessionCreate):
    id: Optional[str] = None


# ============================================================================
# Preferences
# ============================================================================

THEMES = ("dark", "light", "auto")
LANGUAGES = ("en", "es", "fr", "de")
SESSION_TIMEOUTS = ("15", "30", "60", "120", "0")
MODEL_SELECTION_MODES = ("all", "single")

DEFAULT_PREFERENCES: Dict[str, Any] = {
    "emailNotifications": True,
    "pushNotifications": False,
    "theme": "dark",
    "language": "en",
    "autoSave": True,
    "sessionTimeout": "30",
    "defaultModelSelection": {"mode": "all"},
}


def default_preferences() -> Dict[str, Any]:
    return deepcopy(DEFAULT_PREFERENCES)


def _normalize_model_selection(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict) or value.get("mode") not in MODEL_SELECTION_MODES:
        return {"mode": "all"}
    selection = {"mode": value["mode"]}
    if isinstance(value.get("selectedModel"), str) and value["selectedModel"]:
        selection["selectedModel"] = value["selectedModel"]
    return selection


def normalize_preferences(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Build a complete preference bundle from ``raw``.

    Unknown keys are dropped; missing or invalid values fall back to
    DEFAULT_PREFERENCES.
    """
    raw = raw if isinstance(raw, dict) else {}
    prefs = default_preferences()

    for key in ("emailNotifications", "pushNotifications", "autoSave"):
        if isinstance(raw.get(key), bool):
            prefs[key] = raw[key]

    if raw.get("theme") in THEMES:
        prefs["theme"] = raw["theme"]
    if raw.get("language") in LANGUAGES:
        prefs["language"] = raw["language"]
    if raw.get("sessionTimeout") in SESSION_TIMEOUTS:
        prefs["sessionTimeout"] = raw["sessionTimeout"]

    prefs["defaultModelSelection"] = _normalize_model_selection(raw.get("defaultModelSelection"))
    return prefs
