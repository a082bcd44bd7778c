"""
Pydantic schemas for user profiles and per-user settings.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.user import MessagePermission, ProfileVisibility


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class UserRead(BaseModel):
    """Own profile, every field visible."""
    id: UUID
    email: str
    phone: str | None
    first_name: str
    last_name: str
    email_verified: bool
    phone_verified: bool
    is_verified: bool
    created_at: datetime


class PublicProfile(BaseModel):
    """Someone else's profile; contact fields masked per their settings."""
    id: UUID
    first_name: str
    last_name: str
    is_verified: bool
    email: str | None = None
    phone: str | None = None
    created_at: datetime | None = None
    can_message: bool = False


class UserSummary(BaseModel):
    """Owner block embedded in listings."""
    id: UUID
    first_name: str
    last_name: str
    is_verified: bool

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class SettingsRead(BaseModel):
    """Current settings; defaults are reported for users without a settings row."""
    notify_on_new_message: bool = True
    notify_on_matching_itinerary: bool = True
    notify_on_matching_request: bool = True
    notify_on_new_review: bool = True
    notify_on_favorite_update: bool = True

    profile_visibility: ProfileVisibility = ProfileVisibility.PUBLIC
    message_permission: MessagePermission = MessagePermission.EVERYONE
    show_phone: bool = False
    show_email: bool = False
    show_stats: bool = True
    show_in_search_results: bool = True

    language: str = "fr"
    currency: str = "XAF"
    timezone: str = "Africa/Douala"


class SettingsUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    notify_on_new_message: bool | None = None
    notify_on_matching_itinerary: bool | None = None
    notify_on_matching_request: bool | None = None
    notify_on_new_review: bool | None = None
    notify_on_favorite_update: bool | None = None

    profile_visibility: ProfileVisibility | None = None
    message_permission: MessagePermission | None = None
    show_phone: bool | None = None
    show_email: bool | None = None
    show_stats: bool | None = None
    show_in_search_results: bool | None = None

    language: str | None = Field(None, min_length=2, max_length=5, examples=["fr"])
    currency: str | None = Field(None, pattern=r"^[A-Z]{3}$", examples=["XAF"])
    timezone: str | None = Field(None, max_length=50, examples=["Africa/Douala"])
