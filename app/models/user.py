"""
User and UserSettings models.

A user can act both as a traveler (itinerary owner) and as a client
(request owner).  Privacy and notification preferences live in an
optional one-to-one ``UserSettings`` row; services never read it
directly but go through ``app.services.visibility.VisibilitySettings``.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    String,
    Enum as SAEnum,
    event,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, enum_values

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ProfileVisibility(str, enum.Enum):
    PUBLIC = "public"
    VERIFIED_ONLY = "verified_only"
    PRIVATE = "private"


class MessagePermission(str, enum.Enum):
    EVERYONE = "everyone"
    VERIFIED_ONLY = "verified_only"
    NO_ONE = "no_one"


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )

    # Identity
    email: Mapped[str] = mapped_column(
        String(180), unique=True, index=True, nullable=False
    )
    phone: Mapped[str | None] = mapped_column(String(20))
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Verification
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    phone_verified: Mapped[bool] = mapped_column(Boolean, default=False)

    is_banned: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    settings = relationship(
        "UserSettings", back_populates="user", uselist=False, lazy="selectin",
    )

    @property
    def is_verified(self) -> bool:
        """Both email and phone have been confirmed."""
        return bool(self.email_verified and self.phone_verified)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email!r}>"


class UserSettings(Base):
    __tablename__ = "user_settings"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Notifications
    notify_on_new_message: Mapped[bool] = mapped_column(Boolean, default=True)
    notify_on_matching_itinerary: Mapped[bool] = mapped_column(Boolean, default=True)
    notify_on_matching_request: Mapped[bool] = mapped_column(Boolean, default=True)
    notify_on_new_review: Mapped[bool] = mapped_column(Boolean, default=True)
    notify_on_favorite_update: Mapped[bool] = mapped_column(Boolean, default=True)

    # Privacy
    profile_visibility: Mapped[ProfileVisibility] = mapped_column(
        SAEnum(ProfileVisibility, name="profilevisibility", values_callable=enum_values),
        default=ProfileVisibility.PUBLIC,
    )
    message_permission: Mapped[MessagePermission] = mapped_column(
        SAEnum(MessagePermission, name="messagepermission", values_callable=enum_values),
        default=MessagePermission.EVERYONE,
    )
    show_phone: Mapped[bool] = mapped_column(Boolean, default=True)
    show_email: Mapped[bool] = mapped_column(Boolean, default=False)
    show_stats: Mapped[bool] = mapped_column(Boolean, default=True)
    show_in_search_results: Mapped[bool] = mapped_column(Boolean, default=True)

    # Preferences
    language: Mapped[str] = mapped_column(String(5), default="fr")
    currency: Mapped[str] = mapped_column(String(3), default="XAF")
    timezone: Mapped[str] = mapped_column(String(50), default="Africa/Douala")

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", back_populates="settings")

    def __repr__(self) -> str:
        return f"<UserSettings user={self.user_id}>"


# ---------------------------------------------------------------------------
# Auto-set Python-side defaults on construction
# ---------------------------------------------------------------------------


@event.listens_for(User, "init")
def _set_user_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    for flag in ("email_verified", "phone_verified", "is_banned"):
        if flag not in kwargs:
            setattr(target, flag, False)
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)


_SETTINGS_DEFAULTS = {
    "notify_on_new_message": True,
    "notify_on_matching_itinerary": True,
    "notify_on_matching_request": True,
    "notify_on_new_review": True,
    "notify_on_favorite_update": True,
    "profile_visibility": ProfileVisibility.PUBLIC,
    "message_permission": MessagePermission.EVERYONE,
    "show_phone": True,
    "show_email": False,
    "show_stats": True,
    "show_in_search_results": True,
    "language": "fr",
    "currency": "XAF",
    "timezone": "Africa/Douala",
}


@event.listens_for(UserSettings, "init")
def _set_settings_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    for field, value in _SETTINGS_DEFAULTS.items():
        if field not in kwargs:
            setattr(target, field, value)
