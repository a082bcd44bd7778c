"""
User profile, settings and address endpoints.

Other users' profiles go through the visibility predicates: a hidden
profile is reported as 404, and phone / email are masked according to
the owner's settings.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user
from app.core.exceptions import NotFoundError
from app.database import get_db
from app.models.user import User, UserSettings
from app.schemas.address import AddressRead, AddressWrite, ModificationInfo
from app.schemas.user import PublicProfile, SettingsRead, SettingsUpdate, UserRead
from app.services.address_service import MSG_NO_ADDRESS, AddressService
from app.services.visibility import (
    are_stats_visible_for,
    can_receive_message_from,
    is_email_visible_for,
    is_phone_visible_for,
    is_profile_visible_for,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_user(user: User) -> UserRead:
    return UserRead(
        id=user.id,
        email=user.email,
        phone=user.phone,
        first_name=user.first_name,
        last_name=user.last_name,
        email_verified=user.email_verified,
        phone_verified=user.phone_verified,
        is_verified=user.is_verified,
        created_at=user.created_at,
    )


def _build_profile(owner: User, viewer: User | None) -> PublicProfile:
    return PublicProfile(
        id=owner.id,
        first_name=owner.first_name,
        last_name=owner.last_name,
        is_verified=owner.is_verified,
        email=owner.email if is_email_visible_for(owner, viewer) else None,
        phone=owner.phone if is_phone_visible_for(owner, viewer) else None,
        created_at=owner.created_at if are_stats_visible_for(owner, viewer) else None,
        can_message=(
            viewer is not None
            and viewer.id != owner.id
            and can_receive_message_from(owner, viewer)
        ),
    )


def _build_settings(row: UserSettings | None) -> SettingsRead:
    if row is None:
        return SettingsRead()
    return SettingsRead.model_validate(row, from_attributes=True)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserRead)
async def get_me(user: User = Depends(get_current_user)):
    """Get the authenticated user's own profile."""
    return _build_user(user)


@router.get("/me/settings", response_model=SettingsRead)
async def get_my_settings(user: User = Depends(get_current_user)):
    return _build_settings(user.settings)


@router.patch("/me/settings", response_model=SettingsRead)
async def update_my_settings(
    payload: SettingsUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Partially update notification, privacy and preference settings.

    The settings row is created on first update.  A new row keeps the
    phone hidden unless the update says otherwise, so the effective
    visibility only changes for the fields sent.
    """
    row = user.settings
    if row is None:
        row = UserSettings(user_id=user.id, show_phone=False)
        db.add(row)
        user.settings = row

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(row, field, value)

    await db.flush()
    logger.info("Settings updated for user %s", user.id)
    return _build_settings(row)


@router.get("/me/address", response_model=AddressRead)
async def get_my_address(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    address = await AddressService(db).get_for_user(user)
    if address is None:
        raise NotFoundError(MSG_NO_ADDRESS)
    return address


@router.post("/me/address", response_model=AddressRead, status_code=status.HTTP_201_CREATED)
async def create_my_address(
    payload: AddressWrite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Register the caller's address; an existing address is returned as is."""
    return await AddressService(db).create(user, payload)


@router.put("/me/address", response_model=AddressRead)
async def update_my_address(
    payload: AddressWrite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Replace the caller's address.  Allowed once every six months."""
    return await AddressService(db).update(user, payload)


@router.get("/me/address/modification-info", response_model=ModificationInfo)
async def get_address_modification_info(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ModificationInfo(**await AddressService(db).modification_info(user))


@router.delete("/me/address", status_code=status.HTTP_204_NO_CONTENT)
async def delete_my_address(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await AddressService(db).delete(user)


@router.get("/{user_id}", response_model=PublicProfile)
async def get_profile(
    user_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Public profile of *user_id*, as seen by the caller."""
    owner = await db.get(User, user_id)
    if owner is None or owner.is_banned or not is_profile_visible_for(owner, viewer):
        raise NotFoundError("User not found")
    return _build_profile(owner, viewer)
