"""
Address service: one address per user, changeable every six months.

Creating an address when one already exists returns the existing row
unchanged.  Updates are refused while the cooldown started by the
previous change is running.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, RejectedError
from app.models.address import Address
from app.models.user import User
from app.schemas.address import AddressWrite

logger = logging.getLogger(__name__)

FORMAT_FIELDS = ("district", "address_line1", "address_line2", "postal_code")

MSG_NO_ADDRESS = "No address registered"


def _fmt_date(value) -> str:
    return value.strftime("%d/%m/%Y")


class AddressService:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_user(self, user: User) -> Address | None:
        result = await self.db.execute(select(Address).where(Address.user_id == user.id))
        return result.scalar_one_or_none()

    async def create(self, user: User, payload: AddressWrite) -> Address:
        existing = await self.get_for_user(user)
        if existing is not None:
            logger.info("User %s already has address %s", user.id, existing.id)
            return existing

        address = Address(user_id=user.id, **payload.model_dump())
        self.db.add(address)
        await self.db.flush()
        logger.info("Address %s created for user %s", address.id, user.id)
        return address

    async def update(self, user: User, payload: AddressWrite) -> Address:
        """Replace the address fields, subject to the six-month cooldown."""
        address = await self.get_for_user(user)
        if address is None:
            raise NotFoundError(MSG_NO_ADDRESS)

        if not address.can_be_modified():
            raise RejectedError(
                "You can only change your address every 6 months. "
                f"Next change possible on {_fmt_date(address.next_modification_date())} "
                f"(in {address.days_until_modification()} days)"
            )

        address.country = payload.country
        address.city = payload.city
        # Switching format clears the other one
        for field in FORMAT_FIELDS:
            setattr(address, field, getattr(payload, field))

        address.mark_as_modified()
        await self.db.flush()
        logger.info("Address %s updated for user %s", address.id, user.id)
        return address

    async def can_modify(self, user: User) -> bool:
        address = await self.get_for_user(user)
        return address is None or address.can_be_modified()

    async def modification_info(self, user: User) -> dict:
        address = await self.get_for_user(user)
        if address is None:
            return {"can_modify": True, "has_address": False, "message": MSG_NO_ADDRESS}

        if address.can_be_modified():
            return {
                "can_modify": True,
                "has_address": True,
                "last_modified_at": address.last_modified_at,
                "message": "You can change your address",
            }

        next_date = address.next_modification_date()
        days = address.days_until_modification()
        return {
            "can_modify": False,
            "has_address": True,
            "last_modified_at": address.last_modified_at,
            "next_modification_date": next_date,
            "days_remaining": days,
            "message": f"Next change possible on {_fmt_date(next_date)} (in {days} days)",
        }

    async def delete(self, user: User) -> None:
        address = await self.get_for_user(user)
        if address is None:
            raise NotFoundError(MSG_NO_ADDRESS)
        await self.db.delete(address)
        await self.db.flush()
        logger.info("Address %s deleted for user %s", address.id, user.id)
