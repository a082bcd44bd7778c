"""
Itinerary listings: publish, browse, cancel.

Publishing alerts the owners of compatible searching requests.
Cancelling withdraws the itinerary's pending proposals and tells their
clients; accepted proposals are left as they are.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenActionError, NotFoundError, RejectedError
from app.matching_engine.matcher import like_pattern, owner_search_visible
from app.models.itinerary import Itinerary, ItineraryStatus
from app.models.proposal import Proposal, ProposalStatus
from app.models.user import User, UserSettings
from app.schemas.itinerary import ItineraryCreate
from app.services.events import ItineraryCancelled
from app.services.notification_service import NotificationService
from app.services.visibility import filter_visible_itineraries, is_itinerary_visible_for

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class ItineraryService:

    def __init__(self, db: AsyncSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    async def create(self, payload: ItineraryCreate, owner: User) -> Itinerary:
        itinerary = Itinerary(owner_id=owner.id, **payload.model_dump())
        itinerary.owner = owner
        self.db.add(itinerary)
        await self.db.commit()
        logger.info(
            "Itinerary %s published by %s: %s -> %s on %s",
            itinerary.id, owner.id,
            itinerary.departure_city, itinerary.arrival_city, itinerary.departure_date,
        )

        await self.notifications.notify_matching_requests(itinerary)
        return itinerary

    async def get_visible(self, itinerary_id: uuid.UUID, viewer: User | None) -> Itinerary:
        """Hidden itineraries are reported as missing."""
        itinerary = await self.db.get(Itinerary, itinerary_id)
        if itinerary is None or not is_itinerary_visible_for(itinerary, viewer):
            raise NotFoundError("Itinerary not found")
        return itinerary

    async def list_active(
        self,
        viewer: User | None,
        departure_city: str | None = None,
        arrival_city: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> list[Itinerary]:
        stmt = (
            select(Itinerary)
            .join(User, Itinerary.owner_id == User.id)
            .outerjoin(UserSettings, UserSettings.user_id == User.id)
            .where(Itinerary.status == ItineraryStatus.ACTIVE, owner_search_visible())
        )
        if departure_city:
            stmt = stmt.where(Itinerary.departure_city.ilike(like_pattern(departure_city), escape="\\"))
        if arrival_city:
            stmt = stmt.where(Itinerary.arrival_city.ilike(like_pattern(arrival_city), escape="\\"))
        stmt = stmt.order_by(Itinerary.departure_date.asc()).limit(limit).offset(offset)

        result = await self.db.execute(stmt)
        return filter_visible_itineraries(result.scalars().all(), viewer)

    async def list_mine(self, owner: User) -> list[Itinerary]:
        result = await self.db.execute(
            select(Itinerary)
            .where(Itinerary.owner_id == owner.id)
            .order_by(Itinerary.departure_date.desc())
        )
        return list(result.scalars().all())

    async def cancel(self, itinerary_id: uuid.UUID, owner: User) -> Itinerary:
        itinerary = await self.db.get(Itinerary, itinerary_id, with_for_update=True)
        if itinerary is None:
            raise NotFoundError("Itinerary not found")
        if itinerary.owner_id != owner.id:
            raise ForbiddenActionError("You are not the owner of this itinerary")
        if not itinerary.is_valid_transition(itinerary.status, ItineraryStatus.CANCELLED):
            raise RejectedError("This itinerary can no longer be cancelled")

        itinerary.transition_to(ItineraryStatus.CANCELLED)

        result = await self.db.execute(
            select(Proposal)
            .where(
                Proposal.itinerary_id == itinerary.id,
                Proposal.status == ProposalStatus.PENDING,
            )
            .with_for_update()
        )
        pending = list(result.scalars().all())
        for proposal in pending:
            proposal.transition_to(ProposalStatus.CANCELLED)

        await self.db.commit()
        logger.info("Itinerary %s cancelled, %d pending proposals withdrawn", itinerary.id, len(pending))

        await self.notifications.dispatch(ItineraryCancelled(itinerary, p) for p in pending)
        return itinerary
