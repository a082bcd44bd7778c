"""
Notification service: in-app notification rows.

Two producers feed it:

* lifecycle domain events (``dispatch``), one SAVEPOINT per event so a
  failed insert never rolls back the state change that caused it;
* new listings (``notify_matching_requests`` / ``notify_matching_itineraries``)
  alerting the owners of compatible listings.

Preference-gated types are dropped when the recipient opted out; every
other type is always delivered.
"""

import logging
import uuid
from datetime import date
from typing import Iterable

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.matching_engine.matcher import matching_itineraries_query, matching_requests_query
from app.models.itinerary import Itinerary
from app.models.notification import Notification
from app.models.transport_request import TransportRequest
from app.models.user import User
from app.services.events import (
    DomainEvent,
    ItineraryCancelled,
    ProposalAccepted,
    ProposalAutoCancelled,
    ProposalCreated,
    ProposalRejected,
    RequestCancelled,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Notification types
# ---------------------------------------------------------------------------

NEW_MESSAGE = "new_message"
MATCHING_ITINERARY = "matching_itinerary"
MATCHING_REQUEST = "matching_request"
NEW_REVIEW = "new_review"
FAVORITE_UPDATE = "favorite_update"

NEW_PROPOSAL = "new_proposal"
PROPOSAL_ACCEPTED = "proposal_accepted"
PROPOSAL_REJECTED = "proposal_rejected"
PROPOSAL_CANCELLED = "proposal_cancelled"
REQUEST_CANCELLED = "request_cancelled"
ITINERARY_CANCELLED = "itinerary_cancelled"

# type -> UserSettings flag the recipient can switch off
PREFERENCE_FLAGS: dict[str, str] = {
    NEW_MESSAGE: "notify_on_new_message",
    MATCHING_ITINERARY: "notify_on_matching_itinerary",
    MATCHING_REQUEST: "notify_on_matching_request",
    NEW_REVIEW: "notify_on_new_review",
    FAVORITE_UPDATE: "notify_on_favorite_update",
}

DEFAULT_PAGE_SIZE = 20


def _fmt_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def accepts_notification(user: User, notification_type: str) -> bool:
    """Whether *user*'s preferences allow *notification_type*."""
    flag = PREFERENCE_FLAGS.get(notification_type)
    if flag is None or user.settings is None:
        return True
    return bool(getattr(user.settings, flag))


class NotificationService:
    """Creates, dispatches and manages a user's in-app notifications."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_notification(
        self,
        user: User,
        notification_type: str,
        title: str,
        body: str,
        data: dict | None = None,
    ) -> Notification | None:
        """Add an unread notification, or return None if the user opted out."""
        if not accepts_notification(user, notification_type):
            logger.debug("Notification %s suppressed for user %s", notification_type, user.id)
            return None

        notification = Notification(
            user_id=user.id,
            type=notification_type,
            title=title,
            body=body,
            data=data,
            is_read=False,
        )
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def _create_isolated(self, user: User, *args, **kwargs) -> Notification | None:
        try:
            async with self.db.begin_nested():
                return await self.create_notification(user, *args, **kwargs)
        except SQLAlchemyError:
            logger.exception("Failed to persist notification for user %s", user.id)
            return None

    async def dispatch(self, events: Iterable[DomainEvent]) -> int:
        """
        Turn domain events into notifications.

        Each event is written in its own SAVEPOINT; failures are logged
        and skipped.  Returns the number of notifications created.
        """
        created = 0
        for event in events:
            recipient, notification_type, title, body, data = self._render(event)
            if await self._create_isolated(recipient, notification_type, title, body, data):
                created += 1
        return created

    @staticmethod
    def _render(event: DomainEvent) -> tuple[User, str, str, str, dict]:
        proposal = event.proposal
        itinerary = proposal.itinerary
        route = f"{itinerary.departure_city} -> {itinerary.arrival_city}"
        data = {
            "proposal_id": str(proposal.id),
            "itinerary_id": str(proposal.itinerary_id),
            "request_id": str(proposal.request_id),
        }

        if isinstance(event, ProposalCreated):
            client = proposal.client
            return (
                proposal.traveler, NEW_PROPOSAL, "New proposal received",
                f"{client.full_name} made a proposal for your trip {route}.",
                data,
            )
        if isinstance(event, ProposalAccepted):
            traveler = proposal.traveler
            return (
                proposal.client, PROPOSAL_ACCEPTED, "Proposal accepted",
                f"{traveler.full_name} accepted your proposal for the trip {route}.",
                data,
            )
        if isinstance(event, ProposalRejected):
            traveler = proposal.traveler
            body = f"{traveler.full_name} declined your proposal for the trip {route}."
            if proposal.reject_message:
                body += f" Message: {proposal.reject_message}"
            return (
                proposal.client, PROPOSAL_REJECTED, "Proposal declined",
                body, {**data, "reject_message": proposal.reject_message},
            )
        if isinstance(event, ProposalAutoCancelled):
            client = proposal.client
            return (
                proposal.traveler, PROPOSAL_CANCELLED, "Proposal cancelled",
                f"The request of {client.full_name} already found a traveler. "
                f"Your proposal for the trip {route} was cancelled automatically.",
                data,
            )
        if isinstance(event, RequestCancelled):
            client = proposal.client
            return (
                proposal.traveler, REQUEST_CANCELLED, "Request cancelled",
                f"The request of {client.full_name} for the trip {route} was cancelled.",
                data,
            )
        if isinstance(event, ItineraryCancelled):
            return (
                proposal.client, ITINERARY_CANCELLED, "Trip cancelled",
                f"The trip {route} you made a proposal for was cancelled. "
                "Your request is searching for a traveler again.",
                data,
            )
        raise TypeError(f"Unsupported event: {event!r}")

    # ------------------------------------------------------------------
    # Matching alerts
    # ------------------------------------------------------------------

    async def notify_matching_requests(self, itinerary: Itinerary) -> int:
        """Alert owners of searching requests compatible with a new itinerary."""
        result = await self.db.execute(matching_requests_query(itinerary))
        created = 0
        for request in result.scalars().all():
            notification = await self._create_isolated(
                request.owner,
                MATCHING_ITINERARY,
                "New trip available",
                f"A traveler goes from {itinerary.departure_city} to "
                f"{itinerary.arrival_city} on {_fmt_date(itinerary.departure_date)}.",
                {"itinerary_id": str(itinerary.id), "request_id": str(request.id)},
            )
            if notification:
                created += 1
        logger.info("Itinerary %s: %d matching-request alerts", itinerary.id, created)
        return created

    async def notify_matching_itineraries(self, request: TransportRequest) -> int:
        """Alert owners of active itineraries compatible with a new request."""
        result = await self.db.execute(matching_itineraries_query(request))
        created = 0
        for itinerary in result.scalars().all():
            notification = await self._create_isolated(
                itinerary.owner,
                MATCHING_REQUEST,
                "New matching request",
                f"A request from {request.departure_city} to {request.arrival_city} "
                "matches your trip.",
                {"request_id": str(request.id), "itinerary_id": str(itinerary.id)},
            )
            if notification:
                created += 1
        logger.info("Request %s: %d matching-itinerary alerts", request.id, created)
        return created

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    async def list_for_user(
        self, user: User, limit: int = DEFAULT_PAGE_SIZE, unread_only: bool = False,
    ) -> list[Notification]:
        stmt = select(Notification).where(Notification.user_id == user.id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_unread(self, user: User) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user.id,
                Notification.is_read.is_(False),
            )
        )
        return result.scalar_one()

    async def _get_owned(self, notification_id: uuid.UUID, user: User) -> Notification:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user.id,
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    async def mark_read(self, notification_id: uuid.UUID, user: User) -> Notification:
        notification = await self._get_owned(notification_id, user)
        notification.is_read = True
        await self.db.flush()
        return notification

    async def mark_all_read(self, user: User) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user.id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        return result.rowcount or 0

    async def delete(self, notification_id: uuid.UUID, user: User) -> None:
        notification = await self._get_owned(notification_id, user)
        await self.db.execute(delete(Notification).where(Notification.id == notification.id))
