"""
Proposal lifecycle: create, accept / reject, and read projections.

States::

    pending ──► accepted
       │──────► rejected
       └──────► cancelled      (sibling auto-cancel, or listing withdrawn)

Every status other than PENDING is terminal.  Accepting a proposal is a
single transaction that locks the request row and then the itinerary
row (always in that order), re-reads the proposal under lock, and only
then consumes capacity, flips the request to TRAVELER_FOUND and cancels
the request's other pending proposals.  Rejecting locks and re-reads
only the proposal row.

State changes are committed before any notification is written; the
collected domain events are then handed to ``NotificationService``.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    ConflictError,
    ForbiddenActionError,
    NotFoundError,
    RejectedError,
)
from app.models.itinerary import Itinerary, ItineraryStatus
from app.models.proposal import Proposal, ProposalStatus
from app.models.transport_request import RequestStatus, TransportRequest
from app.models.user import User
from app.schemas.proposal import ProposalCreate
from app.services.currency_service import CurrencyService
from app.services.events import (
    ProposalAccepted,
    ProposalAutoCancelled,
    ProposalCreated,
    ProposalRejected,
)
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Accept:
    pass


@dataclass(frozen=True)
class Reject:
    reason: str | None = None


Decision = Accept | Reject


# ---------------------------------------------------------------------------
# Error messages
# ---------------------------------------------------------------------------

MSG_ITINERARY_NOT_FOUND = "Itinerary not found"
MSG_REQUEST_NOT_FOUND = "Request not found"
MSG_PROPOSAL_NOT_FOUND = "Proposal not found"
MSG_NOT_REQUEST_OWNER = "You can only make a proposal with your own request"
MSG_OWN_ITINERARY = "You cannot make a proposal on your own itinerary"
MSG_ITINERARY_INACTIVE = "This itinerary is no longer active"
MSG_REQUEST_NOT_SEARCHING = "This request is no longer searching for a traveler"
MSG_ALREADY_PROPOSED = "You have already made a proposal for this itinerary"
MSG_NO_CAPACITY = "This itinerary has no capacity left"
MSG_NOT_TRAVELER = "You are not allowed to respond to this proposal"
MSG_ALREADY_ANSWERED = "This proposal has already been answered"
MSG_NOT_PARTICIPANT = "You are not allowed to view this proposal"
MSG_NOT_ITINERARY_OWNER = "You are not the owner of this itinerary"


class ProposalService:
    """Proposal creation, responses and read access."""

    def __init__(self, db: AsyncSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create(
        self, itinerary_id: uuid.UUID, payload: ProposalCreate, client: User,
    ) -> Proposal:
        """
        Create a PENDING proposal from *client*'s request on an itinerary.

        Preconditions are checked in order; the first failure wins.
        The proposal's currency is always the request's currency.
        """
        itinerary = await self.db.get(Itinerary, itinerary_id)
        if itinerary is None:
            raise NotFoundError(MSG_ITINERARY_NOT_FOUND)

        request = await self.db.get(TransportRequest, payload.request_id)
        if request is None:
            raise NotFoundError(MSG_REQUEST_NOT_FOUND)

        if request.owner_id != client.id:
            raise ForbiddenActionError(MSG_NOT_REQUEST_OWNER)
        if itinerary.owner_id == client.id:
            raise ForbiddenActionError(MSG_OWN_ITINERARY)
        if itinerary.status != ItineraryStatus.ACTIVE:
            raise RejectedError(MSG_ITINERARY_INACTIVE)
        if request.status != RequestStatus.SEARCHING:
            raise RejectedError(MSG_REQUEST_NOT_SEARCHING)

        existing = await self.db.execute(
            select(Proposal.id).where(
                Proposal.itinerary_id == itinerary.id,
                Proposal.request_id == request.id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(MSG_ALREADY_PROPOSED)

        if Decimal(itinerary.available_weight) - Decimal(request.estimated_weight) <= 0:
            raise RejectedError(MSG_NO_CAPACITY)

        proposal = Proposal(
            itinerary_id=itinerary.id,
            request_id=request.id,
            client_id=client.id,
            traveler_id=itinerary.owner_id,
            price_per_kilo=payload.price_per_kilo,
            commission=payload.commission,
            currency=request.currency,
            message=payload.message,
            status=ProposalStatus.PENDING,
        )
        proposal.itinerary = itinerary
        proposal.request = request
        proposal.client = client
        proposal.traveler = itinerary.owner

        # The unique (itinerary_id, request_id) constraint closes the race
        # between the existence check above and this insert.
        try:
            async with self.db.begin_nested():
                self.db.add(proposal)
        except IntegrityError:
            raise ConflictError(MSG_ALREADY_PROPOSED)

        await self.db.commit()
        logger.info(
            "Proposal %s created: itinerary=%s request=%s client=%s",
            proposal.id, itinerary.id, request.id, client.id,
        )

        await self.notifications.dispatch([ProposalCreated(proposal)])
        return proposal

    # ------------------------------------------------------------------
    # Respond
    # ------------------------------------------------------------------

    async def respond(
        self, proposal_id: uuid.UUID, decision: Decision, responder: User,
    ) -> Proposal:
        """Accept or reject a pending proposal as its traveler."""
        proposal = await self.db.get(Proposal, proposal_id)
        if proposal is None:
            raise NotFoundError(MSG_PROPOSAL_NOT_FOUND)
        if proposal.traveler_id != responder.id:
            raise ForbiddenActionError(MSG_NOT_TRAVELER)
        if proposal.status != ProposalStatus.PENDING:
            raise RejectedError(MSG_ALREADY_ANSWERED)

        if isinstance(decision, Accept):
            events = await self._accept(proposal)
        else:
            events = await self._reject(proposal, decision.reason)

        await self.db.commit()
        await self.notifications.dispatch(events)
        return proposal

    async def _accept(self, proposal: Proposal) -> list:
        # Lock order: request, then itinerary
        request = await self.db.get(
            TransportRequest, proposal.request_id,
            with_for_update=True, populate_existing=True,
        )
        itinerary = await self.db.get(
            Itinerary, proposal.itinerary_id,
            with_for_update=True, populate_existing=True,
        )
        await self.db.refresh(proposal, with_for_update=True)

        if proposal.status != ProposalStatus.PENDING:
            raise RejectedError(MSG_ALREADY_ANSWERED)
        if request.status != RequestStatus.SEARCHING:
            raise RejectedError(MSG_REQUEST_NOT_SEARCHING)

        proposal.transition_to(ProposalStatus.ACCEPTED)
        remaining = itinerary.consume_capacity(request.estimated_weight)
        request.transition_to(RequestStatus.TRAVELER_FOUND)

        result = await self.db.execute(
            select(Proposal)
            .where(
                Proposal.request_id == request.id,
                Proposal.status == ProposalStatus.PENDING,
                Proposal.id != proposal.id,
            )
            .with_for_update()
        )
        siblings = list(result.scalars().all())
        for sibling in siblings:
            sibling.transition_to(ProposalStatus.CANCELLED)

        await self.db.flush()
        logger.info(
            "Proposal %s accepted: itinerary %s remaining=%s status=%s, %d siblings cancelled",
            proposal.id, itinerary.id, remaining, itinerary.status.value, len(siblings),
        )

        return [ProposalAccepted(proposal)] + [ProposalAutoCancelled(s) for s in siblings]

    async def _reject(self, proposal: Proposal, reason: str | None) -> list:
        # Only the proposal row is locked; a concurrent accept may have
        # answered or auto-cancelled it since it was read.
        await self.db.refresh(proposal, with_for_update=True)
        if proposal.status != ProposalStatus.PENDING:
            raise RejectedError(MSG_ALREADY_ANSWERED)

        proposal.transition_to(ProposalStatus.REJECTED)
        proposal.reject_message = reason
        logger.info("Proposal %s rejected", proposal.id)
        return [ProposalRejected(proposal)]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_for_participant(self, proposal_id: uuid.UUID, viewer: User) -> Proposal:
        proposal = await self.db.get(Proposal, proposal_id)
        if proposal is None:
            raise NotFoundError(MSG_PROPOSAL_NOT_FOUND)
        if viewer.id not in (proposal.client_id, proposal.traveler_id):
            raise ForbiddenActionError(MSG_NOT_PARTICIPANT)
        return proposal

    async def list_for_itinerary(
        self, itinerary_id: uuid.UUID, owner: User, accepted_only: bool = False,
    ) -> list[Proposal]:
        itinerary = await self.db.get(Itinerary, itinerary_id)
        if itinerary is None:
            raise NotFoundError(MSG_ITINERARY_NOT_FOUND)
        if itinerary.owner_id != owner.id:
            raise ForbiddenActionError(MSG_NOT_ITINERARY_OWNER)

        stmt = select(Proposal).where(Proposal.itinerary_id == itinerary_id)
        if accepted_only:
            stmt = stmt.where(Proposal.status == ProposalStatus.ACCEPTED)
        result = await self.db.execute(stmt.order_by(Proposal.created_at.desc()))
        return list(result.scalars().all())

    async def list_sent(self, client: User) -> list[Proposal]:
        result = await self.db.execute(
            select(Proposal)
            .where(Proposal.client_id == client.id)
            .order_by(Proposal.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_received(self, traveler: User) -> list[Proposal]:
        result = await self.db.execute(
            select(Proposal)
            .where(Proposal.traveler_id == traveler.id)
            .order_by(Proposal.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_pending(self, traveler: User) -> int:
        result = await self.db.execute(
            select(func.count(Proposal.id)).where(
                Proposal.traveler_id == traveler.id,
                Proposal.status == ProposalStatus.PENDING,
            )
        )
        return result.scalar_one()


# ---------------------------------------------------------------------------
# Currency-aware projection
# ---------------------------------------------------------------------------


def viewer_currency(viewer: User) -> str:
    if viewer.settings is not None and viewer.settings.currency:
        return viewer.settings.currency
    return settings.DEFAULT_CURRENCY


async def summarize(proposal: Proposal, viewer: User, currencies: CurrencyService) -> dict:
    """
    Proposal fields plus a ``converted`` block in the viewer's currency.

    The block is only present when the viewer's preferred currency differs
    from the proposal's.  Stored amounts are never modified.
    """
    target = viewer_currency(viewer)
    summary = {
        "id": proposal.id,
        "itinerary_id": proposal.itinerary_id,
        "request_id": proposal.request_id,
        "client_id": proposal.client_id,
        "traveler_id": proposal.traveler_id,
        "price_per_kilo": proposal.price_per_kilo,
        "commission": proposal.commission,
        "currency": proposal.currency,
        "message": proposal.message,
        "status": proposal.status,
        "reject_message": proposal.reject_message,
        "created_at": proposal.created_at,
        "responded_at": proposal.responded_at,
        "viewer_currency": target,
        "converted": None,
    }

    if target != proposal.currency:
        price = await currencies.convert(proposal.price_per_kilo, proposal.currency, target)
        commission = await currencies.convert(proposal.commission, proposal.currency, target)
        summary["converted"] = {
            "currency": target,
            "price_per_kilo": price,
            "price_per_kilo_formatted": currencies.format_amount(price, target),
            "commission": commission,
            "commission_formatted": currencies.format_amount(commission, target),
        }

    return summary
