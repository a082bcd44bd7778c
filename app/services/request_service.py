"""
Transport request listings: publish, read, cancel.

Requests are never deleted.  Cancelling is only possible while the
request is still searching; its pending proposals are withdrawn and
their travelers told.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenActionError, NotFoundError, RejectedError
from app.models.proposal import Proposal, ProposalStatus
from app.models.transport_request import RequestStatus, TransportRequest
from app.models.user import User
from app.schemas.transport_request import RequestCreate
from app.services.events import RequestCancelled
from app.services.notification_service import NotificationService
from app.services.visibility import is_request_visible_for

logger = logging.getLogger(__name__)


class RequestService:

    def __init__(self, db: AsyncSession, notifications: NotificationService | None = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    async def create(self, payload: RequestCreate, owner: User) -> TransportRequest:
        request = TransportRequest(owner_id=owner.id, **payload.model_dump())
        request.owner = owner
        self.db.add(request)
        await self.db.commit()
        logger.info(
            "Request %s published by %s: %s -> %s, %skg",
            request.id, owner.id,
            request.departure_city, request.arrival_city, request.estimated_weight,
        )

        await self.notifications.notify_matching_itineraries(request)
        return request

    async def get_visible(self, request_id: uuid.UUID, viewer: User | None) -> TransportRequest:
        """Hidden requests are reported as missing."""
        request = await self.db.get(TransportRequest, request_id)
        if request is None or not is_request_visible_for(request, viewer):
            raise NotFoundError("Request not found")
        return request

    async def get_owned(self, request_id: uuid.UUID, owner: User) -> TransportRequest:
        request = await self.db.get(TransportRequest, request_id)
        if request is None:
            raise NotFoundError("Request not found")
        if request.owner_id != owner.id:
            raise ForbiddenActionError("You are not the owner of this request")
        return request

    async def list_mine(self, owner: User) -> list[TransportRequest]:
        result = await self.db.execute(
            select(TransportRequest)
            .where(TransportRequest.owner_id == owner.id)
            .order_by(TransportRequest.created_at.desc())
        )
        return list(result.scalars().all())

    async def cancel(self, request_id: uuid.UUID, owner: User) -> TransportRequest:
        request = await self.db.get(TransportRequest, request_id, with_for_update=True)
        if request is None:
            raise NotFoundError("Request not found")
        if request.owner_id != owner.id:
            raise ForbiddenActionError("You are not the owner of this request")
        if request.status != RequestStatus.SEARCHING:
            raise RejectedError("Only a searching request can be cancelled")

        request.transition_to(RequestStatus.CANCELLED)

        result = await self.db.execute(
            select(Proposal)
            .where(
                Proposal.request_id == request.id,
                Proposal.status == ProposalStatus.PENDING,
            )
            .with_for_update()
        )
        pending = list(result.scalars().all())
        for proposal in pending:
            proposal.transition_to(ProposalStatus.CANCELLED)

        await self.db.commit()
        logger.info("Request %s cancelled, %d pending proposals withdrawn", request.id, len(pending))

        await self.notifications.dispatch(RequestCancelled(request, p) for p in pending)
        return request
