"""
Proposal endpoints.

Create flow (client):
  1. Itinerary and request must exist
  2. Request belongs to the caller, itinerary does not
  3. Itinerary active, request searching, no earlier proposal, capacity left
  4. Proposal stored PENDING in the request's currency, traveler notified

Respond flow (traveler): accept or reject a pending proposal.  Accepting
consumes the request's weight from the itinerary, marks the request
fulfilled and cancels the request's other pending proposals.

Every proposal is returned with a ``converted`` block when the caller's
preferred currency differs from the proposal's.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.proposal import Proposal
from app.models.user import User
from app.redis_client import get_redis
from app.schemas.proposal import PendingCount, ProposalCreate, ProposalRead, ProposalRespond
from app.services.currency_service import CurrencyService
from app.services.proposal_service import ProposalService, summarize

router = APIRouter()


async def _build_response(proposal: Proposal, viewer: User, redis) -> ProposalRead:
    summary = await summarize(proposal, viewer, CurrencyService(redis))
    return ProposalRead(**summary)


async def _build_list(proposals: list[Proposal], viewer: User, redis) -> list[ProposalRead]:
    currencies = CurrencyService(redis)
    return [ProposalRead(**await summarize(p, viewer, currencies)) for p in proposals]


# ---------------------------------------------------------------------------
# Own proposals (declared before /{proposal_id})
# ---------------------------------------------------------------------------


@router.get("/me/sent", response_model=list[ProposalRead])
async def list_sent(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Proposals the caller made as a client."""
    proposals = await ProposalService(db).list_sent(user)
    return await _build_list(proposals, user, redis)


@router.get("/me/received", response_model=list[ProposalRead])
async def list_received(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Proposals the caller received as a traveler."""
    proposals = await ProposalService(db).list_received(user)
    return await _build_list(proposals, user, redis)


@router.get("/me/pending-count", response_model=PendingCount)
async def pending_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return PendingCount(pending=await ProposalService(db).count_pending(user))


# ---------------------------------------------------------------------------
# Per itinerary
# ---------------------------------------------------------------------------


@router.post(
    "/itineraries/{itinerary_id}",
    response_model=ProposalRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_proposal(
    itinerary_id: UUID,
    payload: ProposalCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    proposal = await ProposalService(db).create(itinerary_id, payload, user)
    return await _build_response(proposal, user, redis)


@router.get("/itineraries/{itinerary_id}", response_model=list[ProposalRead])
async def list_for_itinerary(
    itinerary_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """All proposals on the caller's itinerary."""
    proposals = await ProposalService(db).list_for_itinerary(itinerary_id, user)
    return await _build_list(proposals, user, redis)


@router.get("/itineraries/{itinerary_id}/accepted", response_model=list[ProposalRead])
async def list_accepted_for_itinerary(
    itinerary_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    proposals = await ProposalService(db).list_for_itinerary(
        itinerary_id, user, accepted_only=True,
    )
    return await _build_list(proposals, user, redis)


# ---------------------------------------------------------------------------
# Single proposal
# ---------------------------------------------------------------------------


@router.get("/{proposal_id}", response_model=ProposalRead)
async def get_proposal(
    proposal_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Visible to the proposal's client and traveler only."""
    proposal = await ProposalService(db).get_for_participant(proposal_id, user)
    return await _build_response(proposal, user, redis)


@router.patch("/{proposal_id}/respond", response_model=ProposalRead)
async def respond_to_proposal(
    proposal_id: UUID,
    payload: ProposalRespond,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Accept or reject a pending proposal as its traveler."""
    proposal = await ProposalService(db).respond(proposal_id, payload.to_decision(), user)
    return await _build_response(proposal, user, redis)
