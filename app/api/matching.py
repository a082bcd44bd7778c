"""
Matching endpoints.

Ranked candidates for one of the caller's listings, best score first.
Ties keep the query order: soonest departure for itineraries, newest
first for requests.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.config import settings
from app.core.exceptions import ForbiddenActionError, NotFoundError
from app.database import get_db
from app.matching_engine.matcher import find_best_matches, find_matching_requests
from app.models.itinerary import Itinerary
from app.models.transport_request import TransportRequest
from app.models.user import User
from app.schemas.itinerary import ItineraryRead
from app.schemas.matching import ItineraryMatch, RequestMatch
from app.schemas.transport_request import RequestRead

router = APIRouter()


@router.get("/requests/{request_id}/itineraries", response_model=list[ItineraryMatch])
async def best_itineraries_for_request(
    request_id: UUID,
    limit: int = Query(settings.MATCHING_DEFAULT_LIMIT, ge=1, le=20),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Best itineraries for the caller's request."""
    request = await db.get(TransportRequest, request_id)
    if request is None:
        raise NotFoundError("Request not found")
    if request.owner_id != user.id:
        raise ForbiddenActionError("You are not the owner of this request")

    matches = await find_best_matches(db, request, user, limit)
    return [
        ItineraryMatch(itinerary=ItineraryRead.model_validate(itinerary), score=score)
        for itinerary, score in matches
    ]


@router.get("/itineraries/{itinerary_id}/requests", response_model=list[RequestMatch])
async def best_requests_for_itinerary(
    itinerary_id: UUID,
    limit: int = Query(settings.MATCHING_DEFAULT_LIMIT, ge=1, le=20),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Best searching requests for the caller's itinerary."""
    itinerary = await db.get(Itinerary, itinerary_id)
    if itinerary is None:
        raise NotFoundError("Itinerary not found")
    if itinerary.owner_id != user.id:
        raise ForbiddenActionError("You are not the owner of this itinerary")

    matches = await find_matching_requests(db, itinerary, user, limit)
    return [
        RequestMatch(request=RequestRead.model_validate(request), score=score)
        for request, score in matches
    ]
