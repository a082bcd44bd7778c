"""
Candidate queries for matching itineraries and transport requests.

Both directions share the same shape:

1. fetch up to ``CANDIDATE_LIMIT`` open listings whose cities loosely
   match (``ILIKE %city%``), whose owner is search-visible (no settings
   row, or ``show_in_search_results``) and who is not the caller;
2. drop listings the viewer may not see;
3. score and keep the best ``limit`` (stable, so fetch order breaks ties).

The ``*_query`` builders are also used by the notification service to
find the owners to alert when a new listing is published.
"""

from __future__ import annotations

import logging

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.matching_engine.config import CANDIDATE_LIMIT, DEFAULT_LIMIT
from app.matching_engine.scoring import rank_matches, rank_requests
from app.models.itinerary import Itinerary, ItineraryStatus
from app.models.transport_request import RequestStatus, TransportRequest
from app.models.user import User, UserSettings
from app.services.visibility import filter_visible_itineraries, filter_visible_requests

logger = logging.getLogger(__name__)


def like_pattern(city: str) -> str:
    escaped = city.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def owner_search_visible():
    return or_(
        UserSettings.id.is_(None),
        UserSettings.show_in_search_results.is_(True),
    )


# ---------------------------------------------------------------------------
# Query builders
# ---------------------------------------------------------------------------


def matching_itineraries_query(
    request: TransportRequest, limit: int = CANDIDATE_LIMIT,
) -> Select:
    """Active itineraries for *request*, soonest departure first."""
    return (
        select(Itinerary)
        .join(User, Itinerary.owner_id == User.id)
        .outerjoin(UserSettings, UserSettings.user_id == User.id)
        .where(
            Itinerary.status == ItineraryStatus.ACTIVE,
            Itinerary.departure_city.ilike(like_pattern(request.departure_city), escape="\\"),
            Itinerary.arrival_city.ilike(like_pattern(request.arrival_city), escape="\\"),
            Itinerary.owner_id != request.owner_id,
            owner_search_visible(),
        )
        .order_by(Itinerary.departure_date.asc(), Itinerary.created_at.asc())
        .limit(limit)
    )


def matching_requests_query(
    itinerary: Itinerary, limit: int = CANDIDATE_LIMIT,
) -> Select:
    """
    Searching requests for *itinerary*, newest first.

    A request qualifies when it has no deadline or its deadline is on
    or after the itinerary's departure date.
    """
    return (
        select(TransportRequest)
        .join(User, TransportRequest.owner_id == User.id)
        .outerjoin(UserSettings, UserSettings.user_id == User.id)
        .where(
            TransportRequest.status == RequestStatus.SEARCHING,
            TransportRequest.departure_city.ilike(like_pattern(itinerary.departure_city), escape="\\"),
            TransportRequest.arrival_city.ilike(like_pattern(itinerary.arrival_city), escape="\\"),
            or_(
                TransportRequest.deadline.is_(None),
                TransportRequest.deadline >= itinerary.departure_date,
            ),
            TransportRequest.owner_id != itinerary.owner_id,
            owner_search_visible(),
        )
        .order_by(TransportRequest.created_at.desc())
        .limit(limit)
    )


# ---------------------------------------------------------------------------
# Ranked matches
# ---------------------------------------------------------------------------


async def find_best_matches(
    db: AsyncSession,
    request: TransportRequest,
    viewer: User | None,
    limit: int = DEFAULT_LIMIT,
) -> list[tuple[Itinerary, int]]:
    """Top *limit* itineraries for *request* as ``(itinerary, score)``."""
    result = await db.execute(matching_itineraries_query(request))
    candidates = filter_visible_itineraries(result.scalars().all(), viewer)
    matches = rank_matches(candidates, request, limit)
    logger.info(
        "Matching request %s: %d candidates, %d returned",
        request.id, len(candidates), len(matches),
    )
    return matches


async def find_matching_requests(
    db: AsyncSession,
    itinerary: Itinerary,
    viewer: User | None,
    limit: int = DEFAULT_LIMIT,
) -> list[tuple[TransportRequest, int]]:
    """Top *limit* requests for *itinerary* as ``(request, score)``."""
    result = await db.execute(matching_requests_query(itinerary))
    candidates = filter_visible_requests(result.scalars().all(), viewer)
    matches = rank_requests(candidates, itinerary, limit)
    logger.info(
        "Matching itinerary %s: %d candidates, %d returned",
        itinerary.id, len(candidates), len(matches),
    )
    return matches
