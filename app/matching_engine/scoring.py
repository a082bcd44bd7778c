"""
Match scoring between an itinerary and a transport request.

Pure functions over model attributes; no database access.  Anything
exposing ``departure_city``, ``arrival_city``, ``departure_date`` and
``available_weight`` (itinerary side) or ``departure_city``,
``arrival_city``, ``deadline`` and ``estimated_weight`` (request side)
can be scored, which keeps these functions trivially testable.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, TypeVar

from app.matching_engine.config import (
    DATE_PROXIMITY_TIERS,
    PARTIAL_CAPACITY_RATIO,
    POINTS_ARRIVAL_CITY,
    POINTS_DEPARTURE_CITY,
    POINTS_FULL_CAPACITY,
    POINTS_NO_DEADLINE,
    POINTS_PARTIAL_CAPACITY,
)

T = TypeVar("T")


def _contains(haystack: str | None, needle: str | None) -> bool:
    if not haystack or not needle:
        return False
    return needle.casefold() in haystack.casefold()


def city_points(itinerary, request) -> int:
    points = 0
    if _contains(itinerary.departure_city, request.departure_city):
        points += POINTS_DEPARTURE_CITY
    if _contains(itinerary.arrival_city, request.arrival_city):
        points += POINTS_ARRIVAL_CITY
    return points


def date_points(itinerary, request) -> int:
    if request.deadline is None:
        return POINTS_NO_DEADLINE

    days = abs((itinerary.departure_date - request.deadline).days)
    for max_days, points in DATE_PROXIMITY_TIERS:
        if days <= max_days:
            return points
    return 0


def capacity_points(itinerary, request) -> int:
    available = Decimal(itinerary.available_weight)
    needed = Decimal(request.estimated_weight)
    if available >= needed:
        return POINTS_FULL_CAPACITY
    if available >= needed * PARTIAL_CAPACITY_RATIO:
        return POINTS_PARTIAL_CAPACITY
    return 0


def score_match(itinerary, request) -> int:
    """
    Compatibility score in 0..100.

    * cities:   +25 per side when the itinerary city contains the
                request city (case-insensitive)
    * dates:    +30 / +20 / +10 for a departure within 7 / 14 / 30 days
                of the deadline, flat +15 without a deadline
    * capacity: +20 when the remaining capacity covers the weight,
                +10 when it covers at least 70% of it
    """
    return (
        city_points(itinerary, request)
        + date_points(itinerary, request)
        + capacity_points(itinerary, request)
    )


def _rank(candidates: Iterable[T], score, limit: int) -> list[tuple[T, int]]:
    # list.sort is stable: equal scores keep the input (fetch) order
    scored = [(candidate, score(candidate)) for candidate in candidates]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored[:limit]


def rank_matches(itineraries: Iterable[T], request, limit: int) -> list[tuple[T, int]]:
    """Best *limit* itineraries for *request* as ``(itinerary, score)``."""
    return _rank(itineraries, lambda itinerary: score_match(itinerary, request), limit)


def rank_requests(requests: Iterable[T], itinerary, limit: int) -> list[tuple[T, int]]:
    """Best *limit* requests for *itinerary* as ``(request, score)``."""
    return _rank(requests, lambda request: score_match(itinerary, request), limit)
