"""
Itinerary endpoints: publish, browse, read, cancel.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user
from app.database import get_db
from app.models.user import User
from app.schemas.itinerary import ItineraryCreate, ItineraryRead
from app.services.itinerary_service import ItineraryService

router = APIRouter()


@router.post("/", response_model=ItineraryRead, status_code=status.HTTP_201_CREATED)
async def create_itinerary(
    payload: ItineraryCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Publish a trip; owners of matching requests are notified."""
    itinerary = await ItineraryService(db).create(payload, user)
    return ItineraryRead.model_validate(itinerary)


@router.get("/", response_model=list[ItineraryRead])
async def list_itineraries(
    departure_city: str | None = Query(None, max_length=255),
    arrival_city: str | None = Query(None, max_length=255),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Active itineraries, soonest departure first, loosely filtered by city."""
    itineraries = await ItineraryService(db).list_active(
        viewer, departure_city, arrival_city, limit, offset,
    )
    return [ItineraryRead.model_validate(i) for i in itineraries]


@router.get("/me", response_model=list[ItineraryRead])
async def list_my_itineraries(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    itineraries = await ItineraryService(db).list_mine(user)
    return [ItineraryRead.model_validate(i) for i in itineraries]


@router.get("/{itinerary_id}", response_model=ItineraryRead)
async def get_itinerary(
    itinerary_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    itinerary = await ItineraryService(db).get_visible(itinerary_id, viewer)
    return ItineraryRead.model_validate(itinerary)


@router.post("/{itinerary_id}/cancel", response_model=ItineraryRead)
async def cancel_itinerary(
    itinerary_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel the caller's itinerary.

    Pending proposals are cancelled and their clients notified;
    accepted proposals are kept.
    """
    itinerary = await ItineraryService(db).cancel(itinerary_id, user)
    return ItineraryRead.model_validate(itinerary)
