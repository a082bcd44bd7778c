"""
Transport request endpoints: publish, read, cancel.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_optional_user
from app.database import get_db
from app.models.user import User
from app.schemas.transport_request import RequestCreate, RequestRead
from app.services.request_service import RequestService

router = APIRouter()


@router.post("/", response_model=RequestRead, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: RequestCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Publish a request; owners of matching itineraries are notified."""
    request = await RequestService(db).create(payload, user)
    return RequestRead.model_validate(request)


@router.get("/me", response_model=list[RequestRead])
async def list_my_requests(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    requests = await RequestService(db).list_mine(user)
    return [RequestRead.model_validate(r) for r in requests]


@router.get("/{request_id}", response_model=RequestRead)
async def get_request(
    request_id: UUID,
    viewer: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    request = await RequestService(db).get_visible(request_id, viewer)
    return RequestRead.model_validate(request)


@router.post("/{request_id}/cancel", response_model=RequestRead)
async def cancel_request(
    request_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a searching request; travelers with pending proposals are notified."""
    request = await RequestService(db).cancel(request_id, user)
    return RequestRead.model_validate(request)
