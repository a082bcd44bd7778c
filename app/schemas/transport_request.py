"""
Pydantic schemas for transport requests.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.transport_request import RequestStatus
from app.schemas.user import UserSummary


class RequestCreate(BaseModel):
    """Schema for asking a traveler to carry baggage."""
    departure_city: str = Field(..., min_length=1, max_length=255, examples=["Paris"])
    arrival_city: str = Field(..., min_length=1, max_length=255, examples=["Dakar"])
    deadline: date | None = None
    estimated_weight: Decimal = Field(..., gt=0, max_digits=7, decimal_places=2, examples=[4])
    price_per_kilo: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    commission: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    currency: str = Field("EUR", pattern=r"^[A-Z]{3}$")
    description: str | None = Field(None, max_length=2000)


class RequestRead(BaseModel):
    id: UUID
    owner: UserSummary
    departure_city: str
    arrival_city: str
    deadline: date | None
    estimated_weight: Decimal
    price_per_kilo: Decimal | None
    commission: Decimal | None
    currency: str
    description: str | None
    status: RequestStatus
    created_at: datetime

    model_config = {"from_attributes": True}
