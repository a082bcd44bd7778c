"""
Pydantic schemas for itineraries.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models.itinerary import ItineraryStatus
from app.schemas.user import UserSummary


class ItineraryCreate(BaseModel):
    """Schema for publishing a trip with spare baggage capacity."""
    departure_city: str = Field(..., min_length=1, max_length=255, examples=["Paris"])
    arrival_city: str = Field(..., min_length=1, max_length=255, examples=["Douala"])
    departure_date: date
    arrival_date: date
    available_weight: Decimal = Field(..., gt=0, max_digits=7, decimal_places=2, examples=[23])
    price_per_kilo: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    commission: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    currency: str = Field("EUR", pattern=r"^[A-Z]{3}$")
    description: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_dates(self):
        if self.arrival_date < self.departure_date:
            raise ValueError("arrival_date must not be before departure_date")
        return self


class ItineraryRead(BaseModel):
    id: UUID
    owner: UserSummary
    departure_city: str
    arrival_city: str
    departure_date: date
    arrival_date: date
    available_weight: Decimal
    price_per_kilo: Decimal | None
    commission: Decimal | None
    currency: str
    description: str | None
    status: ItineraryStatus
    created_at: datetime

    model_config = {"from_attributes": True}
