"""
Pydantic schemas for ranked matching results.
"""

from pydantic import BaseModel, Field

from app.schemas.itinerary import ItineraryRead
from app.schemas.transport_request import RequestRead


class ItineraryMatch(BaseModel):
    itinerary: ItineraryRead
    score: int = Field(..., ge=0, le=100)


class RequestMatch(BaseModel):
    request: RequestRead
    score: int = Field(..., ge=0, le=100)
