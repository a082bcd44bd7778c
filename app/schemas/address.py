"""
Pydantic schemas for the user's address and its modification cooldown.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class AddressWrite(BaseModel):
    """
    Address payload for both creation and update.

    Either ``district`` or ``address_line1`` + ``postal_code`` is required.
    """
    country: str = Field(..., min_length=1, max_length=100, examples=["Cameroun"])
    city: str = Field(..., min_length=1, max_length=100, examples=["Douala"])
    district: str | None = Field(None, max_length=100, examples=["Akwa"])
    address_line1: str | None = Field(None, max_length=255)
    address_line2: str | None = Field(None, max_length=255)
    postal_code: str | None = Field(None, max_length=20)

    @model_validator(mode="after")
    def require_one_format(self):
        has_district = bool(self.district)
        has_postal = bool(self.address_line1) and bool(self.postal_code)
        if not has_district and not has_postal:
            raise ValueError(
                "Provide either a district, or a postal address (line 1 and postal code)"
            )
        return self


class AddressRead(BaseModel):
    id: UUID
    country: str
    city: str
    district: str | None
    address_line1: str | None
    address_line2: str | None
    postal_code: str | None
    address_type: str | None
    created_at: datetime
    last_modified_at: datetime | None

    model_config = {"from_attributes": True}


class ModificationInfo(BaseModel):
    can_modify: bool
    has_address: bool
    last_modified_at: datetime | None = None
    next_modification_date: datetime | None = None
    days_remaining: int = 0
    message: str
