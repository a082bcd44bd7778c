"""
Pydantic schemas for proposals and the traveler's response.
"""

import enum
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.proposal import ProposalStatus


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


class ProposalCreate(BaseModel):
    """Offer made by a client, with their own request, on an itinerary."""
    request_id: UUID
    price_per_kilo: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, examples=[8])
    commission: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, examples=[5])
    message: str | None = Field(None, max_length=1000)


# ---------------------------------------------------------------------------
# Respond
# ---------------------------------------------------------------------------


class ProposalAction(str, enum.Enum):
    ACCEPT = "accept"
    REJECT = "reject"


# Values sent by older clients
LEGACY_ACTIONS = {
    "accepter": ProposalAction.ACCEPT,
    "refuser": ProposalAction.REJECT,
}


class ProposalRespond(BaseModel):
    """Traveler's decision.  Any action other than accept / reject is a 422."""
    action: ProposalAction
    reject_message: str | None = Field(None, max_length=1000)

    @field_validator("action", mode="before")
    @classmethod
    def map_legacy_action(cls, v):
        if isinstance(v, str):
            v = v.strip().lower()
            return LEGACY_ACTIONS.get(v, v)
        return v

    def to_decision(self):
        from app.services.proposal_service import Accept, Reject

        if self.action == ProposalAction.ACCEPT:
            return Accept()
        return Reject(self.reject_message)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ConvertedAmounts(BaseModel):
    """Proposal amounts shown in the viewer's currency."""
    currency: str
    price_per_kilo: Decimal
    price_per_kilo_formatted: str
    commission: Decimal
    commission_formatted: str


class ProposalRead(BaseModel):
    id: UUID
    itinerary_id: UUID
    request_id: UUID
    client_id: UUID
    traveler_id: UUID
    price_per_kilo: Decimal
    commission: Decimal
    currency: str
    message: str | None
    status: ProposalStatus
    reject_message: str | None
    created_at: datetime
    responded_at: datetime | None
    viewer_currency: str
    converted: ConvertedAmounts | None = None


class PendingCount(BaseModel):
    pending: int
