"""
Proposal model: a price offer linking one itinerary to one request.

The client (request owner) creates it; only the traveler (itinerary
owner) can move it out of PENDING.  Every status other than PENDING is
terminal, and proposals are never deleted except by cascade from their
itinerary or request.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Enum as SAEnum,
    event,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, enum_values


class ProposalStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


VALID_TRANSITIONS: dict[ProposalStatus, set[ProposalStatus]] = {
    ProposalStatus.PENDING: {
        ProposalStatus.ACCEPTED,
        ProposalStatus.REJECTED,
        ProposalStatus.CANCELLED,
    },
    ProposalStatus.ACCEPTED: set(),
    ProposalStatus.REJECTED: set(),
    ProposalStatus.CANCELLED: set(),
}


class Proposal(Base):
    __tablename__ = "proposals"
    __table_args__ = (
        UniqueConstraint("itinerary_id", "request_id", name="uq_proposals_itinerary_request"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )

    itinerary_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("itineraries.id", ondelete="CASCADE"),
        index=True, nullable=False,
    )
    request_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("transport_requests.id", ondelete="CASCADE"),
        index=True, nullable=False,
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False,
    )
    traveler_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True, nullable=False,
    )

    # Terms; currency is always the request's currency
    price_per_kilo: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    commission: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    message: Mapped[str | None] = mapped_column(Text)

    status: Mapped[ProposalStatus] = mapped_column(
        SAEnum(ProposalStatus, name="proposalstatus", values_callable=enum_values),
        default=ProposalStatus.PENDING,
        index=True,
    )
    reject_message: Mapped[str | None] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    itinerary = relationship("Itinerary", back_populates="proposals", lazy="selectin")
    request = relationship("TransportRequest", back_populates="proposals", lazy="selectin")
    client = relationship("User", foreign_keys=[client_id], lazy="selectin")
    traveler = relationship("User", foreign_keys=[traveler_id], lazy="selectin")

    @staticmethod
    def is_valid_transition(from_status: ProposalStatus, to_status: ProposalStatus) -> bool:
        return to_status in VALID_TRANSITIONS.get(from_status, set())

    def transition_to(self, new_status: ProposalStatus) -> None:
        """
        Transition to *new_status* if the move is valid.

        Raises ValueError if the transition is not allowed.
        Stamps ``responded_at`` on every move out of PENDING.
        """
        if not self.is_valid_transition(self.status, new_status):
            raise ValueError(
                f"Invalid transition: {self.status.value} -> {new_status.value}"
            )
        self.status = new_status
        self.responded_at = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        return (
            f"<Proposal {self.id} "
            f"{self.price_per_kilo}/kg {self.currency} "
            f"status={self.status.value if self.status else 'N/A'}>"
        )


@event.listens_for(Proposal, "init")
def _set_proposal_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    if "status" not in kwargs:
        target.status = ProposalStatus.PENDING
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)
    if "updated_at" not in kwargs:
        target.updated_at = datetime.now(timezone.utc)
