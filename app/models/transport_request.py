"""
TransportRequest model: a client's ask to have baggage carried.

Requests are never hard-deleted: cancelling one sets its status to
CANCELLED, and the daily expiry job moves stale ones to EXPIRED.
"""

import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    Enum as SAEnum,
    event,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, enum_values


class RequestStatus(str, enum.Enum):
    SEARCHING = "searching"
    TRAVELER_FOUND = "traveler_found"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


VALID_TRANSITIONS: dict[RequestStatus, set[RequestStatus]] = {
    RequestStatus.SEARCHING: {
        RequestStatus.TRAVELER_FOUND,
        RequestStatus.CANCELLED,
        RequestStatus.EXPIRED,
    },
    RequestStatus.TRAVELER_FOUND: set(),
    RequestStatus.CANCELLED: set(),
    RequestStatus.EXPIRED: set(),
}


class TransportRequest(Base):
    __tablename__ = "transport_requests"
    __table_args__ = (
        CheckConstraint("estimated_weight > 0", name="ck_requests_weight_positive"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        index=True, nullable=False,
    )

    departure_city: Mapped[str] = mapped_column(String(255), nullable=False)
    arrival_city: Mapped[str] = mapped_column(String(255), nullable=False)
    deadline: Mapped[date | None] = mapped_column(Date)

    estimated_weight: Mapped[Decimal] = mapped_column(
        Numeric(precision=7, scale=2), nullable=False,
    )
    price_per_kilo: Mapped[Decimal | None] = mapped_column(Numeric(precision=10, scale=2))
    commission: Mapped[Decimal | None] = mapped_column(Numeric(precision=10, scale=2))
    currency: Mapped[str] = mapped_column(String(3), default="EUR")

    description: Mapped[str | None] = mapped_column(Text)

    status: Mapped[RequestStatus] = mapped_column(
        SAEnum(RequestStatus, name="requeststatus", values_callable=enum_values),
        default=RequestStatus.SEARCHING,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    owner = relationship("User", lazy="selectin")
    proposals = relationship(
        "Proposal",
        back_populates="request",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @staticmethod
    def is_valid_transition(from_status: RequestStatus, to_status: RequestStatus) -> bool:
        return to_status in VALID_TRANSITIONS.get(from_status, set())

    def transition_to(self, new_status: RequestStatus) -> None:
        """Move to *new_status*; raises ValueError on an illegal transition."""
        if not self.is_valid_transition(self.status, new_status):
            raise ValueError(
                f"Invalid transition: {self.status.value} -> {new_status.value}"
            )
        self.status = new_status

    def __repr__(self) -> str:
        return (
            f"<TransportRequest {self.departure_city}->{self.arrival_city} "
            f"{self.estimated_weight}kg "
            f"status={self.status.value if self.status else 'N/A'}>"
        )


@event.listens_for(TransportRequest, "init")
def _set_request_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    if "status" not in kwargs:
        target.status = RequestStatus.SEARCHING
    if "currency" not in kwargs:
        target.currency = "EUR"
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)
    if "updated_at" not in kwargs:
        target.updated_at = datetime.now(timezone.utc)
