"""
Itinerary model: a traveler's announced trip with spare baggage capacity.

``available_weight`` is the capacity still on offer: every accepted
proposal consumes the request's estimated weight from it, and the
itinerary becomes COMPLETE once it reaches zero.
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

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ItineraryStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETE = "complete"
    FINISHED = "finished"
    CANCELLED = "cancelled"


VALID_TRANSITIONS: dict[ItineraryStatus, set[ItineraryStatus]] = {
    ItineraryStatus.ACTIVE: {
        ItineraryStatus.COMPLETE,
        ItineraryStatus.FINISHED,
        ItineraryStatus.CANCELLED,
    },
    ItineraryStatus.COMPLETE: {
        ItineraryStatus.FINISHED,
        ItineraryStatus.CANCELLED,
    },
    ItineraryStatus.FINISHED: set(),
    ItineraryStatus.CANCELLED: set(),
}


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class Itinerary(Base):
    __tablename__ = "itineraries"
    __table_args__ = (
        CheckConstraint("available_weight >= 0", name="ck_itineraries_weight_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        index=True, nullable=False,
    )

    # Route
    departure_city: Mapped[str] = mapped_column(String(255), nullable=False)
    arrival_city: Mapped[str] = mapped_column(String(255), nullable=False)
    departure_date: Mapped[date] = mapped_column(Date, nullable=False)
    arrival_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Capacity & pricing
    available_weight: Mapped[Decimal] = mapped_column(
        Numeric(precision=7, scale=2), nullable=False,
    )
    price_per_kilo: Mapped[Decimal | None] = mapped_column(Numeric(precision=10, scale=2))
    commission: Mapped[Decimal | None] = mapped_column(Numeric(precision=10, scale=2))
    currency: Mapped[str] = mapped_column(String(3), default="EUR")

    description: Mapped[str | None] = mapped_column(Text)

    status: Mapped[ItineraryStatus] = mapped_column(
        SAEnum(ItineraryStatus, name="itinerarystatus", values_callable=enum_values),
        default=ItineraryStatus.ACTIVE,
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
        back_populates="itinerary",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    @staticmethod
    def is_valid_transition(from_status: ItineraryStatus, to_status: ItineraryStatus) -> bool:
        return to_status in VALID_TRANSITIONS.get(from_status, set())

    def transition_to(self, new_status: ItineraryStatus) -> None:
        """Move to *new_status*; raises ValueError on an illegal transition."""
        if not self.is_valid_transition(self.status, new_status):
            raise ValueError(
                f"Invalid transition: {self.status.value} -> {new_status.value}"
            )
        self.status = new_status

    # ------------------------------------------------------------------
    # Capacity
    # ------------------------------------------------------------------

    def consume_capacity(self, weight: Decimal) -> Decimal:
        """
        Deduct *weight* from the remaining capacity, never going below zero.

        Marks an ACTIVE itinerary COMPLETE when nothing is left.
        Returns the new remaining capacity.
        """
        remaining = max(Decimal("0"), Decimal(self.available_weight) - Decimal(weight))
        self.available_weight = remaining
        if remaining == 0 and self.status == ItineraryStatus.ACTIVE:
            self.transition_to(ItineraryStatus.COMPLETE)
        return remaining

    def __repr__(self) -> str:
        return (
            f"<Itinerary {self.departure_city}->{self.arrival_city} "
            f"{self.departure_date} "
            f"status={self.status.value if self.status else 'N/A'}>"
        )


@event.listens_for(Itinerary, "init")
def _set_itinerary_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    if "status" not in kwargs:
        target.status = ItineraryStatus.ACTIVE
    if "currency" not in kwargs:
        target.currency = "EUR"
    if "created_at" not in kwargs:
        target.created_at = datetime.now(timezone.utc)
    if "updated_at" not in kwargs:
        target.updated_at = datetime.now(timezone.utc)
