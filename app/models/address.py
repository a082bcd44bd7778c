"""
Address model: a user's single postal address.

Two formats are accepted: a district (common in African cities without
street addressing) or a postal address (line 1 + postal code).  Once
set, a user may change their address at most once every six months;
the first change after creation is always allowed.
"""

import calendar
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, event
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

MODIFICATION_COOLDOWN_MONTHS = 6


def add_months(value: datetime, months: int) -> datetime:
    """Shift *value* by calendar months, clamping the day to the month's end."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


class Address(Base):
    __tablename__ = "addresses"
    __table_args__ = (
        CheckConstraint(
            "district IS NOT NULL OR (address_line1 IS NOT NULL AND postal_code IS NOT NULL)",
            name="ck_addresses_format",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )

    country: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)

    # District format
    district: Mapped[str | None] = mapped_column(String(100))

    # Postal format
    address_line1: Mapped[str | None] = mapped_column(String(255))
    address_line2: Mapped[str | None] = mapped_column(String(255))
    postal_code: Mapped[str | None] = mapped_column(String(20))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    # Last change made by the user; None until the first change
    last_modified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    user = relationship("User")

    # ------------------------------------------------------------------
    # Modification cooldown
    # ------------------------------------------------------------------

    def next_modification_date(self) -> datetime | None:
        if self.last_modified_at is None:
            return None
        return add_months(self.last_modified_at, MODIFICATION_COOLDOWN_MONTHS)

    def can_be_modified(self, now: datetime | None = None) -> bool:
        next_date = self.next_modification_date()
        if next_date is None:
            return True
        return (now or datetime.now(timezone.utc)) >= next_date

    def days_until_modification(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        if self.can_be_modified(now):
            return 0
        return (self.next_modification_date() - now).days

    def mark_as_modified(self, now: datetime | None = None) -> None:
        self.last_modified_at = now or datetime.now(timezone.utc)

    @property
    def address_type(self) -> str | None:
        if self.district is not None:
            return "district"
        if self.address_line1 is not None and self.postal_code is not None:
            return "postal"
        return None

    def __repr__(self) -> str:
        return f"<Address user={self.user_id} {self.city!r}, {self.country!r}>"


@event.listens_for(Address, "init")
def _set_address_defaults(target, args, kwargs):
    if "id" not in kwargs:
        target.id = uuid.uuid4()
    now = datetime.now(timezone.utc)
    if "created_at" not in kwargs:
        target.created_at = now
    if "updated_at" not in kwargs:
        target.updated_at = now
