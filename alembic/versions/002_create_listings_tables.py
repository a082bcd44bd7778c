"""create itineraries and transport_requests tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-05
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    itinerarystatus = sa.Enum(
        "active", "complete", "finished", "cancelled",
        name="itinerarystatus",
    )
    itinerarystatus.create(op.get_bind(), checkfirst=True)

    requeststatus = sa.Enum(
        "searching", "traveler_found", "cancelled", "expired",
        name="requeststatus",
    )
    requeststatus.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "itineraries",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column("departure_city", sa.String(255), nullable=False),
        sa.Column("arrival_city", sa.String(255), nullable=False),
        sa.Column("departure_date", sa.Date(), nullable=False),
        sa.Column("arrival_date", sa.Date(), nullable=False),
        sa.Column("available_weight", sa.Numeric(precision=7, scale=2), nullable=False),
        sa.Column("price_per_kilo", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("commission", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("currency", sa.String(3), server_default="EUR", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            itinerarystatus,
            server_default="active",
            index=True,
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "available_weight >= 0",
            name="ck_itineraries_weight_non_negative",
        ),
    )
    op.create_index("ix_itineraries_departure_date", "itineraries", ["departure_date"])

    op.create_table(
        "transport_requests",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "owner_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column("departure_city", sa.String(255), nullable=False),
        sa.Column("arrival_city", sa.String(255), nullable=False),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("estimated_weight", sa.Numeric(precision=7, scale=2), nullable=False),
        sa.Column("price_per_kilo", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("commission", sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column("currency", sa.String(3), server_default="EUR", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "status",
            requeststatus,
            server_default="searching",
            index=True,
            nullable=False,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.CheckConstraint(
            "estimated_weight > 0",
            name="ck_requests_weight_positive",
        ),
    )


def downgrade() -> None:
    op.drop_table("transport_requests")
    op.drop_index("ix_itineraries_departure_date", table_name="itineraries")
    op.drop_table("itineraries")

    sa.Enum(name="requeststatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="itinerarystatus").drop(op.get_bind(), checkfirst=True)
