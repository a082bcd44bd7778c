"""create proposals table

Revision ID: 003
Revises: 002
Create Date: 2026-10-06
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic
revision = "003"
down_revision = "002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    proposalstatus = sa.Enum(
        "pending", "accepted", "rejected", "cancelled",
        name="proposalstatus",
    )
    proposalstatus.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "proposals",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "itinerary_id",
            UUID(as_uuid=True),
            sa.ForeignKey("itineraries.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "request_id",
            UUID(as_uuid=True),
            sa.ForeignKey("transport_requests.id", ondelete="CASCADE"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "client_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            index=True,
            nullable=False,
        ),
        sa.Column(
            "traveler_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id"),
            index=True,
            nullable=False,
        ),
        sa.Column("price_per_kilo", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("commission", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column(
            "status",
            proposalstatus,
            server_default="pending",
            index=True,
            nullable=False,
        ),
        sa.Column("reject_message", sa.Text(), nullable=True),
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
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "itinerary_id", "request_id",
            name="uq_proposals_itinerary_request",
        ),
    )


def downgrade() -> None:
    op.drop_table("proposals")

    sa.Enum(name="proposalstatus").drop(op.get_bind(), checkfirst=True)
