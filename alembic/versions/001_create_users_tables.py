"""create users and user_settings tables

Revision ID: 001
Revises:
Create Date: 2026-10-05
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    profilevisibility = sa.Enum(
        "public", "verified_only", "private",
        name="profilevisibility",
    )
    profilevisibility.create(op.get_bind(), checkfirst=True)

    messagepermission = sa.Enum(
        "everyone", "verified_only", "no_one",
        name="messagepermission",
    )
    messagepermission.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(180), unique=True, index=True, nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email_verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("phone_verified", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("is_banned", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )

    op.create_table(
        "user_settings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        # Notifications
        sa.Column("notify_on_new_message", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("notify_on_matching_itinerary", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("notify_on_matching_request", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("notify_on_new_review", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("notify_on_favorite_update", sa.Boolean(), server_default=sa.true(), nullable=False),
        # Privacy
        sa.Column(
            "profile_visibility",
            profilevisibility,
            server_default="public",
            nullable=False,
        ),
        sa.Column(
            "message_permission",
            messagepermission,
            server_default="everyone",
            nullable=False,
        ),
        sa.Column("show_phone", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("show_email", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("show_stats", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("show_in_search_results", sa.Boolean(), server_default=sa.true(), nullable=False),
        # Preferences
        sa.Column("language", sa.String(5), server_default="fr", nullable=False),
        sa.Column("currency", sa.String(3), server_default="XAF", nullable=False),
        sa.Column("timezone", sa.String(50), server_default="Africa/Douala", nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("user_settings")
    op.drop_table("users")

    sa.Enum(name="messagepermission").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="profilevisibility").drop(op.get_bind(), checkfirst=True)
