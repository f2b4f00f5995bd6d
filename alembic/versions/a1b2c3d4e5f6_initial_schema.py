"""initial schema: tracked entities, releases, notification settings, users

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-01 09:00:00.000000

Hey future me - the releases unique constraint is the dedup guarantee!
(source_entity_id, user_id, type, unique_hash) must stay unique, the scanner's
bulk INSERT ... ON CONFLICT DO NOTHING relies on it. Never drop it in a later
migration without replacing it.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a1b2c3d4e5f6"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tracked_entities",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("entity_type", sa.String(10), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("platform", sa.String(50), nullable=True),
        sa.Column("url", sa.String(512), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("spotify_id", sa.String(64), nullable=True),
        sa.Column("deezer_id", sa.String(64), nullable=True),
        sa.Column("soundcloud_url", sa.String(512), nullable=True),
        sa.Column("rawg_slug", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=True),
        sa.Column("release_date", sa.String(32), nullable=True),
        sa.Column("last_checked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_tracked_entities_user_id", "tracked_entities", ["user_id"])
    op.create_index("ix_tracked_entities_type", "tracked_entities", ["entity_type"])

    op.create_table(
        "releases",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("source_entity_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("platform_url", sa.String(512), nullable=True),
        sa.Column("unique_hash", sa.String(64), nullable=False),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "source_entity_id",
            "user_id",
            "type",
            "unique_hash",
            name="uq_releases_entity_user_type_hash",
        ),
    )
    op.create_index("ix_releases_user_id", "releases", ["user_id"])
    op.create_index("ix_releases_expires_at", "releases", ["expires_at"])

    op.create_table(
        "notification_settings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False, unique=True),
        sa.Column(
            "email_notifications_enabled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "notification_frequency",
            sa.String(20),
            nullable=False,
            server_default="immediate",
        ),
        sa.Column(
            "artist_notifications_enabled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "game_notifications_enabled",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "user_accounts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("user_accounts")
    op.drop_table("notification_settings")
    op.drop_index("ix_releases_expires_at", table_name="releases")
    op.drop_index("ix_releases_user_id", table_name="releases")
    op.drop_table("releases")
    op.drop_index("ix_tracked_entities_type", table_name="tracked_entities")
    op.drop_index("ix_tracked_entities_user_id", table_name="tracked_entities")
    op.drop_table("tracked_entities")
