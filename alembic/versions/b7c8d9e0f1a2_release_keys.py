"""release_keys: dedup keys that outlive dismissed and expired releases

Revision ID: b7c8d9e0f1a2
Revises: a1b2c3d4e5f6
Create Date: 2026-10-19 10:00:00.000000

Hey future me - releases rows get hard-deleted (dismiss, expiry sweep), so they
can't be the dedup authority on their own. Every key the scanner ever stored goes
here and stays until the sweeper prunes it by last_seen_at. The backfill copies the
keys of releases that exist right now; anything deleted before this migration is
already forgotten and may be detected once more.
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "b7c8d9e0f1a2"
down_revision = "a1b2c3d4e5f6"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "release_keys",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("source_entity_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("unique_hash", sa.String(64), nullable=False),
        sa.Column("first_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_seen_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint(
            "source_entity_id",
            "user_id",
            "type",
            "unique_hash",
            name="uq_release_keys_entity_user_type_hash",
        ),
    )
    op.create_index("ix_release_keys_last_seen_at", "release_keys", ["last_seen_at"])

    # Release ids are unique already, reuse them as key ids
    op.execute(
        """
        INSERT INTO release_keys
            (id, type, source_entity_id, user_id, unique_hash, first_seen_at, last_seen_at)
        SELECT id, type, source_entity_id, user_id, unique_hash, detected_at, detected_at
        FROM releases
        """
    )


def downgrade() -> None:
    op.drop_index("ix_release_keys_last_seen_at", table_name="release_keys")
    op.drop_table("release_keys")
