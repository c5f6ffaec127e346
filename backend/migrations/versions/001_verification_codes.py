"""Create verification_codes table.

Revision ID: 001_verification_codes
Revises:
Create Date: 2026-10-19

One row per issued code. Lookups filter on (receiver, purpose, user_id) and
take the latest row, so (receiver, purpose) is indexed.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_verification_codes"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create verification_codes with its index and check constraints."""
    op.create_table(
        "verification_codes",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("receiver", sa.String(100), nullable=False),
        sa.Column("purpose", sa.String(100), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("code", sa.String(20), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "attempts",
            sa.Integer(),
            server_default=sa.text("0"),
            nullable=False,
        ),
        sa.Column(
            "is_verified",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "is_revoked",
            sa.Boolean(),
            server_default=sa.text("false"),
            nullable=False,
        ),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_verification_codes"),
        sa.CheckConstraint("attempts >= 0", name="ck_verification_codes_attempts"),
        sa.CheckConstraint(
            "user_id >= 0 OR user_id IS NULL",
            name="ck_verification_codes_user_id",
        ),
        sa.CheckConstraint(
            "NOT (is_verified AND is_revoked)",
            name="ck_verification_codes_single_terminal",
        ),
    )
    op.create_index(
        "idx_verification_codes_receiver_purpose",
        "verification_codes",
        ["receiver", "purpose"],
    )


def downgrade() -> None:
    """Drop verification_codes."""
    op.drop_index(
        "idx_verification_codes_receiver_purpose",
        table_name="verification_codes",
    )
    op.drop_table("verification_codes")
