"""Create usage_account, usage_period_snapshot, and plan_change tables.

Revision ID: f1a2b3c4d5e6
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

from alembic import op

# revision identifiers, used by Alembic.
revision = "f1a2b3c4d5e6"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
        sa.Column(
            "modified_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()
        ),
    ]


def upgrade() -> None:
    """Create the usage accounting tables."""
    # 1. One account per tenant with current-period counters
    op.create_table(
        "usage_account",
        *_audit_columns(),
        sa.Column("tenant_id", sa.String(), nullable=False, unique=True),
        sa.Column("analysis", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("generation", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ocr", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("plan", sa.String(), nullable=False, server_default="free"),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("current_period_key", sa.String(length=7), nullable=False),
        sa.CheckConstraint(
            "analysis >= 0 AND generation >= 0 AND ocr >= 0",
            name="ck_usage_account_counts_non_negative",
        ),
    )
    op.create_index(
        "ix_usage_account_current_period_key", "usage_account", ["current_period_key"]
    )

    # 2. Archived periods, append-only
    op.create_table(
        "usage_period_snapshot",
        *_audit_columns(),
        sa.Column(
            "usage_account_id",
            UUID(as_uuid=True),
            sa.ForeignKey("usage_account.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("period_key", sa.String(length=7), nullable=False),
        sa.Column("analysis", sa.Integer(), nullable=False),
        sa.Column("generation", sa.Integer(), nullable=False),
        sa.Column("ocr", sa.Integer(), nullable=False),
        sa.Column("plan", sa.String(), nullable=False),
        sa.UniqueConstraint(
            "usage_account_id", "position", name="uq_usage_period_snapshot_position"
        ),
    )

    # 3. Plan change audit log, append-only
    op.create_table(
        "plan_change",
        *_audit_columns(),
        sa.Column(
            "usage_account_id",
            UUID(as_uuid=True),
            sa.ForeignKey("usage_account.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("plan", sa.String(), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(), nullable=False, server_default="plan_change"),
        sa.UniqueConstraint("usage_account_id", "position", name="uq_plan_change_position"),
    )


def downgrade() -> None:
    """Drop the usage accounting tables."""
    op.drop_table("plan_change")
    op.drop_table("usage_period_snapshot")
    op.drop_index("ix_usage_account_current_period_key", table_name="usage_account")
    op.drop_table("usage_account")
