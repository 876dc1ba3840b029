"""Create ticket redemption tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

Creates the following tables:
- tickets: Member tickets with bounded uses, expiry and cooldown stamp
- redemption_events: Append-only redemption ledger
- audit_logs: Audit trail of ticket grants and redemptions
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ========================================
    # 1. tickets table
    # ========================================
    op.create_table(
        "tickets",
        # Primary key
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        # Ownership
        sa.Column("member_id", sa.BigInteger(), nullable=False),
        sa.Column("ticket_type", sa.String(100), nullable=False, server_default="standard"),
        # Uses
        sa.Column("total_uses", sa.Integer(), nullable=False),
        sa.Column("remaining_uses", sa.Integer(), nullable=False),
        # Time info
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_redeemed_at", sa.DateTime(timezone=True), nullable=True),
        # Timestamps
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        # Constraints
        sa.PrimaryKeyConstraint("id", name="pk_tickets"),
        sa.CheckConstraint(
            "remaining_uses >= 0 AND remaining_uses <= total_uses",
            name="ck_tickets_remaining_uses",
        ),
        sa.CheckConstraint("total_uses > 0", name="ck_tickets_total_uses"),
    )
    op.create_index("ix_tickets_member_id", "tickets", ["member_id"])
    op.create_index("ix_tickets_expires_at", "tickets", ["expires_at"])
    op.create_index("ix_tickets_member_expires", "tickets", ["member_id", "expires_at"])

    # ========================================
    # 2. redemption_events table
    # ========================================
    op.create_table(
        "redemption_events",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("ticket_id", sa.BigInteger(), nullable=False),
        sa.Column("member_id", sa.BigInteger(), nullable=False),
        sa.Column("staff_id", sa.BigInteger(), nullable=True),
        sa.Column("store_id", sa.BigInteger(), nullable=True),
        sa.Column("redeemed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_redemption_events"),
        sa.ForeignKeyConstraint(
            ["ticket_id"], ["tickets.id"],
            name="fk_redemption_events_ticket_id_tickets",
        ),
    )
    op.create_index("ix_redemption_events_ticket_id", "redemption_events", ["ticket_id"])
    op.create_index(
        "ix_redemption_events_member_redeemed", "redemption_events", ["member_id", "redeemed_at"]
    )
    op.create_index(
        "ix_redemption_events_store_redeemed", "redemption_events", ["store_id", "redeemed_at"]
    )

    # ========================================
    # 3. audit_logs table
    # ========================================
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        # Operation info
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("resource_id", sa.String(100), nullable=True),
        # Actor info
        sa.Column("actor_type", sa.String(20), nullable=False),
        sa.Column("actor_id", sa.String(100), nullable=True),
        sa.Column("store_id", sa.BigInteger(), nullable=True),
        # Change content
        sa.Column("old_value", JSONB, nullable=True),
        sa.Column("new_value", JSONB, nullable=True),
        # Metadata
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_audit_logs"),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_resource_type", "audit_logs", ["resource_type"])
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("redemption_events")
    op.drop_table("tickets")
