"""Certification state and validation audit log

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # One row per coach; version is the compare-and-swap token
    op.create_table(
        "coach_certifications",
        sa.Column("coach_id", sa.String(64), primary_key=True),
        sa.Column("current_level", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("pending_level", sa.Integer(), nullable=True),
        sa.Column("unlimited_access_granted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("commission_tier", sa.String(32), nullable=False, server_default="none"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("current_level >= 0 AND current_level <= 5", name="ck_coach_cert_current_level"),
        sa.CheckConstraint(
            "pending_level IS NULL OR pending_level = current_level + 1",
            name="ck_coach_cert_pending_next",
        ),
    )

    op.create_table(
        "level_completions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("coach_id", sa.String(64), sa.ForeignKey("coach_certifications.coach_id"), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("coach_id", "level", name="uq_level_completions_coach_level"),
    )
    op.create_index("ix_level_completions_coach_id", "level_completions", ["coach_id"])

    # Append-only; coach_id intentionally has no foreign key
    op.create_table(
        "validation_audit_entries",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("coach_id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("requested_level", sa.Integer(), nullable=False),
        sa.Column("decision", sa.String(40), nullable=False),
        sa.Column("reason_code", sa.String(50), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("prior_level", sa.Integer(), nullable=False),
        sa.Column("pending_level", sa.Integer(), nullable=True),
        sa.Column("request_id", sa.String(64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_validation_audit_entries_coach_id", "validation_audit_entries", ["coach_id"])
    op.create_index("ix_validation_audit_entries_decision", "validation_audit_entries", ["decision"])
    op.create_index("ix_validation_audit_entries_created_at", "validation_audit_entries", ["created_at"])
    op.create_index("ix_validation_audit_coach_time", "validation_audit_entries", ["coach_id", "created_at"])
    op.create_index("ix_validation_audit_decision_time", "validation_audit_entries", ["decision", "created_at"])


def downgrade() -> None:
    op.drop_table("validation_audit_entries")
    op.drop_table("level_completions")
    op.drop_table("coach_certifications")
