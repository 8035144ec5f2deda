"""
Immutable validation audit log.

Every progression decision is written here in the same transaction as the
state change it authorizes. Rows are never updated or deleted.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from certgate.kernel.models.base import Base, generate_uuid, utcnow


class AuditAction(str, Enum):
    """Which validator operation produced the entry."""

    APPLY = "apply"
    COMPLETE = "complete"


class AuditDecision(str, Enum):
    """Outcome of a progression request."""

    APPROVED = "approved"
    REJECTED_SKIP = "rejected_skip"
    REJECTED_DUPLICATE = "rejected_duplicate"
    REJECTED_UNKNOWN_COACH = "rejected_unknown_coach"
    INVALID_COMPLETION_STATE = "invalid_completion_state"


class ReasonCode(str, Enum):
    """Machine-readable reason attached to every decision."""

    APPLICATION_APPROVED = "APPLICATION_APPROVED"
    LEVEL_COMPLETED = "LEVEL_COMPLETED"
    LEVEL_SKIP = "LEVEL_SKIP"
    LEVEL_ALREADY_COMPLETED = "LEVEL_ALREADY_COMPLETED"
    LEVEL_ALREADY_PENDING = "LEVEL_ALREADY_PENDING"
    UNKNOWN_COACH = "UNKNOWN_COACH"
    NO_PENDING_LEVEL = "NO_PENDING_LEVEL"
    COMPLETION_LEVEL_MISMATCH = "COMPLETION_LEVEL_MISMATCH"


class ValidationAuditEntry(Base):
    """
    Append-only audit row.

    coach_id is deliberately not a foreign key: rejected_unknown_coach entries
    reference coaches that have no certification record.
    """

    __tablename__ = "validation_audit_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )

    coach_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[AuditAction] = mapped_column(String(20), nullable=False)
    requested_level: Mapped[int] = mapped_column(Integer, nullable=False)

    decision: Mapped[AuditDecision] = mapped_column(String(40), nullable=False, index=True)
    reason_code: Mapped[ReasonCode] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    prior_level: Mapped[int] = mapped_column(Integer, nullable=False)
    pending_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Correlation with the HTTP request that triggered the decision
    request_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )

    __table_args__ = (
        Index("ix_validation_audit_coach_time", "coach_id", "created_at"),
        Index("ix_validation_audit_decision_time", "decision", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ValidationAuditEntry {self.coach_id} L{self.requested_level} {self.decision}>"
