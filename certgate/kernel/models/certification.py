"""
Certification state models - per-coach level record and completion history.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from certgate.kernel.models.base import Base, TimestampMixin, generate_uuid, utcnow


class CoachCertification(Base, TimestampMixin):
    """
    One row per coach. Never deleted.

    `version` is the compare-and-swap token: every write must name the version
    it read and bumps it by one.
    """

    __tablename__ = "coach_certifications"

    coach_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    current_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pending_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    unlimited_access_granted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    commission_tier: Mapped[str] = mapped_column(String(32), nullable=False, default="none")

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("current_level >= 0 AND current_level <= 5", name="ck_coach_cert_current_level"),
        CheckConstraint(
            "pending_level IS NULL OR pending_level = current_level + 1",
            name="ck_coach_cert_pending_next",
        ),
    )

    def __repr__(self) -> str:
        return f"<CoachCertification {self.coach_id} L{self.current_level} v{self.version}>"


class LevelCompletion(Base):
    """Append-only completion history; at most one row per coach and level."""

    __tablename__ = "level_completions"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=generate_uuid,
    )
    coach_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("coach_certifications.coach_id"),
        nullable=False,
        index=True,
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("coach_id", "level", name="uq_level_completions_coach_level"),
    )
