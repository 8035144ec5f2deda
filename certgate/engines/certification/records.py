"""
Certification record - the in-memory view of one coach's progression.

Records are immutable values. Transitions return a new record, and the
validators below refuse to build a record that breaks the sequential
invariants, so an inconsistent record can never reach the repository.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from certgate.engines.certification.levels import (
    MAX_LEVEL,
    UNCERTIFIED,
    CommissionTier,
    commission_tier_for,
)


class LevelCompletionEntry(BaseModel):
    """One completed level."""

    model_config = ConfigDict(frozen=True)

    level: int
    completed_at: datetime


class CoachCertificationRecord(BaseModel):
    """
    A coach's certification state.

    version 0 means the record has never been stored.
    """

    model_config = ConfigDict(frozen=True)

    coach_id: str
    current_level: int = UNCERTIFIED
    pending_level: Optional[int] = None
    level_history: List[LevelCompletionEntry] = []
    unlimited_access_granted: bool = False
    commission_tier: CommissionTier = CommissionTier.NONE
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_invariants(self) -> "CoachCertificationRecord":
        if not UNCERTIFIED <= self.current_level <= MAX_LEVEL:
            raise ValueError(f"current_level out of range: {self.current_level}")
        levels = [entry.level for entry in self.level_history]
        if levels != list(range(1, len(levels) + 1)):
            raise ValueError(f"level_history must be 1..n without gaps or duplicates, got {levels}")
        if self.current_level != len(levels):
            raise ValueError("current_level must equal the highest completed level")
        if self.pending_level is not None and self.pending_level != self.current_level + 1:
            raise ValueError("pending_level must be exactly current_level + 1")
        if self.unlimited_access_granted != (self.current_level >= 1):
            raise ValueError("unlimited_access_granted must track current_level >= 1")
        if self.commission_tier != commission_tier_for(self.current_level):
            raise ValueError("commission_tier does not match current_level")
        return self

    @property
    def is_stored(self) -> bool:
        return self.version > 0

    @property
    def completed_levels(self) -> List[int]:
        return [entry.level for entry in self.level_history]

    def with_pending(self, level: int) -> "CoachCertificationRecord":
        """Record an approved application."""
        return CoachCertificationRecord.model_validate({**self.model_dump(), "pending_level": level})

    def with_completion(self, level: int, completed_at: datetime) -> "CoachCertificationRecord":
        """Record completion of the pending level; derived flags are recomputed."""
        history = [*self.level_history, LevelCompletionEntry(level=level, completed_at=completed_at)]
        return CoachCertificationRecord(
            coach_id=self.coach_id,
            current_level=level,
            pending_level=None,
            level_history=history,
            unlimited_access_granted=level >= 1,
            commission_tier=commission_tier_for(level),
            version=self.version,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
