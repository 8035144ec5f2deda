"""
Pydantic schemas for the certification API.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from certgate.engines.certification.levels import MAX_LEVEL, MIN_LEVEL

CoachId = Annotated[str, Field(min_length=1, max_length=64)]


class LevelApplicationRequest(BaseModel):
    """Body for validate-level-application."""

    coach_id: CoachId
    requested_level: int = Field(ge=MIN_LEVEL, le=MAX_LEVEL)


class LevelCompletionRequest(BaseModel):
    """Body for complete-level."""

    coach_id: CoachId
    level: int = Field(ge=MIN_LEVEL, le=MAX_LEVEL)


class ProgressionDecisionResponse(BaseModel):
    """Decision for an application or completion. Same shape for approvals and rejections."""

    decision: str
    reason_code: str
    message: str
    coach_id: str
    requested_level: int
    current_level: int
    pending_level: Optional[int] = None
    audit_entry_id: uuid.UUID


class LevelHistoryItem(BaseModel):
    level: int
    completed_at: datetime


class CertificationStatusResponse(BaseModel):
    """Full certification status for a coach."""

    coach_id: str
    state: str
    current_level: int
    pending_level: Optional[int] = None
    next_level: Optional[int] = None
    unlimited_access_granted: bool
    commission_tier: str
    level_history: List[LevelHistoryItem] = []


class UnlimitedAccessResponse(BaseModel):
    """Entitlement check for feature gating and billing."""

    coach_id: str
    granted: bool
    tier: str
    commission_rate: Optional[float] = None


class EnforcementStatusResponse(BaseModel):
    """Aggregate enforcement metrics from the audit log."""

    total_validations: int
    approved_count: int
    rejected_skip_count: int
    rejected_duplicate_count: int
    rejected_unknown_coach_count: int
    invalid_completion_count: int
    since: Optional[datetime] = None


class LevelResponse(BaseModel):
    """Catalog entry."""

    level: int
    code: str
    name: str
    badge: str
    programme_cost: int
    commission_tier: str
    commission_rate: float


class AuditEntryResponse(BaseModel):
    """One audit trail row."""

    entry_id: uuid.UUID
    coach_id: str
    action: str
    requested_level: int
    decision: str
    reason_code: str
    message: str
    prior_level: int
    pending_level: Optional[int] = None
    request_id: Optional[str] = None
    timestamp: datetime


class AuditTrailResponse(BaseModel):
    coach_id: str
    entries: List[AuditEntryResponse]
