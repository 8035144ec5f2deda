"""
Audit entry payload definitions using Pydantic for validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from certgate.kernel.models.audit import AuditAction, AuditDecision, ReasonCode
from certgate.kernel.models.base import utcnow


class NewAuditEntry(BaseModel):
    """An audit entry about to be appended. Frozen: entries are never edited."""

    model_config = ConfigDict(frozen=True)

    coach_id: str
    action: AuditAction
    requested_level: int
    decision: AuditDecision
    reason_code: ReasonCode
    message: str
    prior_level: int
    pending_level: Optional[int] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)
