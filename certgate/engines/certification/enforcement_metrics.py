"""
Enforcement Metrics - aggregate counts over the validation audit log.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from certgate.kernel.audit.audit_log import AuditLogStore
from certgate.kernel.models.audit import AuditDecision


class EnforcementStatus(BaseModel):
    """How often sequential enforcement approved or blocked requests."""

    total_validations: int
    approved_count: int
    rejected_skip_count: int
    rejected_duplicate_count: int
    rejected_unknown_coach_count: int
    invalid_completion_count: int
    since: Optional[datetime] = None


class EnforcementMetrics:
    def __init__(self, session: AsyncSession):
        self.audit_log = AuditLogStore(session)

    async def get_status(self, since: Optional[datetime] = None) -> EnforcementStatus:
        counts = await self.audit_log.count_by_decision(since=since)
        return EnforcementStatus(
            total_validations=sum(counts.values()),
            approved_count=counts[AuditDecision.APPROVED],
            rejected_skip_count=counts[AuditDecision.REJECTED_SKIP],
            rejected_duplicate_count=counts[AuditDecision.REJECTED_DUPLICATE],
            rejected_unknown_coach_count=counts[AuditDecision.REJECTED_UNKNOWN_COACH],
            invalid_completion_count=counts[AuditDecision.INVALID_COMPLETION_STATE],
            since=since,
        )
