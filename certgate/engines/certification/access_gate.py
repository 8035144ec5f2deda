"""
Access Gate - read-only answer to "what does this coach get right now".

Used by billing and feature-gating callers. Reads the latest committed
record on every call; nothing is cached here.
"""

from typing import Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from certgate.engines.certification.levels import CommissionTier, commission_rate_for
from certgate.engines.certification.repository import CertificationRepository


class AccessStatus(BaseModel):
    """Entitlements derived from a coach's confirmed level."""

    coach_id: str
    current_level: int
    pending_level: Optional[int] = None
    unlimited_access_granted: bool
    commission_tier: CommissionTier
    commission_rate: Optional[float] = None


class AccessGate:
    """Projection of the certification repository for entitlement checks."""

    def __init__(self, session: AsyncSession):
        self.repository = CertificationRepository(session)

    async def get_access(self, coach_id: str) -> AccessStatus:
        record = await self.repository.get(coach_id)
        return AccessStatus(
            coach_id=coach_id,
            current_level=record.current_level,
            pending_level=record.pending_level,
            unlimited_access_granted=record.unlimited_access_granted,
            commission_tier=record.commission_tier,
            commission_rate=commission_rate_for(record.current_level),
        )

    async def has_unlimited_access(self, coach_id: str) -> bool:
        return (await self.get_access(coach_id)).unlimited_access_granted
