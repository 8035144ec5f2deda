"""Unit tests for entitlement checks."""

import pytest

from certgate.engines.certification.access_gate import AccessGate
from certgate.engines.certification.levels import CommissionTier


class TestAccessGate:
    """Access follows the confirmed level, never the pending one."""

    @pytest.mark.asyncio
    async def test_unknown_coach_has_no_access(self, db_session):
        access = await AccessGate(db_session).get_access("coach-1")
        assert not access.unlimited_access_granted
        assert access.commission_tier == CommissionTier.NONE
        assert access.commission_rate is None

    @pytest.mark.asyncio
    async def test_pending_level_grants_nothing(self, validator, session_factory):
        await validator.validate_level_application("coach-1", 1)

        async with session_factory() as session:
            gate = AccessGate(session)
            assert not await gate.has_unlimited_access("coach-1")
            access = await gate.get_access("coach-1")
        assert access.pending_level == 1

    @pytest.mark.asyncio
    async def test_completed_level_grants_access_and_tier(self, validator, session_factory):
        for level in (1, 2):
            await validator.validate_level_application("coach-1", level)
            await validator.complete_level("coach-1", level)

        async with session_factory() as session:
            access = await AccessGate(session).get_access("coach-1")
        assert access.unlimited_access_granted
        assert access.current_level == 2
        assert access.commission_tier == CommissionTier.CERTIFIED
        assert access.commission_rate == 13.0
