"""Unit tests for enforcement metrics over the audit log."""

from datetime import timedelta

import pytest

from certgate.engines.certification.enforcement_metrics import EnforcementMetrics
from certgate.kernel.models.base import utcnow


class TestEnforcementMetrics:
    @pytest.mark.asyncio
    async def test_counts_every_decision(self, validator, session_factory):
        await validator.validate_level_application("coach-1", 1)
        await validator.validate_level_application("coach-1", 1)
        await validator.validate_level_application("coach-1", 3)
        await validator.complete_level("coach-1", 2)

        async with session_factory() as session:
            status = await EnforcementMetrics(session).get_status()
        assert status.total_validations == 4
        assert status.approved_count == 1
        assert status.rejected_duplicate_count == 1
        assert status.rejected_skip_count == 1
        assert status.invalid_completion_count == 1
        assert status.rejected_unknown_coach_count == 0

    @pytest.mark.asyncio
    async def test_since_excludes_older_decisions(self, validator, session_factory):
        await validator.validate_level_application("coach-1", 1)

        async with session_factory() as session:
            status = await EnforcementMetrics(session).get_status(since=utcnow() + timedelta(hours=1))
        assert status.total_validations == 0
