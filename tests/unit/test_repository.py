"""Unit tests for the certification repository."""

from datetime import datetime, timedelta, timezone

import pytest

from certgate.engines.certification.records import CoachCertificationRecord
from certgate.engines.certification.repository import CertificationRepository

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


async def store_new(session_factory, coach_id: str) -> CoachCertificationRecord:
    async with session_factory() as session:
        async with session.begin():
            record = CoachCertificationRecord(coach_id=coach_id).with_pending(1)
            assert await CertificationRepository(session).compare_and_swap(coach_id, 0, record)
    async with session_factory() as session:
        return await CertificationRepository(session).get(coach_id)


class TestGet:
    @pytest.mark.asyncio
    async def test_unknown_record_is_level_zero_default(self, db_session):
        record = await CertificationRepository(db_session).get("coach-new")
        assert record.current_level == 0
        assert record.pending_level is None
        assert record.version == 0


class TestCompareAndSwap:
    """Version-checked writes."""

    @pytest.mark.asyncio
    async def test_insert_sets_version_one(self, session_factory):
        record = await store_new(session_factory, "coach-1")
        assert record.version == 1
        assert record.pending_level == 1

    @pytest.mark.asyncio
    async def test_second_insert_conflicts(self, session_factory):
        await store_new(session_factory, "coach-1")

        async with session_factory() as session:
            async with session.begin():
                repo = CertificationRepository(session)
                ok = await repo.compare_and_swap("coach-1", 0, CoachCertificationRecord(coach_id="coach-1"))
                assert ok is False

        async with session_factory() as session:
            record = await CertificationRepository(session).get("coach-1")
        assert record.pending_level == 1

    @pytest.mark.asyncio
    async def test_update_with_matching_version(self, session_factory):
        stored = await store_new(session_factory, "coach-1")

        async with session_factory() as session:
            async with session.begin():
                repo = CertificationRepository(session)
                assert await repo.compare_and_swap("coach-1", 1, stored.with_completion(1, NOW))

        async with session_factory() as session:
            record = await CertificationRepository(session).get("coach-1")
        assert record.version == 2
        assert record.current_level == 1
        assert record.completed_levels == [1]
        assert record.unlimited_access_granted
        assert record.level_history[0].completed_at == NOW
        assert record.level_history[0].completed_at.utcoffset() == timedelta(0)
        assert record.updated_at.utcoffset() == timedelta(0)

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, session_factory):
        stored = await store_new(session_factory, "coach-1")

        async with session_factory() as session:
            async with session.begin():
                repo = CertificationRepository(session)
                assert await repo.compare_and_swap("coach-1", 1, stored.with_completion(1, NOW))

        async with session_factory() as session:
            async with session.begin():
                repo = CertificationRepository(session)
                assert not await repo.compare_and_swap("coach-1", 1, stored.with_completion(1, NOW))

        async with session_factory() as session:
            record = await CertificationRepository(session).get("coach-1")
        assert record.version == 2
        assert record.completed_levels == [1]

    @pytest.mark.asyncio
    async def test_record_for_other_coach_rejected(self, db_session):
        with pytest.raises(ValueError):
            await CertificationRepository(db_session).compare_and_swap(
                "coach-1", 0, CoachCertificationRecord(coach_id="coach-2")
            )


class TestListRecords:
    @pytest.mark.asyncio
    async def test_ordered_by_coach_id(self, session_factory):
        await store_new(session_factory, "coach-b")
        await store_new(session_factory, "coach-a")

        async with session_factory() as session:
            records = await CertificationRepository(session).list_records()
        assert [r.coach_id for r in records] == ["coach-a", "coach-b"]
