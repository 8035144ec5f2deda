"""Unit tests for the validation audit log."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from certgate.errors import AuditAppendError
from certgate.kernel.audit.audit_log import AuditLogStore
from certgate.kernel.audit.entry_types import NewAuditEntry
from certgate.kernel.models.audit import AuditAction, AuditDecision, ReasonCode
from certgate.logging_config import request_id_var

T0 = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def make_entry(coach_id="coach-1", decision=AuditDecision.APPROVED, timestamp=T0, **kwargs) -> NewAuditEntry:
    reason = {
        AuditDecision.APPROVED: ReasonCode.APPLICATION_APPROVED,
        AuditDecision.REJECTED_SKIP: ReasonCode.LEVEL_SKIP,
        AuditDecision.REJECTED_DUPLICATE: ReasonCode.LEVEL_ALREADY_COMPLETED,
    }[decision]
    return NewAuditEntry(
        coach_id=coach_id,
        action=AuditAction.APPLY,
        requested_level=1,
        decision=decision,
        reason_code=reason,
        message="test",
        prior_level=0,
        timestamp=timestamp,
        **kwargs,
    )


class TestAppend:
    @pytest.mark.asyncio
    async def test_append_and_query(self, db_session):
        store = AuditLogStore(db_session)
        entry_id = await store.append(make_entry(request_id="req-1"))
        await db_session.commit()

        entries = await store.query("coach-1")
        assert len(entries) == 1
        assert entries[0].id == entry_id
        assert entries[0].decision == "approved"
        assert entries[0].reason_code == "APPLICATION_APPROVED"
        assert entries[0].request_id == "req-1"

    @pytest.mark.asyncio
    async def test_request_id_taken_from_context(self, db_session):
        token = request_id_var.set("ctx-req")
        try:
            await AuditLogStore(db_session).append(make_entry())
        finally:
            request_id_var.reset(token)

        entries = await AuditLogStore(db_session).query("coach-1")
        assert entries[0].request_id == "ctx-req"

    @pytest.mark.asyncio
    async def test_storage_failure_raises(self, db_session, monkeypatch):
        async def failing_flush(*args, **kwargs):
            raise OperationalError("INSERT", {}, Exception("disk full"))

        monkeypatch.setattr(db_session, "flush", failing_flush)
        with pytest.raises(AuditAppendError):
            await AuditLogStore(db_session).append(make_entry())


class TestQuery:
    """Ordering and filtering of the trail."""

    @pytest.mark.asyncio
    async def test_oldest_first_and_per_coach(self, db_session):
        store = AuditLogStore(db_session)
        await store.append(make_entry(timestamp=T0 + timedelta(minutes=2), decision=AuditDecision.REJECTED_SKIP))
        await store.append(make_entry(timestamp=T0))
        await store.append(make_entry(coach_id="coach-2"))

        entries = await store.query("coach-1")
        assert [e.decision for e in entries] == ["approved", "rejected_skip"]

    @pytest.mark.asyncio
    async def test_since_filter(self, db_session):
        store = AuditLogStore(db_session)
        await store.append(make_entry(timestamp=T0))
        await store.append(make_entry(timestamp=T0 + timedelta(hours=1)))

        entries = await store.query("coach-1", since=T0 + timedelta(minutes=30))
        assert len(entries) == 1

    @pytest.mark.asyncio
    async def test_count_by_decision_zero_fills(self, db_session):
        store = AuditLogStore(db_session)
        await store.append(make_entry())
        await store.append(make_entry(decision=AuditDecision.REJECTED_SKIP))
        await store.append(make_entry(decision=AuditDecision.REJECTED_SKIP))

        counts = await store.count_by_decision()
        assert counts[AuditDecision.APPROVED] == 1
        assert counts[AuditDecision.REJECTED_SKIP] == 2
        assert counts[AuditDecision.REJECTED_UNKNOWN_COACH] == 0
        assert set(counts) == set(AuditDecision)
        assert await store.count_entries() == 3
        assert await store.count_entries("coach-2") == 0
