"""
Level Progression Validator - the only writer of certification state.

Each request runs a read-decide-write cycle in its own transaction:
1. check the coach with the directory
2. read the record (level 0 default for new coaches)
3. decide with the state machine
4. compare-and-swap the new record, append the audit entry, commit

If the swap loses a race, the whole transaction (audit entry included) is
rolled back and the cycle re-runs against fresh state. A retried request may
legitimately reach a different decision.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Callable, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from certgate.config import Settings, get_settings
from certgate.engines.certification.levels import is_requestable
from certgate.engines.certification.records import CoachCertificationRecord
from certgate.engines.certification.repository import CertificationRepository
from certgate.engines.certification.state_machine import Outcome, decide_application, decide_completion
from certgate.errors import InvalidLevelError, StorageConflict, TemporarilyUnavailableError
from certgate.kernel.audit.audit_log import AuditLogStore
from certgate.kernel.audit.entry_types import NewAuditEntry
from certgate.kernel.identity.coach_directory import CoachDirectory, build_coach_directory
from certgate.kernel.models.audit import AuditAction, AuditDecision, ReasonCode
from certgate.kernel.models.base import utcnow
from certgate.logging_config import get_logger

logger = get_logger(__name__)

Decide = Callable[[CoachCertificationRecord, int, datetime], Outcome]


class ProgressionDecision(BaseModel):
    """What the caller gets back for every decided request."""

    coach_id: str
    action: AuditAction
    requested_level: int
    decision: AuditDecision
    reason_code: ReasonCode
    message: str
    prior_level: int
    current_level: int
    pending_level: Optional[int] = None
    audit_entry_id: uuid.UUID
    decided_at: datetime

    @property
    def approved(self) -> bool:
        return self.decision == AuditDecision.APPROVED


def _apply(record: CoachCertificationRecord, level: int, now: datetime) -> Outcome:
    return decide_application(record, level)


def _complete(record: CoachCertificationRecord, level: int, now: datetime) -> Outcome:
    return decide_completion(record, level, now)


class LevelProgressionValidator:
    """
    Enforces sequential-only certification progression.

    Usage:
        validator = LevelProgressionValidator(async_session_maker)
        decision = await validator.validate_level_application("coach-17", 2)
        if not decision.approved:
            ...  # decision.reason_code says why
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        coach_directory: Optional[CoachDirectory] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.coach_directory = coach_directory or build_coach_directory(self.settings)

    async def validate_level_application(
        self,
        coach_id: str,
        requested_level: int,
        request_id: Optional[str] = None,
    ) -> ProgressionDecision:
        """
        Ask to start requested_level.

        Approved only when requested_level == current_level + 1 and nothing is
        pending; the level then becomes the coach's pending level.

        Raises:
            InvalidLevelError: requested_level outside 1..5 (not audited)
            TemporarilyUnavailableError: could not commit after max_cas_attempts
        """
        return await self._run(AuditAction.APPLY, coach_id, requested_level, _apply, request_id)

    async def complete_level(
        self,
        coach_id: str,
        level: int,
        request_id: Optional[str] = None,
    ) -> ProgressionDecision:
        """
        Confirm completion of the pending level.

        Any other level yields invalid_completion_state, which is audited and
        logged as an integrity signal; state is left untouched.
        """
        return await self._run(AuditAction.COMPLETE, coach_id, level, _complete, request_id)

    async def _run(
        self,
        action: AuditAction,
        coach_id: str,
        level: int,
        decide: Decide,
        request_id: Optional[str],
    ) -> ProgressionDecision:
        if not is_requestable(level):
            raise InvalidLevelError(level)

        known = await self.coach_directory.is_known(coach_id)

        attempts = max(1, self.settings.max_cas_attempts)
        for attempt in range(1, attempts + 1):
            try:
                decision = await self._attempt(action, coach_id, level, decide, known, request_id)
            except StorageConflict:
                logger.debug(
                    "CAS conflict, retrying",
                    extra={"coach_id": coach_id, "level": level, "attempt": attempt},
                )
                if attempt < attempts:
                    await asyncio.sleep(self.settings.cas_retry_backoff_ms * attempt / 1000)
                continue
            self._log_decision(decision)
            return decision

        logger.error(
            "Gave up after repeated CAS conflicts",
            extra={"coach_id": coach_id, "level": level, "attempts": attempts},
        )
        raise TemporarilyUnavailableError(coach_id, attempts)

    async def _attempt(
        self,
        action: AuditAction,
        coach_id: str,
        level: int,
        decide: Decide,
        known: bool,
        request_id: Optional[str],
    ) -> ProgressionDecision:
        """One read-decide-write cycle. Commits on return, rolls back on any exception."""
        now = utcnow()
        async with self.session_factory() as session:
            async with session.begin():
                if not known:
                    outcome = Outcome(
                        decision=AuditDecision.REJECTED_UNKNOWN_COACH,
                        reason_code=ReasonCode.UNKNOWN_COACH,
                        message=f"coach {coach_id} is not known to the platform",
                    )
                    record = CoachCertificationRecord(coach_id=coach_id)
                    stored = record
                else:
                    repo = CertificationRepository(session)
                    record = await repo.get(coach_id)
                    outcome = decide(record, level, now)

                    # First request for a coach materializes the level-0 record
                    stored = outcome.new_record or record
                    if outcome.new_record is not None or not record.is_stored:
                        if not await repo.compare_and_swap(coach_id, record.version, stored):
                            raise StorageConflict(coach_id, record.version)

                entry = NewAuditEntry(
                    coach_id=coach_id,
                    action=action,
                    requested_level=level,
                    decision=outcome.decision,
                    reason_code=outcome.reason_code,
                    message=outcome.message,
                    prior_level=record.current_level,
                    pending_level=stored.pending_level,
                    request_id=request_id,
                    timestamp=now,
                )
                entry_id = await AuditLogStore(session).append(entry)

        return ProgressionDecision(
            coach_id=coach_id,
            action=action,
            requested_level=level,
            decision=outcome.decision,
            reason_code=outcome.reason_code,
            message=outcome.message,
            prior_level=record.current_level,
            current_level=stored.current_level,
            pending_level=stored.pending_level,
            audit_entry_id=entry_id,
            decided_at=now,
        )

    def _log_decision(self, decision: ProgressionDecision) -> None:
        fields = {
            "coach_id": decision.coach_id,
            "action": decision.action.value,
            "level": decision.requested_level,
            "decision": decision.decision.value,
            "reason_code": decision.reason_code.value,
        }
        if decision.decision == AuditDecision.INVALID_COMPLETION_STATE:
            logger.warning("Invalid completion attempt: %s", decision.message, extra=fields)
        elif decision.approved:
            logger.info("Progression approved: %s", decision.message, extra=fields)
        else:
            logger.info("Progression rejected: %s", decision.message, extra=fields)
