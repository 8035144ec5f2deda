"""
Progression state machine for a coach's certification.

    Uncertified(0) -> InProgress(1) -> Completed(1) -> InProgress(2) -> ... -> Completed(5)

Completed(5) is terminal. There is no downgrade transition. The functions here
are pure: they read a record and return the decision plus the record to store
(if any). Persistence and auditing live in the validator.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Set, Tuple

from certgate.engines.certification.levels import MAX_LEVEL, UNCERTIFIED
from certgate.engines.certification.records import CoachCertificationRecord
from certgate.kernel.models.audit import AuditAction, AuditDecision, ReasonCode


class CertificationState(str, Enum):
    UNCERTIFIED = "uncertified"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Valid transitions: from_state -> (action, to_state)
_TRANSITIONS: Dict[CertificationState, Set[Tuple[AuditAction, CertificationState]]] = {
    CertificationState.UNCERTIFIED: {(AuditAction.APPLY, CertificationState.IN_PROGRESS)},
    CertificationState.IN_PROGRESS: {(AuditAction.COMPLETE, CertificationState.COMPLETED)},
    CertificationState.COMPLETED: {(AuditAction.APPLY, CertificationState.IN_PROGRESS)},
}


def state_of(record: CoachCertificationRecord) -> Tuple[CertificationState, int]:
    """Current state and the level it refers to."""
    if record.pending_level is not None:
        return CertificationState.IN_PROGRESS, record.pending_level
    if record.current_level == UNCERTIFIED:
        return CertificationState.UNCERTIFIED, UNCERTIFIED
    return CertificationState.COMPLETED, record.current_level


def is_terminal(record: CoachCertificationRecord) -> bool:
    return record.current_level == MAX_LEVEL and record.pending_level is None


def can_transition(record: CoachCertificationRecord, action: AuditAction) -> bool:
    """Whether the action is allowed at all from the record's state (level rules aside)."""
    if is_terminal(record):
        return False
    state, _ = state_of(record)
    return any(a == action for a, _ in _TRANSITIONS[state])


@dataclass(frozen=True)
class Outcome:
    """A decision and the record to persist (None = state unchanged)."""

    decision: AuditDecision
    reason_code: ReasonCode
    message: str
    new_record: Optional[CoachCertificationRecord] = None

    @property
    def approved(self) -> bool:
        return self.decision == AuditDecision.APPROVED


def decide_application(record: CoachCertificationRecord, requested_level: int) -> Outcome:
    """
    Decide an application for requested_level.

    Order matters: an already-completed level is a duplicate even when it is
    also "not the next level"; a level equal to the pending one is a duplicate;
    anything else that is not current_level + 1 is a skip.
    """
    if requested_level <= record.current_level:
        return Outcome(
            decision=AuditDecision.REJECTED_DUPLICATE,
            reason_code=ReasonCode.LEVEL_ALREADY_COMPLETED,
            message=f"level {requested_level} already completed",
        )
    if record.pending_level == requested_level:
        return Outcome(
            decision=AuditDecision.REJECTED_DUPLICATE,
            reason_code=ReasonCode.LEVEL_ALREADY_PENDING,
            message=f"level {requested_level} is already in progress",
        )
    if requested_level != record.current_level + 1 or not can_transition(record, AuditAction.APPLY):
        return Outcome(
            decision=AuditDecision.REJECTED_SKIP,
            reason_code=ReasonCode.LEVEL_SKIP,
            message=f"level {requested_level} requires level {requested_level - 1} to be completed first",
        )
    return Outcome(
        decision=AuditDecision.APPROVED,
        reason_code=ReasonCode.APPLICATION_APPROVED,
        message=f"application for level {requested_level} approved",
        new_record=record.with_pending(requested_level),
    )


def decide_completion(
    record: CoachCertificationRecord,
    level: int,
    completed_at: datetime,
) -> Outcome:
    """Decide a completion for level; only the pending level can be completed."""
    if record.pending_level is None:
        return Outcome(
            decision=AuditDecision.INVALID_COMPLETION_STATE,
            reason_code=ReasonCode.NO_PENDING_LEVEL,
            message=f"level {level} cannot be completed: no level is in progress",
        )
    if level != record.pending_level:
        return Outcome(
            decision=AuditDecision.INVALID_COMPLETION_STATE,
            reason_code=ReasonCode.COMPLETION_LEVEL_MISMATCH,
            message=f"level {level} cannot be completed: level {record.pending_level} is in progress",
        )
    return Outcome(
        decision=AuditDecision.APPROVED,
        reason_code=ReasonCode.LEVEL_COMPLETED,
        message=f"level {level} completed",
        new_record=record.with_completion(level, completed_at),
    )
