"""
Certification endpoints - level applications, completions, status, access, metrics.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Path, Query, Response, status

from certgate.api.deps import DbSession, RequestId, Validator
from certgate.engines.certification.access_gate import AccessGate
from certgate.engines.certification.enforcement_metrics import EnforcementMetrics
from certgate.engines.certification.levels import list_levels, next_level
from certgate.engines.certification.repository import CertificationRepository
from certgate.engines.certification.state_machine import state_of
from certgate.engines.certification.validator import ProgressionDecision
from certgate.kernel.audit.audit_log import AuditLogStore
from certgate.kernel.models.audit import AuditDecision
from certgate.kernel.models.base import as_utc
from certgate.schemas.certification import (
    AuditEntryResponse,
    AuditTrailResponse,
    CertificationStatusResponse,
    EnforcementStatusResponse,
    LevelApplicationRequest,
    LevelCompletionRequest,
    LevelHistoryItem,
    LevelResponse,
    ProgressionDecisionResponse,
    UnlimitedAccessResponse,
)
from certgate.schemas.common import ErrorResponse

router = APIRouter()

_DECISION_STATUS = {
    AuditDecision.APPROVED: status.HTTP_200_OK,
    AuditDecision.REJECTED_SKIP: status.HTTP_409_CONFLICT,
    AuditDecision.REJECTED_DUPLICATE: status.HTTP_409_CONFLICT,
    AuditDecision.REJECTED_UNKNOWN_COACH: status.HTTP_404_NOT_FOUND,
    AuditDecision.INVALID_COMPLETION_STATE: status.HTTP_409_CONFLICT,
}

_DECISION_RESPONSES = {
    404: {"model": ProgressionDecisionResponse},
    409: {"model": ProgressionDecisionResponse},
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

CoachIdPath = Annotated[str, Path(min_length=1, max_length=64)]


def _decision_response(decision: ProgressionDecision, response: Response) -> ProgressionDecisionResponse:
    response.status_code = _DECISION_STATUS[decision.decision]
    return ProgressionDecisionResponse(
        decision=decision.decision.value,
        reason_code=decision.reason_code.value,
        message=decision.message,
        coach_id=decision.coach_id,
        requested_level=decision.requested_level,
        current_level=decision.current_level,
        pending_level=decision.pending_level,
        audit_entry_id=decision.audit_entry_id,
    )


@router.post(
    "/validate-level-application",
    response_model=ProgressionDecisionResponse,
    responses=_DECISION_RESPONSES,
)
async def validate_level_application(
    body: LevelApplicationRequest,
    response: Response,
    validator: Validator,
    request_id: RequestId,
):
    """Apply for the next certification level. Rejections carry reason_code."""
    decision = await validator.validate_level_application(
        body.coach_id,
        body.requested_level,
        request_id=request_id,
    )
    return _decision_response(decision, response)


@router.post(
    "/complete-level",
    response_model=ProgressionDecisionResponse,
    responses=_DECISION_RESPONSES,
)
async def complete_level(
    body: LevelCompletionRequest,
    response: Response,
    validator: Validator,
    request_id: RequestId,
):
    """Confirm completion of the coach's pending level."""
    decision = await validator.complete_level(body.coach_id, body.level, request_id=request_id)
    return _decision_response(decision, response)


@router.get("/certification-status/{coach_id}", response_model=CertificationStatusResponse)
async def get_certification_status(
    db: DbSession,
    coach_id: CoachIdPath,
):
    """Current level, pending level, history and derived entitlements."""
    record = await CertificationRepository(db).get(coach_id)
    state, _ = state_of(record)
    return CertificationStatusResponse(
        coach_id=coach_id,
        state=state.value,
        current_level=record.current_level,
        pending_level=record.pending_level,
        next_level=None if record.pending_level else next_level(record.current_level),
        unlimited_access_granted=record.unlimited_access_granted,
        commission_tier=record.commission_tier.value,
        level_history=[
            LevelHistoryItem(level=entry.level, completed_at=entry.completed_at)
            for entry in record.level_history
        ],
    )


@router.get("/unlimited-access/{coach_id}", response_model=UnlimitedAccessResponse)
async def get_unlimited_access(
    db: DbSession,
    coach_id: CoachIdPath,
):
    """Entitlement check used by billing and feature gating."""
    access = await AccessGate(db).get_access(coach_id)
    return UnlimitedAccessResponse(
        coach_id=coach_id,
        granted=access.unlimited_access_granted,
        tier=access.commission_tier.value,
        commission_rate=access.commission_rate,
    )


@router.get("/enforcement-status", response_model=EnforcementStatusResponse)
async def get_enforcement_status(
    db: DbSession,
    since: Optional[datetime] = Query(None, description="Only count decisions at or after this time"),
):
    """Aggregate approval/rejection counts from the audit log."""
    metrics = await EnforcementMetrics(db).get_status(since=since)
    return EnforcementStatusResponse(**metrics.model_dump())


@router.get("/levels", response_model=List[LevelResponse])
async def get_levels():
    """The five certification levels in progression order."""
    return [
        LevelResponse(
            level=info.level,
            code=info.code,
            name=info.name,
            badge=info.badge,
            programme_cost=info.programme_cost,
            commission_tier=info.commission_tier.value,
            commission_rate=info.commission_rate,
        )
        for info in list_levels()
    ]


@router.get("/audit/{coach_id}", response_model=AuditTrailResponse)
async def get_audit_trail(
    db: DbSession,
    coach_id: CoachIdPath,
    since: Optional[datetime] = Query(None),
    limit: int = Query(500, ge=1, le=1000),
):
    """Audit trail for dispute resolution, oldest first."""
    entries = await AuditLogStore(db).query(coach_id, since=since, limit=limit)
    return AuditTrailResponse(
        coach_id=coach_id,
        entries=[
            AuditEntryResponse(
                entry_id=e.id,
                coach_id=e.coach_id,
                action=e.action,
                requested_level=e.requested_level,
                decision=e.decision,
                reason_code=e.reason_code,
                message=e.message,
                prior_level=e.prior_level,
                pending_level=e.pending_level,
                request_id=e.request_id,
                timestamp=as_utc(e.created_at),
            )
            for e in entries
        ],
    )
