"""
Audit Log Store for progression decisions.

Every decision MUST be appended here inside the same transaction as the state
change it authorizes. A failed append aborts the transaction.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from certgate.errors import AuditAppendError
from certgate.kernel.audit.entry_types import NewAuditEntry
from certgate.kernel.models.audit import AuditDecision, ValidationAuditEntry
from certgate.kernel.models.base import as_utc
from certgate.logging_config import get_logger, get_request_id

logger = get_logger(__name__)


class AuditLogStore:
    """
    Service for the append-only validation audit log.

    Usage:
        audit_log = AuditLogStore(session)
        entry_id = await audit_log.append(NewAuditEntry(...))
        await session.commit()
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, entry: NewAuditEntry) -> uuid.UUID:
        """
        Append an entry and flush it within the caller's transaction.

        The caller commits. Flushing here surfaces storage errors before the
        state change is committed, so a decision is never persisted without
        its audit row.

        Raises:
            AuditAppendError: the row could not be written
        """
        row = ValidationAuditEntry(
            id=uuid.uuid4(),
            coach_id=entry.coach_id,
            action=entry.action.value,
            requested_level=entry.requested_level,
            decision=entry.decision.value,
            reason_code=entry.reason_code.value,
            message=entry.message,
            prior_level=entry.prior_level,
            pending_level=entry.pending_level,
            request_id=entry.request_id or get_request_id(),
            created_at=entry.timestamp,
        )
        self.session.add(row)
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.error(
                "Audit append failed",
                extra={"coach_id": entry.coach_id, "decision": entry.decision.value},
            )
            raise AuditAppendError(f"could not append audit entry for coach {entry.coach_id}") from exc
        return row.id

    async def query(
        self,
        coach_id: str,
        since: Optional[datetime] = None,
        limit: int = 500,
    ) -> List[ValidationAuditEntry]:
        """
        Get the audit trail for a coach.

        Args:
            coach_id: The coach
            since: Only entries at or after this time
            limit: Maximum number of entries

        Returns:
            Entries, oldest first
        """
        query = select(ValidationAuditEntry).where(ValidationAuditEntry.coach_id == coach_id)
        if since:
            query = query.where(ValidationAuditEntry.created_at >= as_utc(since))
        query = query.order_by(ValidationAuditEntry.created_at, ValidationAuditEntry.id).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_entries(self, coach_id: Optional[str] = None) -> int:
        """Count entries, optionally for one coach."""
        query = select(func.count(ValidationAuditEntry.id))
        if coach_id:
            query = query.where(ValidationAuditEntry.coach_id == coach_id)
        result = await self.session.execute(query)
        return result.scalar() or 0

    async def count_by_decision(self, since: Optional[datetime] = None) -> Dict[AuditDecision, int]:
        """Count entries per decision. Decisions with no entries map to 0."""
        query = select(ValidationAuditEntry.decision, func.count(ValidationAuditEntry.id))
        if since:
            query = query.where(ValidationAuditEntry.created_at >= as_utc(since))
        query = query.group_by(ValidationAuditEntry.decision)

        result = await self.session.execute(query)
        counts = {decision: 0 for decision in AuditDecision}
        for decision, count in result.all():
            counts[AuditDecision(decision)] = count
        return counts
