"""
Certification State Repository - durable coach records (DB-backed).

All writes go through compare_and_swap so that two concurrent requests for
the same coach can never both commit against the same version.
"""

from typing import List, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from certgate.engines.certification.levels import CommissionTier
from certgate.engines.certification.records import CoachCertificationRecord, LevelCompletionEntry
from certgate.kernel.models.base import as_utc
from certgate.kernel.models.certification import CoachCertification, LevelCompletion
from certgate.logging_config import get_logger

logger = get_logger(__name__)


class CertificationRepository:
    """
    Reads and version-checked writes of CoachCertificationRecord.

    Operates inside the caller's session; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _row_to_record(
        self,
        row: CoachCertification,
        completions: Sequence[LevelCompletion],
    ) -> CoachCertificationRecord:
        """Build the record from the DB row and its completion rows."""
        return CoachCertificationRecord(
            coach_id=row.coach_id,
            current_level=row.current_level,
            pending_level=row.pending_level,
            level_history=[
                LevelCompletionEntry(level=c.level, completed_at=as_utc(c.completed_at))
                for c in completions
            ],
            unlimited_access_granted=row.unlimited_access_granted,
            commission_tier=CommissionTier(row.commission_tier),
            version=row.version,
            created_at=as_utc(row.created_at) if row.created_at else None,
            updated_at=as_utc(row.updated_at) if row.updated_at else None,
        )

    async def _completions(self, coach_id: str) -> List[LevelCompletion]:
        q = (
            select(LevelCompletion)
            .where(LevelCompletion.coach_id == coach_id)
            .order_by(LevelCompletion.level)
        )
        result = await self.session.execute(q)
        return list(result.scalars().all())

    async def get(self, coach_id: str) -> CoachCertificationRecord:
        """Get the stored record, or the unstored level-0 default."""
        q = select(CoachCertification).where(CoachCertification.coach_id == coach_id)
        result = await self.session.execute(q)
        row = result.scalar_one_or_none()
        if not row:
            return CoachCertificationRecord(coach_id=coach_id)
        return self._row_to_record(row, await self._completions(coach_id))

    async def compare_and_swap(
        self,
        coach_id: str,
        expected_version: int,
        new_record: CoachCertificationRecord,
    ) -> bool:
        """
        Store new_record if the stored version still equals expected_version.

        expected_version 0 inserts a new record. Returns False on conflict
        (someone else wrote first); the caller must re-read and re-decide.
        """
        if new_record.coach_id != coach_id:
            raise ValueError("record belongs to a different coach")

        new_version = expected_version + 1
        if expected_version == 0:
            row = CoachCertification(
                coach_id=coach_id,
                current_level=new_record.current_level,
                pending_level=new_record.pending_level,
                unlimited_access_granted=new_record.unlimited_access_granted,
                commission_tier=new_record.commission_tier.value,
                version=new_version,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(row)
            except IntegrityError:
                logger.debug("Insert lost the race", extra={"coach_id": coach_id})
                return False
        else:
            stmt = (
                update(CoachCertification)
                .where(
                    CoachCertification.coach_id == coach_id,
                    CoachCertification.version == expected_version,
                )
                .values(
                    current_level=new_record.current_level,
                    pending_level=new_record.pending_level,
                    unlimited_access_granted=new_record.unlimited_access_granted,
                    commission_tier=new_record.commission_tier.value,
                    version=new_version,
                )
                .execution_options(synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            if result.rowcount != 1:
                logger.debug(
                    "Version check failed",
                    extra={"coach_id": coach_id, "expected_version": expected_version},
                )
                return False

        stored_levels = {c.level for c in await self._completions(coach_id)}
        for entry in new_record.level_history:
            if entry.level not in stored_levels:
                self.session.add(
                    LevelCompletion(
                        coach_id=coach_id,
                        level=entry.level,
                        completed_at=entry.completed_at,
                    )
                )
        await self.session.flush()
        return True

    async def list_records(self, limit: int = 100, offset: int = 0) -> List[CoachCertificationRecord]:
        """Stored records ordered by coach_id."""
        q = select(CoachCertification).order_by(CoachCertification.coach_id).offset(offset).limit(limit)
        result = await self.session.execute(q)
        rows = list(result.scalars().all())
        return [self._row_to_record(row, await self._completions(row.coach_id)) for row in rows]
