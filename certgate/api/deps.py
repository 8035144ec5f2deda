"""
FastAPI dependencies for database sessions and certification services.
"""

from functools import lru_cache
from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from certgate.database import get_session_factory
from certgate.engines.certification.validator import LevelProgressionValidator
from certgate.kernel.identity.coach_directory import CoachDirectory, build_coach_directory


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_db(session_factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields database sessions for read endpoints."""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


DbSession = Annotated[AsyncSession, Depends(get_db)]


@lru_cache
def get_coach_directory() -> CoachDirectory:
    """Process-wide coach directory built from settings."""
    return build_coach_directory()


def get_validator(
    session_factory: SessionFactory,
    coach_directory: Annotated[CoachDirectory, Depends(get_coach_directory)],
) -> LevelProgressionValidator:
    """The validator owns its transactions, so it gets the factory, not a session."""
    return LevelProgressionValidator(session_factory, coach_directory=coach_directory)


Validator = Annotated[LevelProgressionValidator, Depends(get_validator)]


def get_request_id(request: Request) -> Optional[str]:
    """Get request correlation ID (set by RequestIdMiddleware)."""
    return getattr(request.state, "request_id", None)


RequestId = Annotated[Optional[str], Depends(get_request_id)]

