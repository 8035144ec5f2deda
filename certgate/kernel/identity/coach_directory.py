"""
Coach Directory - identity check behind rejected_unknown_coach decisions.

Coach identities live outside this service. The directory answers one
question: is this coach_id a coach the platform knows about?
"""

import re
from urllib.parse import quote
from typing import Iterable, Optional

import httpx

from certgate.config import Settings, get_settings
from certgate.errors import CoachDirectoryUnavailable
from certgate.logging_config import get_logger

logger = get_logger(__name__)


class CoachDirectory:
    """Interface for coach identity lookups."""

    async def is_known(self, coach_id: str) -> bool:
        raise NotImplementedError


class PatternCoachDirectory(CoachDirectory):
    """Accepts any coach_id that is well-formed."""

    def __init__(self, pattern: str):
        self._pattern = re.compile(pattern)

    async def is_known(self, coach_id: str) -> bool:
        return bool(self._pattern.fullmatch(coach_id))


class StaticCoachDirectory(CoachDirectory):
    """Fixed allow-list of coach ids."""

    def __init__(self, coach_ids: Iterable[str]):
        self._coach_ids = frozenset(coach_ids)

    async def is_known(self, coach_id: str) -> bool:
        return coach_id in self._coach_ids


class HttpCoachDirectory(CoachDirectory):
    """
    Asks the platform identity service: GET {base_url}/coaches/{coach_id}.

    200 -> known, 404 -> unknown. Anything else (or a transport error) is not
    an answer and raises CoachDirectoryUnavailable; unknown-coach decisions
    are never recorded on a guess.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 3.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def is_known(self, coach_id: str) -> bool:
        # One path segment: "/", "?" and "#" in an id must not change the lookup
        url = f"{self.base_url}/coaches/{quote(coach_id, safe='')}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Coach directory unreachable: %s", exc, extra={"coach_id": coach_id})
            raise CoachDirectoryUnavailable(f"coach directory unreachable: {exc}") from exc

        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        logger.warning(
            "Coach directory returned %s",
            resp.status_code,
            extra={"coach_id": coach_id},
        )
        raise CoachDirectoryUnavailable(
            f"coach directory returned HTTP {resp.status_code}",
            status_code=resp.status_code,
        )


def build_coach_directory(settings: Optional[Settings] = None) -> CoachDirectory:
    """Pick the directory implementation from settings."""
    settings = settings or get_settings()
    if settings.coach_directory_url:
        return HttpCoachDirectory(
            settings.coach_directory_url,
            timeout_seconds=settings.coach_directory_timeout_seconds,
        )
    if settings.known_coach_ids:
        return StaticCoachDirectory(settings.known_coach_ids)
    return PatternCoachDirectory(settings.coach_id_pattern)
