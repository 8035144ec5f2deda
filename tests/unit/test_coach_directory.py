"""Unit tests for coach identity lookups."""

import httpx
import pytest

from certgate.config import Settings
from certgate.errors import CoachDirectoryUnavailable
from certgate.kernel.identity.coach_directory import (
    HttpCoachDirectory,
    PatternCoachDirectory,
    StaticCoachDirectory,
    build_coach_directory,
)


def directory_returning(status_code: int) -> HttpCoachDirectory:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/coaches/coach-1"
        return httpx.Response(status_code, json={})

    return HttpCoachDirectory("http://identity.test/", transport=httpx.MockTransport(handler))


class TestPatternDirectory:
    @pytest.mark.asyncio
    async def test_well_formed_ids(self):
        directory = PatternCoachDirectory(Settings().coach_id_pattern)
        assert await directory.is_known("coach-1")
        assert await directory.is_known("c_2.x:y")
        assert not await directory.is_known("")
        assert not await directory.is_known("-leading-dash")
        assert not await directory.is_known("has space")
        assert not await directory.is_known("x" * 65)


class TestStaticDirectory:
    @pytest.mark.asyncio
    async def test_allow_list(self):
        directory = StaticCoachDirectory(["coach-1", "coach-2"])
        assert await directory.is_known("coach-2")
        assert not await directory.is_known("coach-3")


class TestHttpDirectory:
    """Identity service answers."""

    @pytest.mark.asyncio
    async def test_found(self):
        assert await directory_returning(200).is_known("coach-1")

    @pytest.mark.asyncio
    async def test_not_found(self):
        assert not await directory_returning(404).is_known("coach-1")

    @pytest.mark.asyncio
    async def test_server_error_is_not_an_answer(self):
        with pytest.raises(CoachDirectoryUnavailable) as exc_info:
            await directory_returning(502).is_known("coach-1")
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        directory = HttpCoachDirectory("http://identity.test", transport=httpx.MockTransport(handler))
        with pytest.raises(CoachDirectoryUnavailable):
            await directory.is_known("coach-1")


class TestCoachIdEscaping:
    """The id is sent as a single path segment."""

    @staticmethod
    def only_coach_1() -> HttpCoachDirectory:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.raw_path == b"/coaches/coach-1":
                return httpx.Response(200, json={})
            return httpx.Response(404, json={})

        return HttpCoachDirectory("http://identity.test", transport=httpx.MockTransport(handler))

    @pytest.mark.parametrize("coach_id", ["coach-1#forged", "coach-1?x=forged", "coach-1/forged", "coach-1/../coach-1"])
    @pytest.mark.asyncio
    async def test_reserved_characters_do_not_alias_another_coach(self, coach_id):
        assert not await self.only_coach_1().is_known(coach_id)

    @pytest.mark.asyncio
    async def test_plain_id_still_found(self):
        assert await self.only_coach_1().is_known("coach-1")


class TestBuildCoachDirectory:
    def test_url_selects_http(self):
        settings = Settings(coach_directory_url="http://identity.test", known_coach_ids=["a"])
        assert isinstance(build_coach_directory(settings), HttpCoachDirectory)

    def test_known_ids_select_static(self):
        settings = Settings(coach_directory_url="", known_coach_ids=["a"])
        assert isinstance(build_coach_directory(settings), StaticCoachDirectory)

    def test_default_is_pattern(self):
        settings = Settings(coach_directory_url="", known_coach_ids=[])
        assert isinstance(build_coach_directory(settings), PatternCoachDirectory)
