"""Tests for per-request browser acquire/release."""

import pytest

from pagerelay import LaunchError
from pagerelay.browser import acquire, browser_session, release
from tests.conftest import FakeDriver


class TestAcquire:
    @pytest.mark.asyncio
    async def test_returns_session_with_page(self):
        driver = FakeDriver()
        session = await acquire(driver)
        assert session.page is not None
        assert session.closed is False
        assert driver.acquire_count == 1

    @pytest.mark.asyncio
    async def test_launch_error_propagates(self):
        driver = FakeDriver(launch_error=LaunchError("no chromium"))
        with pytest.raises(LaunchError, match="no chromium"):
            await acquire(driver)
        assert driver.release_count == 0

    @pytest.mark.asyncio
    async def test_other_launch_faults_become_launch_error(self):
        driver = FakeDriver(launch_error=OSError("out of memory"))
        with pytest.raises(LaunchError, match="out of memory"):
            await acquire(driver)

    @pytest.mark.asyncio
    async def test_partial_session_released_when_page_fails(self):
        """Browser came up but the page did not: still closed."""
        driver = FakeDriver(open_page_error=RuntimeError("target closed"))
        with pytest.raises(LaunchError, match="could not open page"):
            await acquire(driver)
        assert driver.acquire_count == 1
        assert driver.release_count == 1
        assert driver.launched[0].closed is True


class TestRelease:
    @pytest.mark.asyncio
    async def test_release_is_idempotent(self):
        driver = FakeDriver()
        session = await acquire(driver)
        await release(driver, session)
        await release(driver, session)
        assert driver.release_count == 1
        assert session.closed is True

    @pytest.mark.asyncio
    async def test_close_errors_swallowed(self):
        driver = FakeDriver(close_error=RuntimeError("already gone"))
        session = await acquire(driver)
        await release(driver, session)
        assert session.closed is True


class TestBrowserSession:
    @pytest.mark.asyncio
    async def test_released_on_normal_exit(self):
        driver = FakeDriver()
        async with browser_session(driver) as session:
            assert session.closed is False
        assert session.closed is True
        assert driver.release_count == 1

    @pytest.mark.asyncio
    async def test_released_on_exception(self):
        driver = FakeDriver()
        with pytest.raises(ValueError):
            async with browser_session(driver):
                raise ValueError("boom")
        assert driver.release_count == 1

    @pytest.mark.asyncio
    async def test_sessions_are_distinct(self):
        driver = FakeDriver()
        async with browser_session(driver) as first:
            pass
        async with browser_session(driver) as second:
            pass
        assert first.session_id != second.session_id
        assert driver.closed == [first.session_id, second.session_id]
