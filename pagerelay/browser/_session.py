"""Per-request browser lifecycle: acquire, release, and scoped use."""

import logging
from contextlib import asynccontextmanager

from pagerelay._errors import LaunchError
from pagerelay.browser._driver import BrowserDriver, BrowserSession

logger = logging.getLogger("pagerelay")


async def acquire(driver: BrowserDriver) -> BrowserSession:
    """Launch an isolated browser and open its single page.

    If the page cannot be opened after the browser came up, the
    partial session is released before ``LaunchError`` is raised.
    """
    try:
        session = await driver.launch()
    except LaunchError:
        raise
    except Exception as exc:
        raise LaunchError(str(exc)) from exc
    try:
        await driver.open_page(session)
    except Exception as exc:
        await release(driver, session)
        raise LaunchError(f"could not open page: {exc}") from exc
    return session


async def release(driver: BrowserDriver, session: BrowserSession) -> None:
    """Close *session*; a second call is a no-op. Never raises."""
    if session.closed:
        return
    session.closed = True
    try:
        await driver.close(session)
    except Exception:
        logger.debug(
            "Browser close failed (session=%s)",
            session.session_id,
            exc_info=True,
        )
    logger.info("Browser closed (session=%s)", session.session_id)


@asynccontextmanager
async def browser_session(driver: BrowserDriver):
    """Scope one ``BrowserSession``; release runs on every exit path."""
    session = await acquire(driver)
    try:
        yield session
    finally:
        await release(driver, session)
