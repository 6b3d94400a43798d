"""Origin navigation: let the verification challenge run and settle."""

import asyncio
import logging

from pagerelay._config import RelayConfig
from pagerelay._errors import ChallengeTimeoutError
from pagerelay.browser._driver import BrowserDriver, BrowserSession

logger = logging.getLogger("pagerelay")

# Outer bound on top of the engine's own navigation timeout, so a
# driver that never returns still unwinds.
_NAVIGATION_GRACE = 1.0


def find_session_cookie(
    cookies: list[dict], name: str | None = None
) -> dict | None:
    """Pick the session-identity cookie.

    Exact match on *name* when given, otherwise the first cookie whose
    name contains ``"session"`` (case-insensitive).
    """
    for c in cookies:
        cookie_name = c.get("name", "")
        if name is not None:
            if cookie_name == name:
                return c
        elif "session" in cookie_name.lower():
            return c
    return None


async def resolve(
    driver: BrowserDriver,
    session: BrowserSession,
    config: RelayConfig,
) -> dict | None:
    """Navigate to the origin and wait for network quiescence.

    Returns the session cookie, or None (with a warning) when the
    origin has not set one yet; the upstream call is still attempted.
    Raises ``ChallengeTimeoutError`` if navigation fails or does not
    settle within ``config.challenge_timeout``.
    """
    url = config.origin_url
    timeout = config.challenge_timeout

    logger.info("Navigating to %s to clear the challenge", url)
    try:
        await asyncio.wait_for(
            driver.navigate(session, url, int(timeout * 1000)),
            timeout=timeout + _NAVIGATION_GRACE,
        )
    except asyncio.TimeoutError as exc:
        raise ChallengeTimeoutError(url, timeout) from exc
    except Exception as exc:
        raise ChallengeTimeoutError(url, timeout, str(exc)) from exc

    if config.ready_selector:
        found = await driver.wait_for_selector(
            session,
            config.ready_selector,
            int(config.selector_timeout * 1000),
        )
        if not found:
            logger.debug(
                "Ready selector %s absent after settling",
                config.ready_selector,
            )

    cookies = await driver.cookies(session, url)
    cookie = find_session_cookie(cookies, config.session_cookie_name)
    if cookie is None:
        logger.warning(
            "No session cookie after settling at %s (%d cookies); "
            "continuing",
            url,
            len(cookies),
        )
    else:
        logger.info(
            "Challenge settled at %s (cookie %s)", url, cookie["name"]
        )
    return cookie
