"""Anti-forgery (CSRF) token lookup on the settled origin page."""

import logging
from urllib.parse import unquote

from pagerelay._config import RelayConfig
from pagerelay.browser._driver import BrowserDriver, BrowserSession

logger = logging.getLogger("pagerelay")


async def extract(
    driver: BrowserDriver,
    session: BrowserSession,
    config: RelayConfig,
) -> tuple[str | None, str | None]:
    """Return ``(token, source)`` where source is meta, form or cookie.

    Tried in order: meta tag attribute, hidden form field, then the
    token cookie (URL-decoded).  ``(None, None)`` when nothing is
    found; the caller proceeds without a token.
    """
    timeout_ms = int(config.selector_timeout * 1000)

    token = await driver.read_attribute(
        session,
        config.token_meta_selector,
        config.token_meta_attribute,
        timeout_ms,
    )
    if token:
        logger.debug("Anti-forgery token from meta tag")
        return token, "meta"

    token = await driver.read_attribute(
        session, config.token_input_selector, "value", timeout_ms
    )
    if token:
        logger.debug("Anti-forgery token from hidden form field")
        return token, "form"

    cookies = await driver.cookies(session, config.origin_url)
    for c in cookies:
        if c.get("name") == config.token_cookie_name and c.get("value"):
            logger.debug(
                "Anti-forgery token from %s cookie", config.token_cookie_name
            )
            return unquote(c["value"]), "cookie"

    logger.warning(
        "No anti-forgery token found at %s; sending without one",
        config.origin_url,
    )
    return None, None
