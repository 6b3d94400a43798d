"""Browser capability interface and its patchright implementation.

The relay core only talks to a ``BrowserDriver``: launch, open a page,
navigate and wait, read cookies, read a page value, evaluate a script
in the page, and close.  ``PatchrightDriver`` backs it with a real
Chromium via patchright (patched Playwright); tests substitute a fake.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from pagerelay._config import RelayConfig
from pagerelay._errors import LaunchError

logger = logging.getLogger("pagerelay")


@dataclass
class BrowserSession:
    """Handle for one isolated browser instance and its single page.

    Owned by exactly one relay run; never shared or reused.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    playwright: Any = None
    browser: Any = None
    context: Any = None
    page: Any = None
    closed: bool = False


class BrowserDriver:
    """Capability interface the relay core is written against.

    All methods are coroutines.  ``launch`` raises ``LaunchError``;
    ``close`` must tolerate a partially built session and never raise.
    """

    async def launch(self) -> BrowserSession:
        raise NotImplementedError

    async def open_page(self, session: BrowserSession) -> None:
        raise NotImplementedError

    async def navigate(
        self, session: BrowserSession, url: str, timeout_ms: int
    ) -> None:
        """Navigate and wait for network idle, bounded by *timeout_ms*."""
        raise NotImplementedError

    async def wait_for_selector(
        self, session: BrowserSession, selector: str, timeout_ms: int
    ) -> bool:
        raise NotImplementedError

    async def cookies(
        self, session: BrowserSession, url: str
    ) -> list[dict]:
        """Cookies the page context would send to *url*."""
        raise NotImplementedError

    async def read_attribute(
        self,
        session: BrowserSession,
        selector: str,
        attribute: str,
        timeout_ms: int,
    ) -> str | None:
        """Attribute of the first element matching *selector*, or None."""
        raise NotImplementedError

    async def evaluate(
        self, session: BrowserSession, script: str, arg: Any = None
    ) -> Any:
        raise NotImplementedError

    async def close(self, session: BrowserSession) -> None:
        raise NotImplementedError


class PatchrightDriver(BrowserDriver):
    """Launches a fresh headless Chromium per session via patchright."""

    def __init__(self, config: RelayConfig):
        self._config = config

    async def launch(self) -> BrowserSession:
        try:
            from patchright.async_api import async_playwright
        except ImportError:
            raise LaunchError(
                "patchright is not installed. "
                "Install with: pip install patchright "
                "&& patchright install chromium"
            ) from None

        cfg = self._config
        session = BrowserSession()
        launch_kwargs: dict[str, Any] = {
            "headless": cfg.headless,
            "args": list(cfg.launch_args),
            "timeout": int(cfg.launch_timeout * 1000),
        }
        if cfg.executable_path:
            launch_kwargs["executable_path"] = cfg.executable_path
        if cfg.channel:
            launch_kwargs["channel"] = cfg.channel

        try:
            session.playwright = await async_playwright().start()
            session.browser = await session.playwright.chromium.launch(
                **launch_kwargs
            )
        except Exception as exc:
            await self.close(session)
            raise LaunchError(str(exc)) from exc

        logger.info(
            "Browser launched (session=%s, headless=%s)",
            session.session_id,
            cfg.headless,
        )
        return session

    async def open_page(self, session: BrowserSession) -> None:
        session.context = await session.browser.new_context(
            ignore_https_errors=self._config.ignore_https_errors,
        )
        session.page = await session.context.new_page()

    async def navigate(
        self, session: BrowserSession, url: str, timeout_ms: int
    ) -> None:
        await session.page.goto(
            url, wait_until="networkidle", timeout=timeout_ms
        )

    async def wait_for_selector(
        self, session: BrowserSession, selector: str, timeout_ms: int
    ) -> bool:
        try:
            await session.page.wait_for_selector(
                selector, state="attached", timeout=timeout_ms
            )
            return True
        except Exception:
            logger.debug("Selector %s not found", selector)
            return False

    async def cookies(
        self, session: BrowserSession, url: str
    ) -> list[dict]:
        return await session.context.cookies([url])

    async def read_attribute(
        self,
        session: BrowserSession,
        selector: str,
        attribute: str,
        timeout_ms: int,
    ) -> str | None:
        locator = session.page.locator(selector).first
        try:
            return await locator.get_attribute(
                attribute, timeout=timeout_ms
            )
        except Exception:
            logger.debug("No %s[%s] on page", selector, attribute)
            return None

    async def evaluate(
        self, session: BrowserSession, script: str, arg: Any = None
    ) -> Any:
        return await session.page.evaluate(script, arg)

    async def close(self, session: BrowserSession) -> None:
        # Innermost first; each step tolerates a half-built session
        for attr, method in (
            ("page", "close"),
            ("context", "close"),
            ("browser", "close"),
            ("playwright", "stop"),
        ):
            handle = getattr(session, attr)
            if handle is None:
                continue
            try:
                await getattr(handle, method)()
            except Exception:
                logger.debug(
                    "Failed to close %s (session=%s)",
                    attr,
                    session.session_id,
                    exc_info=True,
                )
            setattr(session, attr, None)
