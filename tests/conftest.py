"""Shared fake browser driver and config factory for pagerelay tests."""

import asyncio
from urllib.parse import urlparse

from pagerelay import RelayConfig
from pagerelay.browser import BrowserDriver, BrowserSession

ORIGIN = "https://upstream.test"

# ---------------------------------------------------------------------------
# Fake browser driver
# ---------------------------------------------------------------------------


def upstream(status: int, text: str = "") -> dict:
    """In-page fetch result as returned by the fetch script."""
    return {"status": status, "text": text}


def cookie(name: str, value: str, domain: str = "upstream.test") -> dict:
    return {
        "name": name,
        "value": value,
        "domain": domain,
        "path": "/",
        "expires": -1,
        "httpOnly": True,
        "secure": True,
        "sameSite": "Lax",
    }


class FakeDriver(BrowserDriver):
    """Scripted stand-in for a real browser.

    Records every call so tests can assert ordering and the
    acquire/release balance.  ``fetch_result`` may be a dict, an
    Exception to raise from evaluate, or a callable taking the
    fetch argument dict.
    """

    def __init__(
        self,
        *,
        cookies: list[dict] | None = None,
        attributes: dict[tuple[str, str], str] | None = None,
        selectors: set[str] | None = None,
        fetch_result=None,
        launch_error: Exception | None = None,
        open_page_error: Exception | None = None,
        navigate_error: Exception | None = None,
        navigate_delay: float = 0.0,
        evaluate_delay: float = 0.0,
        close_error: Exception | None = None,
    ):
        self.cookie_list = list(cookies or [])
        self.attributes = dict(attributes or {})
        self.selectors = set(selectors or ())
        self.fetch_result = (
            fetch_result if fetch_result is not None else upstream(200, "{}")
        )
        self.launch_error = launch_error
        self.open_page_error = open_page_error
        self.navigate_error = navigate_error
        self.navigate_delay = navigate_delay
        self.evaluate_delay = evaluate_delay
        self.close_error = close_error

        self.launch_calls = 0
        self.launched: list[BrowserSession] = []
        self.closed: list[str] = []
        self.navigations: list[tuple[str, str, int]] = []
        self.selector_waits: list[str] = []
        self.attribute_reads: list[tuple[str, str]] = []
        self.cookie_reads: list[str] = []
        self.evaluations: list[dict] = []

    @property
    def acquire_count(self) -> int:
        return len(self.launched)

    @property
    def release_count(self) -> int:
        return len(self.closed)

    async def launch(self) -> BrowserSession:
        self.launch_calls += 1
        if self.launch_error is not None:
            raise self.launch_error
        session = BrowserSession(browser=object())
        self.launched.append(session)
        return session

    async def open_page(self, session: BrowserSession) -> None:
        if self.open_page_error is not None:
            raise self.open_page_error
        session.context = object()
        session.page = object()

    async def navigate(self, session, url, timeout_ms):
        self.navigations.append((session.session_id, url, timeout_ms))
        if self.navigate_delay:
            await asyncio.sleep(self.navigate_delay)
        if self.navigate_error is not None:
            raise self.navigate_error

    async def wait_for_selector(self, session, selector, timeout_ms):
        self.selector_waits.append(selector)
        return selector in self.selectors

    async def cookies(self, session, url):
        self.cookie_reads.append(url)
        host = urlparse(url).hostname or ""
        return [
            c for c in self.cookie_list
            if host.endswith(c.get("domain", host).lstrip("."))
        ]

    async def read_attribute(self, session, selector, attribute, timeout_ms):
        self.attribute_reads.append((selector, attribute))
        return self.attributes.get((selector, attribute))

    async def evaluate(self, session, script, arg=None):
        self.evaluations.append(arg)
        if self.evaluate_delay:
            await asyncio.sleep(self.evaluate_delay)
        if isinstance(self.fetch_result, Exception):
            raise self.fetch_result
        if callable(self.fetch_result):
            return self.fetch_result(arg)
        return self.fetch_result

    async def close(self, session):
        self.closed.append(session.session_id)
        if self.close_error is not None:
            raise self.close_error


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def make_config(**overrides) -> RelayConfig:
    """RelayConfig pointed at the fake origin with short timeouts."""
    overrides.setdefault("challenge_timeout", 1.0)
    overrides.setdefault("selector_timeout", 0.1)
    overrides.setdefault("fetch_timeout", 1.0)
    return RelayConfig(origin=ORIGIN, **overrides)
