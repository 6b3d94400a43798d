"""Browser-side relay steps via patchright (patched Playwright)."""

from pagerelay.browser._challenge import find_session_cookie, resolve
from pagerelay.browser._driver import (
    BrowserDriver,
    BrowserSession,
    PatchrightDriver,
)
from pagerelay.browser._fetch import execute, parse_body
from pagerelay.browser._session import acquire, browser_session, release
from pagerelay.browser._token import extract

__all__ = [
    "BrowserDriver",
    "BrowserSession",
    "PatchrightDriver",
    "acquire",
    "release",
    "browser_session",
    "resolve",
    "find_session_cookie",
    "extract",
    "execute",
    "parse_body",
]
