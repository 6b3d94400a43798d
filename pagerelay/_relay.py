"""Relay -- the per-request orchestration entry point."""

import logging

from pagerelay._config import RelayConfig
from pagerelay._models import RelayRequest, RelayResult, SecurityArtifacts
from pagerelay.browser._challenge import resolve
from pagerelay.browser._driver import BrowserDriver, PatchrightDriver
from pagerelay.browser._fetch import execute
from pagerelay.browser._session import browser_session
from pagerelay.browser._token import extract

logger = logging.getLogger("pagerelay")


class Relay:
    """Forwards requests through a fresh challenge-cleared browser.

    Every call launches its own browser, clears the origin challenge,
    reads the anti-forgery token for mutating verbs, runs the request
    as an in-page fetch, and closes the browser.  Nothing is cached
    between calls and nothing is retried.

    Results:
    - upstream answered: its status and body, verbatim
    - in-page fetch threw: 500 ``{"message": ...}``
    - relay could not get there (launch, challenge, other faults):
      502 ``{"error": True, "message": "Proxy error: ..."}``
    """

    def __init__(
        self,
        config: RelayConfig,
        driver: BrowserDriver | None = None,
    ):
        self.config = config
        self._driver = driver or PatchrightDriver(config)

    async def relay(self, request: RelayRequest) -> RelayResult:
        logger.info(
            "Relaying request: %s to %s%s",
            request.method,
            self.config.api_prefix,
            request.path,
        )
        try:
            async with browser_session(self._driver) as session:
                cookie = await resolve(self._driver, session, self.config)

                artifacts = SecurityArtifacts(session_cookie=cookie)
                if request.is_mutating:
                    token, source = await extract(
                        self._driver, session, self.config
                    )
                    artifacts = SecurityArtifacts(
                        session_cookie=cookie,
                        anti_forgery_token=token,
                        token_source=source,
                    )
                    if token and self.config.token_body_field:
                        request = request.with_body_field(
                            self.config.token_body_field, token
                        )

                result = await execute(
                    self._driver, session, request, artifacts, self.config
                )
        except Exception as exc:
            logger.warning(
                "Relay of %s %s failed", request.method, request.path,
                exc_info=True,
            )
            return RelayResult(
                status=502,
                data={"error": True, "message": f"Proxy error: {exc}"},
            )

        logger.info("Relay finished with status %d", result.status)
        return result
