"""In-page fetch: issue the upstream call from the browser's document.

Running the request inside the page means the challenge cookie and
same-origin state apply without the relay process ever touching the
upstream's network directly.
"""

import asyncio
import json
import logging
from typing import Any

from pagerelay._config import RelayConfig
from pagerelay._errors import UpstreamCallError
from pagerelay._models import RelayRequest, RelayResult, SecurityArtifacts
from pagerelay.browser._driver import BrowserDriver, BrowserSession

logger = logging.getLogger("pagerelay")

_FETCH_GRACE = 1.0

_FETCH_SCRIPT = """async ({url, method, headers, body, timeoutMs}) => {
  const controller = new AbortController();
  const timer = setTimeout(() => controller.abort(), timeoutMs);
  try {
    const options = {
      method,
      headers,
      credentials: 'include',
      signal: controller.signal,
    };
    if (body !== null) {
      options.body = body;
    }
    const res = await fetch(url, options);
    const text = await res.text();
    return {status: res.status, text};
  } catch (e) {
    return {error: String((e && e.message) || e)};
  } finally {
    clearTimeout(timer);
  }
}"""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_body(text: str) -> Any:
    """JSON-decode *text*, or return it unchanged (HTML error pages).

    ``NaN`` and ``Infinity`` are not JSON and stay raw text.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return text


def build_headers(
    request: RelayRequest,
    artifacts: SecurityArtifacts,
    config: RelayConfig,
) -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    token = artifacts.anti_forgery_token
    if token:
        # Cookie-sourced tokens go back under the cookie's header scheme
        if artifacts.token_source == "cookie":
            headers[config.cookie_token_header] = token
        else:
            headers[config.token_header] = token
    authorization = request.header("Authorization")
    if authorization:
        headers["Authorization"] = authorization
    return headers


async def _fetch_in_page(
    driver: BrowserDriver,
    session: BrowserSession,
    url: str,
    arg: dict[str, Any],
    timeout: float,
) -> dict:
    try:
        raw = await asyncio.wait_for(
            driver.evaluate(session, _FETCH_SCRIPT, arg),
            timeout=timeout + _FETCH_GRACE,
        )
    except asyncio.TimeoutError:
        raise UpstreamCallError(
            url, f"in-page fetch exceeded {timeout:.1f}s"
        ) from None
    except Exception as exc:
        raise UpstreamCallError(url, str(exc)) from exc

    if not isinstance(raw, dict):
        raise UpstreamCallError(url, f"unexpected fetch result: {raw!r}")
    if raw.get("error") is not None:
        raise UpstreamCallError(url, str(raw["error"]))
    if not isinstance(raw.get("status"), int):
        raise UpstreamCallError(url, "fetch result has no status")
    return raw


async def execute(
    driver: BrowserDriver,
    session: BrowserSession,
    request: RelayRequest,
    artifacts: SecurityArtifacts,
    config: RelayConfig,
) -> RelayResult:
    """Run *request* as a fetch inside the page and normalize the reply.

    Never raises: a failed in-page call becomes a 500 result.
    """
    url = config.target_url(request.path)
    policy = config.method_policy

    method, body = policy.translate(request.method, request.body)
    if method != request.method:
        logger.info("Spoofing %s request as %s", request.method, method)

    payload = None
    if policy.carries_body(method, body):
        payload = json.dumps(body)

    arg = {
        "url": url,
        "method": method,
        "headers": build_headers(request, artifacts, config),
        "body": payload,
        "timeoutMs": int(config.fetch_timeout * 1000),
    }

    try:
        raw = await _fetch_in_page(
            driver, session, url, arg, config.fetch_timeout
        )
    except UpstreamCallError as exc:
        logger.warning("In-page fetch to %s failed: %s", url, exc.reason)
        return RelayResult(status=500, data={"message": exc.reason})

    text = raw.get("text") or ""
    return RelayResult(status=raw["status"], data=parse_body(text))
