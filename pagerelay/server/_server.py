"""HTTP front end -- CORS, path mapping, and JSON replies for the relay."""

import asyncio
import json
import logging
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Mapping

from pagerelay._config import RelayConfig
from pagerelay._methods import SUPPORTED_METHODS
from pagerelay._models import RelayRequest
from pagerelay._relay import Relay

logger = logging.getLogger("pagerelay")

DEFAULT_PORT = 3000
DEFAULT_MAX_BROWSERS = 4
DEFAULT_SLOT_TIMEOUT = 60.0

_API_PREFIX = "/api/"


@dataclass(frozen=True)
class CorsPolicy:
    """Cross-origin headers applied to every response."""

    origin: str = "*"
    methods: tuple[str, ...] = SUPPORTED_METHODS
    headers: tuple[str, ...] = ("Content-Type", "Accept", "Authorization")

    def response_headers(self) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.origin,
            "Access-Control-Allow-Methods": ",".join(self.methods),
            "Access-Control-Allow-Headers": ",".join(self.headers),
        }


def map_path(raw_path: str) -> str:
    """``/api/users/1?x=2`` -> ``users/1?x=2``; other paths lose the
    leading slash only."""
    path, sep, query = raw_path.partition("?")
    if path.startswith(_API_PREFIX):
        path = path[len(_API_PREFIX):]
    else:
        path = path.lstrip("/")
    return path + sep + query


def parse_json_body(raw_body: bytes) -> dict[str, Any] | None:
    """Decode an inbound JSON object body; empty means None.

    Raises ValueError for malformed JSON or a non-object payload.
    """
    if not raw_body or not raw_body.strip():
        return None
    try:
        body = json.loads(raw_body)
    except ValueError as exc:
        raise ValueError(f"Malformed JSON body: {exc}") from None
    if not isinstance(body, dict):
        raise ValueError("Request body must be a JSON object")
    return body


def _no_body(status: int) -> bool:
    return 100 <= status < 200 or status in (204, 304)


def _json_reply(
    status: int, data: Any, headers: dict[str, str]
) -> tuple[int, dict[str, str], bytes]:
    out = dict(headers)
    if _no_body(status):
        return status, out, b""
    out["Content-Type"] = "application/json; charset=utf-8"
    return status, out, json.dumps(data, allow_nan=False).encode("utf-8")


def dispatch(
    relay: Relay,
    cors: CorsPolicy,
    method: str,
    raw_path: str,
    headers: Mapping[str, str],
    raw_body: bytes,
    slots: threading.Semaphore | None = None,
    slot_timeout: float = DEFAULT_SLOT_TIMEOUT,
) -> tuple[int, dict[str, str], bytes]:
    """Turn one inbound HTTP request into ``(status, headers, body)``.

    OPTIONS is answered here with 204 and never reaches the relay.
    *slots* bounds how many browsers run at once across threads; a
    request that cannot get one within *slot_timeout* seconds gets 503.
    """
    cors_headers = cors.response_headers()
    method = method.upper()

    if method == "OPTIONS":
        return 204, cors_headers, b""
    if method not in cors.methods:
        return _json_reply(
            405,
            {"error": True, "message": f"Method {method} not allowed"},
            cors_headers,
        )

    try:
        body = parse_json_body(raw_body)
    except ValueError as exc:
        return _json_reply(
            400, {"error": True, "message": str(exc)}, cors_headers
        )

    request = RelayRequest(
        path=map_path(raw_path),
        method=method,
        body=body,
        headers=dict(headers),
    )
    if slots is None:
        result = asyncio.run(relay.relay(request))
    else:
        if not slots.acquire(timeout=slot_timeout):
            logger.warning(
                "No browser slot free after %.1fs for %s %s",
                slot_timeout,
                method,
                raw_path,
            )
            return _json_reply(
                503,
                {"error": True, "message": "All browser slots are busy"},
                cors_headers,
            )
        try:
            result = asyncio.run(relay.relay(request))
        finally:
            slots.release()
    return _json_reply(result.status, result.data, cors_headers)


class RelayServer(ThreadingHTTPServer):
    """Threaded server carrying its relay, CORS policy and browser cap."""

    daemon_threads = True

    def __init__(
        self,
        address: tuple[str, int],
        relay: Relay,
        cors: CorsPolicy | None = None,
        max_browsers: int = DEFAULT_MAX_BROWSERS,
        slot_timeout: float = DEFAULT_SLOT_TIMEOUT,
    ):
        super().__init__(address, RelayHandler)
        self.relay = relay
        self.cors = cors or CorsPolicy()
        self.browser_slots = threading.BoundedSemaphore(max_browsers)
        self.slot_timeout = slot_timeout


class RelayHandler(BaseHTTPRequestHandler):
    server: RelayServer

    def log_message(self, format, *args):  # noqa: A002
        logger.info("%s - %s", self.address_string(), format % args)

    def _send(self, status: int, headers: dict[str, str], body: bytes):
        self.send_response(status)
        for key, value in headers.items():
            self.send_header(key, value)
        if not _no_body(status):
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def _handle(self) -> None:
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            self._send(*_json_reply(
                400,
                {"error": True, "message": "Invalid Content-Length"},
                self.server.cors.response_headers(),
            ))
            return
        raw_body = self.rfile.read(length) if length > 0 else b""

        try:
            reply = dispatch(
                self.server.relay,
                self.server.cors,
                self.command,
                self.path,
                dict(self.headers.items()),
                raw_body,
                slots=self.server.browser_slots,
                slot_timeout=self.server.slot_timeout,
            )
        except Exception as exc:
            logger.error(
                "Unhandled error serving %s %s",
                self.command,
                self.path,
                exc_info=True,
            )
            reply = _json_reply(
                500,
                {"error": True, "message": f"Internal error: {exc}"},
                self.server.cors.response_headers(),
            )
        self._send(*reply)

    do_GET = _handle  # noqa: N815
    do_POST = _handle  # noqa: N815
    do_PUT = _handle  # noqa: N815
    do_PATCH = _handle  # noqa: N815
    do_DELETE = _handle  # noqa: N815
    do_OPTIONS = _handle  # noqa: N815


def run_server(
    config: RelayConfig,
    host: str = "0.0.0.0",
    port: int = DEFAULT_PORT,
    max_browsers: int = DEFAULT_MAX_BROWSERS,
    cors: CorsPolicy | None = None,
    slot_timeout: float = DEFAULT_SLOT_TIMEOUT,
) -> None:
    server = RelayServer(
        (host, port),
        Relay(config),
        cors=cors,
        max_browsers=max_browsers,
        slot_timeout=slot_timeout,
    )
    logger.info(
        "Relay for %s listening on http://%s:%d (max %d browsers)",
        config.origin,
        host,
        port,
        max_browsers,
    )
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Stopping relay server")
    finally:
        server.server_close()
