"""Launch the relay HTTP server.

Usage:
    python -m pagerelay.server [--origin URL] [--port PORT]
"""

import argparse
import logging
import os

from pagerelay._config import RelayConfig
from pagerelay.server._server import (
    DEFAULT_MAX_BROWSERS,
    DEFAULT_PORT,
    DEFAULT_SLOT_TIMEOUT,
    run_server,
)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Relay API calls through a challenge-cleared browser",
    )
    parser.add_argument(
        "--origin",
        help="Upstream origin (default: $RELAY_ORIGIN)",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", DEFAULT_PORT)),
        help="Server port (default: $PORT or 3000)",
    )
    parser.add_argument(
        "--max-browsers",
        type=int,
        default=DEFAULT_MAX_BROWSERS,
        help="Concurrent browser instances",
    )
    parser.add_argument(
        "--slot-timeout",
        type=float,
        default=DEFAULT_SLOT_TIMEOUT,
        help="Seconds to wait for a free browser before answering 503",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    env = dict(os.environ)
    if args.origin:
        env["RELAY_ORIGIN"] = args.origin
    try:
        config = RelayConfig.from_env(env)
    except ValueError as exc:
        parser.error(str(exc))

    if args.max_browsers < 1:
        parser.error("--max-browsers must be at least 1")
    if args.slot_timeout <= 0:
        parser.error("--slot-timeout must be positive")

    run_server(
        config,
        host=args.host,
        port=args.port,
        max_browsers=args.max_browsers,
        slot_timeout=args.slot_timeout,
    )


if __name__ == "__main__":
    main()
