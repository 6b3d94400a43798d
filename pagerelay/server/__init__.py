"""Inbound HTTP adapter for the relay."""

from pagerelay.server._server import (
    CorsPolicy,
    RelayHandler,
    RelayServer,
    dispatch,
    map_path,
    parse_json_body,
    run_server,
)

__all__ = [
    "CorsPolicy",
    "RelayHandler",
    "RelayServer",
    "dispatch",
    "map_path",
    "parse_json_body",
    "run_server",
]
