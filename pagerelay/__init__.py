"""pagerelay -- relay API calls through a challenge-cleared browser page."""

import logging
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Mapping

try:
    __version__ = version("pagerelay")
except PackageNotFoundError:
    __version__ = "0.0.0"

from pagerelay._config import RelayConfig
from pagerelay._errors import (
    ChallengeTimeoutError,
    LaunchError,
    RelayError,
    UpstreamCallError,
)
from pagerelay._methods import SUPPORTED_METHODS, MethodPolicy
from pagerelay._models import RelayRequest, RelayResult, SecurityArtifacts
from pagerelay._relay import Relay

__all__ = [
    "__version__",
    "Relay",
    "RelayConfig",
    "RelayRequest",
    "RelayResult",
    "SecurityArtifacts",
    "MethodPolicy",
    "SUPPORTED_METHODS",
    "RelayError",
    "LaunchError",
    "ChallengeTimeoutError",
    "UpstreamCallError",
    "relay",
]

# Silent by default; callers opt in via logging.getLogger("pagerelay").setLevel(...)
logging.getLogger("pagerelay").addHandler(logging.NullHandler())


async def relay(
    path: str,
    method: str = "GET",
    body: dict[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    config: RelayConfig | None = None,
) -> RelayResult:
    """Module-level convenience: one relayed call.

    Reads ``RELAY_*`` environment variables when *config* is omitted.
    """
    if config is None:
        config = RelayConfig.from_env()
    request = RelayRequest(
        path=path, method=method, body=body, headers=headers or {}
    )
    return await Relay(config).relay(request)
