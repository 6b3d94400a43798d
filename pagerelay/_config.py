"""RelayConfig -- upstream, browser and timing settings."""

import os
from dataclasses import dataclass, field
from typing import Mapping

from pagerelay._methods import MethodPolicy

DEFAULT_API_PREFIX = "/api/"

# Restricted hosts (containers, serverless) have no usable setuid sandbox
DEFAULT_LAUNCH_ARGS = ("--no-sandbox", "--disable-setuid-sandbox")

DEFAULT_LAUNCH_TIMEOUT = 30.0
DEFAULT_CHALLENGE_TIMEOUT = 15.0
DEFAULT_SELECTOR_TIMEOUT = 2.0
DEFAULT_FETCH_TIMEOUT = 30.0

DEFAULT_TOKEN_META_SELECTOR = 'meta[name="csrf-token"]'
DEFAULT_TOKEN_META_ATTRIBUTE = "content"
DEFAULT_TOKEN_INPUT_SELECTOR = 'input[name="_token"]'
DEFAULT_TOKEN_COOKIE_NAME = "XSRF-TOKEN"
DEFAULT_TOKEN_HEADER = "X-CSRF-TOKEN"
DEFAULT_COOKIE_TOKEN_HEADER = "X-XSRF-TOKEN"
DEFAULT_TOKEN_BODY_FIELD = "_token"

_TRUE = ("1", "true", "yes", "on")
_FALSE = ("0", "false", "no", "off")


def _parse_bool(name: str, value: str) -> bool:
    lower = value.strip().lower()
    if lower in _TRUE:
        return True
    if lower in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _parse_seconds(name: str, value: str) -> float:
    try:
        secs = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if secs <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return secs


@dataclass(frozen=True)
class RelayConfig:
    """Settings for one upstream.

    Only ``origin`` is required. ``session_cookie_name=None`` matches
    the first origin cookie whose name contains ``"session"``.
    ``token_body_field=None`` sends the anti-forgery token in the
    header only.
    """

    origin: str
    api_prefix: str = DEFAULT_API_PREFIX

    headless: bool = True
    launch_args: tuple[str, ...] = DEFAULT_LAUNCH_ARGS
    executable_path: str | None = None
    channel: str | None = None
    ignore_https_errors: bool = True
    launch_timeout: float = DEFAULT_LAUNCH_TIMEOUT

    challenge_timeout: float = DEFAULT_CHALLENGE_TIMEOUT
    selector_timeout: float = DEFAULT_SELECTOR_TIMEOUT
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    ready_selector: str | None = None

    session_cookie_name: str | None = None
    token_meta_selector: str = DEFAULT_TOKEN_META_SELECTOR
    token_meta_attribute: str = DEFAULT_TOKEN_META_ATTRIBUTE
    token_input_selector: str = DEFAULT_TOKEN_INPUT_SELECTOR
    token_cookie_name: str = DEFAULT_TOKEN_COOKIE_NAME
    token_header: str = DEFAULT_TOKEN_HEADER
    cookie_token_header: str = DEFAULT_COOKIE_TOKEN_HEADER
    token_body_field: str | None = DEFAULT_TOKEN_BODY_FIELD

    method_policy: MethodPolicy = field(default_factory=MethodPolicy)

    def __post_init__(self):
        if not self.origin:
            raise ValueError("origin is required")
        object.__setattr__(self, "origin", self.origin.rstrip("/"))
        prefix = "/" + self.api_prefix.strip("/") + "/"
        if prefix == "//":
            prefix = "/"
        object.__setattr__(self, "api_prefix", prefix)

    @property
    def origin_url(self) -> str:
        """Navigation target that triggers the challenge (origin root)."""
        return self.origin + "/"

    def target_url(self, path: str) -> str:
        return f"{self.origin}{self.api_prefix}{path.lstrip('/')}"

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None
    ) -> "RelayConfig":
        """Build a config from ``RELAY_*`` environment variables."""
        env = os.environ if environ is None else environ

        origin = env.get("RELAY_ORIGIN", "").strip()
        if not origin:
            raise ValueError("RELAY_ORIGIN is not set")

        kwargs: dict = {"origin": origin}
        if "RELAY_API_PREFIX" in env:
            kwargs["api_prefix"] = env["RELAY_API_PREFIX"]
        if "RELAY_HEADLESS" in env:
            kwargs["headless"] = _parse_bool(
                "RELAY_HEADLESS", env["RELAY_HEADLESS"]
            )
        if env.get("RELAY_EXECUTABLE_PATH"):
            kwargs["executable_path"] = env["RELAY_EXECUTABLE_PATH"]
        if env.get("RELAY_CHANNEL"):
            kwargs["channel"] = env["RELAY_CHANNEL"]
        if "RELAY_CHALLENGE_TIMEOUT" in env:
            kwargs["challenge_timeout"] = _parse_seconds(
                "RELAY_CHALLENGE_TIMEOUT", env["RELAY_CHALLENGE_TIMEOUT"]
            )
        if "RELAY_FETCH_TIMEOUT" in env:
            kwargs["fetch_timeout"] = _parse_seconds(
                "RELAY_FETCH_TIMEOUT", env["RELAY_FETCH_TIMEOUT"]
            )
        if env.get("RELAY_SESSION_COOKIE"):
            kwargs["session_cookie_name"] = env["RELAY_SESSION_COOKIE"]
        if env.get("RELAY_TOKEN_COOKIE"):
            kwargs["token_cookie_name"] = env["RELAY_TOKEN_COOKIE"]
        if env.get("RELAY_READY_SELECTOR"):
            kwargs["ready_selector"] = env["RELAY_READY_SELECTOR"]
        if "RELAY_SPOOF_METHODS" in env:
            spoof = frozenset(
                m.strip().upper()
                for m in env["RELAY_SPOOF_METHODS"].split(",")
                if m.strip()
            )
            kwargs["method_policy"] = MethodPolicy(spoof=spoof)
        return cls(**kwargs)
