"""Verb translation policy for upstreams that only route GET/POST."""

from dataclasses import dataclass
from typing import Any

SUPPORTED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")

DEFAULT_SPOOF_METHODS = frozenset({"PUT", "PATCH"})
DEFAULT_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


@dataclass(frozen=True)
class MethodPolicy:
    """Table of verbs rewritten to ``spoof_as`` with the original verb
    smuggled in the body under ``field`` (Laravel/Rails ``_method``).

    ``body_methods`` is the set of wire verbs allowed to carry a body.
    """

    spoof: frozenset = DEFAULT_SPOOF_METHODS
    spoof_as: str = "POST"
    field: str = "_method"
    body_methods: frozenset = DEFAULT_BODY_METHODS

    @classmethod
    def passthrough(cls) -> "MethodPolicy":
        """Policy for upstreams that accept every verb natively."""
        return cls(spoof=frozenset())

    def translate(
        self, method: str, body: dict[str, Any] | None
    ) -> tuple[str, dict[str, Any] | None]:
        """Return ``(wire_method, body)``; never mutates *body*."""
        method = method.upper()
        if method not in self.spoof:
            return method, body
        spoofed = dict(body or {})
        spoofed[self.field] = method
        return self.spoof_as, spoofed

    def carries_body(
        self, method: str, body: dict[str, Any] | None
    ) -> bool:
        return bool(body) and method.upper() in self.body_methods
