"""Request/result value types passed between relay components."""

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from pagerelay._methods import SUPPORTED_METHODS


@dataclass(frozen=True)
class RelayRequest:
    """One inbound call to relay upstream.

    ``path`` is upstream-relative (``users/1``, ``menu?page=2``).
    Immutable: derived fields such as ``_token`` are added with
    :meth:`with_body_field`, which returns a copy.
    """

    path: str
    method: str = "GET"
    body: dict[str, Any] | None = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        method = (self.method or "").upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "path", self.path.lstrip("/"))
        object.__setattr__(self, "headers", dict(self.headers or {}))

    @property
    def is_mutating(self) -> bool:
        if self.method in ("POST", "PUT", "PATCH"):
            return True
        return self.method == "DELETE" and bool(self.body)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        lower = name.lower()
        for k, v in self.headers.items():
            if k.lower() == lower:
                return v
        return None

    def with_body_field(self, name: str, value: Any) -> "RelayRequest":
        body = dict(self.body or {})
        body[name] = value
        return replace(self, body=body)


@dataclass(frozen=True)
class SecurityArtifacts:
    """Evidence read from a solved browser session."""

    session_cookie: dict | None = None
    anti_forgery_token: str | None = None
    token_source: str | None = None


@dataclass(frozen=True)
class RelayResult:
    """Terminal ``{status, data}`` pair returned to the caller."""

    status: int
    data: Any

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "data": self.data}
