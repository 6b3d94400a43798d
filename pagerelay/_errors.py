"""Typed exceptions for pagerelay."""


class RelayError(Exception):
    """Base exception for all pagerelay errors."""


class LaunchError(RelayError):
    """The browser engine could not be started."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Browser launch failed: {reason}")


class ChallengeTimeoutError(RelayError, TimeoutError):
    """Origin navigation did not settle within its budget."""

    def __init__(self, url: str, timeout_secs: float, reason: str = ""):
        self.url = url
        self.timeout_secs = timeout_secs
        self.reason = reason
        msg = f"Challenge at {url} did not settle within {timeout_secs:.1f}s"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class UpstreamCallError(RelayError):
    """The in-page fetch to the upstream threw."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(reason)
