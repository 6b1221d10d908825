"""Error hierarchy shared by the GitHub pipeline and the calendar client."""

from __future__ import annotations


class StandupError(Exception):
    """Base exception for all standup errors."""


class TransportError(StandupError):
    """Connection, DNS, TLS or timeout failure talking to a remote API."""


class HttpStatusError(StandupError):
    """Remote API answered with a non-2xx status."""

    def __init__(self, status_code: int, url: str, detail: str = "") -> None:
        self.status_code = status_code
        self.url = url
        message = f"incorrect response status {status_code} for {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RateLimitError(HttpStatusError):
    """Raised when the GitHub rate limit is exhausted. Never retried."""

    def __init__(self, status_code: int, url: str, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(status_code, url, f"rate limit exceeded, retry after {retry_after}s")


class DecodeError(StandupError):
    """Response body is not JSON or does not have the expected shape."""


class ConfigurationError(StandupError):
    """Missing or invalid credentials, config file or calendar state."""
