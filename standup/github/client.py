"""Blocking GitHub REST client with Link-header pagination and error mapping."""

from __future__ import annotations

import re
import time
from typing import Any

import httpx
import structlog

from standup.errors import (
    ConfigurationError,
    DecodeError,
    HttpStatusError,
    RateLimitError,
    TransportError,
)

log = structlog.get_logger("standup.github")

GITHUB_API_URL = "https://api.github.com"

_NEXT_LINK_RE = re.compile(r'<([^>]+)>;\s*rel="next"')

_LOW_REMAINING_THRESHOLD = 10


class GitHubClient:
    """Thin wrapper around the GitHub REST API.

    Requests are sequential and never retried: any failure is raised as a
    :class:`~standup.errors.StandupError` subclass and aborts the caller.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = GITHUB_API_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not token:
            raise ConfigurationError("GitHub token is not configured")
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "Authorization": f"token {token}",
        }
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ── public ─────────────────────────────────────────────────────────────

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Single GET, returns parsed JSON."""
        return self._json(self._request(path, params))

    def get_page(self, path: str, params: dict[str, Any] | None = None) -> tuple[Any, bool]:
        """GET one page of a paginated endpoint.

        Returns ``(data, has_next)`` where *has_next* reflects the presence
        of a ``rel="next"`` relation in the ``Link`` header.
        """
        response = self._request(path, params)
        has_next = self._parse_next_link(response.headers.get("Link", "")) is not None
        return self._json(response), has_next

    # ── internal ───────────────────────────────────────────────────────────

    def _request(self, path: str, params: dict[str, Any] | None = None) -> httpx.Response:
        log.debug("github.request", path=path, params=params)
        try:
            response = self._client.get(path, params=params)
        except httpx.TransportError as exc:
            raise TransportError(f"request to GitHub failed: {exc}") from exc

        url = str(response.request.url)
        if response.status_code in (403, 429) and self._is_rate_limited(response):
            wait = self._get_rate_limit_wait(response)
            log.warning("github.rate_limit", url=url, retry_after=wait)
            raise RateLimitError(response.status_code, url, wait)
        if not response.is_success:
            raise HttpStatusError(response.status_code, url, self._error_message(response))

        self._check_rate_limit(response)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"can not parse GitHub response: {exc}") from exc

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Best-effort ``message`` field of a GitHub error body."""
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return response.reason_phrase

    def _check_rate_limit(self, response: httpx.Response) -> None:
        """Warn when the remaining quota is about to run out."""
        remaining = self._parse_header_int(response.headers.get("X-RateLimit-Remaining"))
        if remaining is not None and remaining <= _LOW_REMAINING_THRESHOLD:
            log.warning(
                "github.rate_limit_low",
                remaining=remaining,
                reset_in=self._get_rate_limit_wait(response),
            )

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        """Check if a 403/429 response is due to rate limiting."""
        remaining = response.headers.get("X-RateLimit-Remaining")
        if remaining is not None:
            try:
                return int(remaining) == 0
            except (ValueError, TypeError):
                pass
        # secondary rate limits only send Retry-After
        return "Retry-After" in response.headers

    @staticmethod
    def _get_rate_limit_wait(response: httpx.Response) -> int:
        """Seconds until the rate limit resets, from the response headers."""
        retry_after = response.headers.get("Retry-After")
        if retry_after is not None:
            try:
                return max(int(retry_after), 1)
            except (ValueError, TypeError):
                pass
        reset_ts = response.headers.get("X-RateLimit-Reset")
        if reset_ts is not None:
            try:
                return max(int(reset_ts) - int(time.time()), 1)
            except (ValueError, TypeError):
                pass
        return 60

    @staticmethod
    def _parse_header_int(value: str | None) -> int | None:
        """Safely parse an integer header value."""
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _parse_next_link(link_header: str) -> str | None:
        """Extract the ``next`` URL from a GitHub ``Link`` header."""
        match = _NEXT_LINK_RE.search(link_header)
        return match.group(1) if match else None
