"""Google Calendar client: confirmed meetings as report entries.

The client works from an already issued OAuth token (stored in the config
file). Expired access tokens are refreshed with the stored refresh token;
obtaining the first token is not handled here.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from standup.core.config import GoogleClientSettings, GoogleToken
from standup.errors import ConfigurationError, DecodeError, HttpStatusError, TransportError
from standup.report import ReportEntry

log = structlog.get_logger("standup.gcalendar")

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
CALENDAR_API_URL = "https://www.googleapis.com/calendar/v3"

_REFRESH_BUFFER = timedelta(seconds=60)


class CalendarInfo(BaseModel):
    id: str
    summary: str = ""


class _CalendarList(BaseModel):
    items: list[CalendarInfo] = []


class _CalendarEvent(BaseModel):
    status: str
    summary: str = ""


class _EventList(BaseModel):
    items: list[_CalendarEvent] = []


class _TokenResponse(BaseModel):
    access_token: str
    expires_in: int
    refresh_token: str | None = None


def _rfc3339(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


class CalendarClient:
    """Read-only access to one user's Google calendars."""

    def __init__(
        self,
        google_client: GoogleClientSettings,
        token: GoogleToken | None,
        *,
        calendar_id: str | None = None,
        on_token_refresh: Callable[[GoogleToken], None] | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._google_client = google_client
        self._token = token
        self._calendar_id = calendar_id
        self._on_token_refresh = on_token_refresh
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CalendarClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def token(self) -> GoogleToken | None:
        return self._token

    # ── public ─────────────────────────────────────────────────────────────

    def calendars(self) -> list[CalendarInfo]:
        """List the calendars of the authorized user."""
        data = self._get("/users/me/calendarList")
        return self._decode(_CalendarList, data, "calendar list").items

    def events(self, since: datetime, until: datetime | None = None) -> list[ReportEntry]:
        """Confirmed events between *since* and *until* (default: now) as meetings."""
        if not self._calendar_id:
            raise ConfigurationError("no Google calendar selected")
        until = until or datetime.now(timezone.utc)
        data = self._get(
            f"/calendars/{quote(self._calendar_id, safe='@')}/events",
            {
                "singleEvents": "true",
                "orderBy": "startTime",
                "timeMin": _rfc3339(since),
                "timeMax": _rfc3339(until),
            },
        )
        events = self._decode(_EventList, data, "calendar events").items
        return [
            ReportEntry(kind="Meeting", title=ev.summary)
            for ev in events
            if ev.status == "confirmed"
        ]

    # ── token handling ─────────────────────────────────────────────────────

    def _access_token(self) -> str:
        if self._token is None:
            raise ConfigurationError("Google Calendar is not authorized")
        if self._token.expires_at <= datetime.now(timezone.utc) + _REFRESH_BUFFER:
            self._refresh()
        return self._token.access_token

    def _refresh(self) -> None:
        assert self._token is not None
        log.debug("gcalendar.token_refresh", expires_at=self._token.expires_at.isoformat())
        response = self._send(
            "POST",
            GOOGLE_TOKEN_URI,
            data={
                "grant_type": "refresh_token",
                "refresh_token": self._token.refresh_token,
                "client_id": self._google_client.client_id,
                "client_secret": self._google_client.client_secret,
            },
        )
        fresh = self._decode(_TokenResponse, self._json(response), "token response")
        self._token = GoogleToken(
            access_token=fresh.access_token,
            refresh_token=fresh.refresh_token or self._token.refresh_token,
            expires_at=datetime.now(timezone.utc) + timedelta(seconds=fresh.expires_in),
        )
        if self._on_token_refresh is not None:
            self._on_token_refresh(self._token)

    # ── internal ───────────────────────────────────────────────────────────

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        headers = {"Authorization": f"Bearer {self._access_token()}"}
        response = self._send("GET", CALENDAR_API_URL + path, params=params, headers=headers)
        return self._json(response)

    def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise TransportError(f"request to Google failed: {exc}") from exc
        if not response.is_success:
            raise HttpStatusError(response.status_code, url, response.reason_phrase)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"can not parse Google response: {exc}") from exc

    @staticmethod
    def _decode(model: type[BaseModel], data: Any, what: str) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(f"can not parse Google {what}: {exc}") from exc
