"""Tests for the Google Calendar client (httpx.MockTransport)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest

from standup.core.config import GoogleClientSettings, GoogleToken
from standup.errors import ConfigurationError, HttpStatusError
from standup.gcalendar import CalendarClient

SINCE = datetime(2024, 3, 4, tzinfo=timezone.utc)
UNTIL = datetime(2024, 3, 5, tzinfo=timezone.utc)

_GOOGLE = GoogleClientSettings(client_id="cid", client_secret="csecret")


def _token(expires_in: timedelta = timedelta(hours=1)) -> GoogleToken:
    return GoogleToken(
        access_token="old-access",
        refresh_token="refresh",
        expires_at=datetime.now(timezone.utc) + expires_in,
    )


def _events_body() -> dict:
    return {
        "items": [
            {"status": "confirmed", "summary": "Standup"},
            {"status": "cancelled", "summary": "Retro"},
            {"status": "tentative", "summary": "Lunch"},
            {"status": "confirmed", "summary": "Planning"},
        ]
    }


class TestEvents:
    def test_confirmed_events_as_meetings(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers["Authorization"]
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=_events_body())

        with CalendarClient(
            _GOOGLE, _token(), calendar_id="primary", transport=httpx.MockTransport(handler)
        ) as cal:
            entries = cal.events(SINCE, UNTIL)

        assert [e.title for e in entries] == ["Standup", "Planning"]
        assert all(e.kind == "Meeting" and e.url is None and e.actions == [] for e in entries)
        assert seen["auth"] == "Bearer old-access"
        assert seen["path"] == "/calendar/v3/calendars/primary/events"
        assert seen["params"]["timeMin"] == "2024-03-04T00:00:00Z"
        assert seen["params"]["timeMax"] == "2024-03-05T00:00:00Z"
        assert seen["params"]["singleEvents"] == "true"

    def test_expired_token_refreshed_and_persisted(self):
        saved: list[GoogleToken] = []
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if request.url.host == "oauth2.googleapis.com":
                form = parse_qs(request.content.decode())
                assert form["grant_type"] == ["refresh_token"]
                assert form["refresh_token"] == ["refresh"]
                assert form["client_id"] == ["cid"]
                return httpx.Response(200, json={"access_token": "new-access", "expires_in": 3600})
            assert request.headers["Authorization"] == "Bearer new-access"
            return httpx.Response(200, json={"items": []})

        with CalendarClient(
            _GOOGLE,
            _token(expires_in=timedelta(minutes=-5)),
            calendar_id="primary",
            on_token_refresh=saved.append,
            transport=httpx.MockTransport(handler),
        ) as cal:
            assert cal.events(SINCE, UNTIL) == []
            assert cal.token.access_token == "new-access"

        assert len(requests) == 2
        [token] = saved
        assert token.access_token == "new-access"
        assert token.refresh_token == "refresh"
        assert token.expires_at > datetime.now(timezone.utc)

    def test_not_authorized(self):
        cal = CalendarClient(_GOOGLE, None, calendar_id="primary")
        with pytest.raises(ConfigurationError):
            cal.events(SINCE, UNTIL)

    def test_no_calendar_selected(self):
        cal = CalendarClient(_GOOGLE, _token())
        with pytest.raises(ConfigurationError):
            cal.events(SINCE, UNTIL)

    def test_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401)

        cal = CalendarClient(
            _GOOGLE, _token(), calendar_id="primary", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(HttpStatusError) as exc_info:
            cal.events(SINCE, UNTIL)
        assert exc_info.value.status_code == 401


class TestCalendars:
    def test_list(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/calendar/v3/users/me/calendarList"
            return httpx.Response(
                200,
                json={"items": [{"id": "primary", "summary": "Alice"}, {"id": "team@group"}]},
            )

        cal = CalendarClient(_GOOGLE, _token(), transport=httpx.MockTransport(handler))
        items = cal.calendars()
        assert [(c.id, c.summary) for c in items] == [("primary", "Alice"), ("team@group", "")]
