"""Event fetcher: pages through a user's event feed down to a cutoff date."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import structlog

from standup.github.client import GitHubClient
from standup.github.models import ActivityEvent, decode_events

log = structlog.get_logger("standup.github")

# The docs say per_page is ignored for this endpoint; it is not.
PAGE_SIZE = 100


@dataclass
class FetchResult:
    """Events of the requested window, newest first as GitHub returns them.

    ``oldest_available`` is set when the feed ran out before reaching
    ``since``: it holds the date of the oldest event GitHub still serves,
    and ``events`` is a best-effort subset of the window.
    """

    events: list[ActivityEvent] = field(default_factory=list)
    oldest_available: datetime | None = None

    @property
    def truncated(self) -> bool:
        return self.oldest_available is not None


def fetch_events(
    client: GitHubClient,
    user: str,
    since: datetime,
    until: datetime | None = None,
) -> FetchResult:
    """Fetch the events of *user* created in ``[since, until)``.

    Pages are requested in order until one ends before *since* or the
    ``Link`` header has no next page. Events of unknown types are dropped
    from the result but still take part in the cutoff check.
    """
    result = FetchResult()
    page = 1
    while True:
        data, has_next = client.get_page(
            f"/users/{user}/events", {"page": page, "per_page": PAGE_SIZE}
        )
        page_events = decode_events(data)
        log.debug("github.events_page", page=page, count=len(page_events), has_next=has_next)
        if not page_events:
            break

        last_created = page_events[-1].created_at
        if not has_next and last_created > since:
            log.warning(
                "github.feed_truncated",
                user=user,
                since=since.isoformat(),
                oldest_available=last_created.isoformat(),
            )
            result.oldest_available = last_created

        result.events.extend(
            ev
            for ev in page_events
            if ev.created_at >= since
            and (until is None or ev.created_at < until)
            and ev.payload is not None
        )

        if last_created < since or not has_next:
            break
        page += 1

    return result
