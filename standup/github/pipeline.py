"""GitHub report pipeline: fetch → sort → enrich → group → classify."""

from __future__ import annotations

from datetime import datetime

import structlog

from standup.github.classifier import classify, group_by_repository
from standup.github.client import GitHubClient
from standup.github.enrichment import enrich
from standup.github.fetcher import fetch_events
from standup.report import ReportEntry

log = structlog.get_logger("standup.github")


def fetch_report(
    client: GitHubClient,
    user: str,
    since: datetime,
    until: datetime | None = None,
    *,
    include_issue_comments: bool = False,
) -> dict[str, list[ReportEntry]]:
    """Build the GitHub part of the report for *user*.

    Returns a mapping of repository full name to its report entries.
    Repositories whose events produced no entry are left out.
    """
    result = fetch_events(client, user, since, until)
    events = sorted(result.events, key=lambda ev: ev.created_at)
    enrich(client, events)

    report: dict[str, list[ReportEntry]] = {}
    for repo, repo_events in group_by_repository(events).items():
        entries = classify(
            user,
            include_issue_comments,
            (ev.payload for ev in repo_events if ev.payload is not None),
        )
        if entries:
            report[repo] = entries

    log.info(
        "github.report_built",
        user=user,
        events=len(events),
        repositories=len(report),
        truncated=result.truncated,
    )
    return report
