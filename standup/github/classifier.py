"""Classifier: folds one repository's events into deduplicated report entries."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from standup.github.models import (
    ActivityEvent,
    EventPayload,
    Issue,
    IssueCommentPayload,
    IssuePayload,
    PullRequest,
    PullRequestPayload,
    PushPayload,
    ReviewCommentPayload,
    ReviewPayload,
)
from standup.report import EntryKind, ReportEntry


class EntryBuilder:
    """Aggregation map of report entries keyed by PR/issue number.

    Scoped to a single repository: GitHub numbers PRs and issues from the
    same sequence, so the number alone identifies the entry.
    """

    def __init__(self) -> None:
        self._entries: dict[int, ReportEntry] = {}

    def __contains__(self, number: int) -> bool:
        return number in self._entries

    def upsert(self, number: int, kind: EntryKind, title: str, url: str) -> ReportEntry:
        """Return the entry for *number*, inserting an empty one if missing."""
        entry = self._entries.get(number)
        if entry is None:
            entry = ReportEntry(kind=kind, title=title, url=url)
            self._entries[number] = entry
        return entry

    def insert_if_absent(
        self, number: int, kind: EntryKind, title: str, url: str, action: str
    ) -> None:
        """Insert an entry with a single *action*; existing entries are left alone."""
        if number not in self._entries:
            self._entries[number] = ReportEntry(kind=kind, title=title, url=url, actions=[action])

    def entries(self) -> list[ReportEntry]:
        return list(self._entries.values())


def classify(
    login: str,
    include_issue_comments: bool,
    payloads: Iterable[EventPayload],
) -> list[ReportEntry]:
    """Fold *payloads* (oldest first) into report entries.

    *login* is the user the report is for; reviews of their own pull
    requests are not reported.
    """
    builder = EntryBuilder()
    for payload in payloads:
        if isinstance(payload, PullRequestPayload):
            _pull_request(builder, payload)
        elif isinstance(payload, ReviewPayload):
            if payload.action == "submitted":
                _reviewed(builder, login, payload.pull_request)
        elif isinstance(payload, ReviewCommentPayload):
            if payload.action == "created":
                _reviewed(builder, login, payload.pull_request)
        elif isinstance(payload, IssuePayload):
            if payload.action == "opened":
                issue = payload.issue
                entry = builder.upsert(issue.number, "Issue", issue.title, issue.url)
                entry.add_action("opened")
        elif isinstance(payload, IssueCommentPayload):
            if payload.action == "created":
                _issue_comment(builder, login, include_issue_comments, payload.issue)
        elif isinstance(payload, PushPayload):
            for pr in payload.resolved_pull_requests or ():
                builder.insert_if_absent(pr.number, "PR", pr.title, pr.url, "pushed")
    return builder.entries()


def _pull_request(builder: EntryBuilder, payload: PullRequestPayload) -> None:
    pr = payload.pull_request
    action = payload.action
    if action == "closed":
        if not pr.merged:
            return
        action = "merged"

    entry = builder.upsert(pr.number, "PR", pr.title, pr.url)
    # pushes before the PR was opened are part of opening it
    if action == "opened":
        entry.remove_action("pushed")
    entry.add_action(action)


def _reviewed(builder: EntryBuilder, login: str, pr: PullRequest) -> None:
    if pr.author_login == login:
        return
    builder.insert_if_absent(pr.number, "PR", pr.title, pr.url, "reviewed")


def _issue_comment(
    builder: EntryBuilder, login: str, include_issue_comments: bool, issue: Issue
) -> None:
    if issue.is_pull_request:
        if issue.author_login != login:
            builder.insert_if_absent(issue.number, "PR", issue.title, issue.url, "reviewed")
        return
    if include_issue_comments:
        builder.insert_if_absent(issue.number, "Issue", issue.title, issue.url, "commented")


def group_by_repository(events: Sequence[ActivityEvent]) -> dict[str, list[ActivityEvent]]:
    """Group events by repository name, keeping their relative order."""
    groups: dict[str, list[ActivityEvent]] = {}
    for event in events:
        groups.setdefault(event.repository_name, []).append(event)
    return groups
