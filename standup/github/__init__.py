"""GitHub activity pipeline: event feed to deduplicated report entries."""

from standup.github.classifier import EntryBuilder, classify, group_by_repository
from standup.github.client import GitHubClient
from standup.github.enrichment import enrich
from standup.github.fetcher import FetchResult, fetch_events
from standup.github.models import ActivityEvent
from standup.github.pipeline import fetch_report

__all__ = [
    "ActivityEvent",
    "EntryBuilder",
    "FetchResult",
    "GitHubClient",
    "classify",
    "enrich",
    "fetch_events",
    "fetch_report",
    "group_by_repository",
]
