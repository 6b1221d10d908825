"""Push enrichment: resolve branch pushes to the pull requests they update."""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from standup.github.client import GitHubClient
from standup.github.models import (
    ActivityEvent,
    PullRequest,
    PushPayload,
    RepositoryInfo,
    decode_pull_requests,
    decode_repository,
)

log = structlog.get_logger("standup.github")

# Pushes to the main branch usually come from merges, not PR branches.
MAIN_BRANCH_REF = "refs/heads/master"

_BRANCH_PREFIX = "refs/heads/"


def enrich(client: GitHubClient, events: Iterable[ActivityEvent]) -> None:
    """Attach resolved pull requests to push events, in place.

    Only the first push to a given ``(repository, ref)`` is looked up. For
    forks the lookup runs against the source repository and the event is
    re-attributed to it. Any request failure propagates.
    """
    repositories: dict[str, RepositoryInfo] = {}
    checked: set[tuple[str, str]] = set()

    for event in events:
        payload = event.payload
        if not isinstance(payload, PushPayload) or payload.ref == MAIN_BRANCH_REF:
            continue

        key = (event.repository_name, payload.ref)
        if key in checked:
            continue
        checked.add(key)

        repo = repositories.get(event.repository_name)
        if repo is None:
            repo = decode_repository(client.get(f"/repos/{event.repository_name}"))
            repositories[event.repository_name] = repo

        if repo.default_branch and payload.ref == _BRANCH_PREFIX + repo.default_branch:
            continue

        target = repo.source if repo.fork and repo.source is not None else repo
        pulls = _find_pull_requests(client, target.full_name, repo.owner, payload.ref)
        log.debug(
            "enrich.lookup",
            repository=event.repository_name,
            target=target.full_name,
            ref=payload.ref,
            found=len(pulls),
        )

        if target is not repo:
            event.repository_name = target.full_name
        if pulls:
            payload.resolved_pull_requests = pulls


def _find_pull_requests(
    client: GitHubClient, full_name: str, owner: str, ref: str
) -> list[PullRequest]:
    """GET /repos/{full_name}/pulls filtered by ``head=<owner>:<branch>``."""
    branch = ref.removeprefix(_BRANCH_PREFIX)
    data = client.get(
        f"/repos/{full_name}/pulls",
        {"state": "all", "head": f"{owner}:{branch}"},
    )
    return decode_pull_requests(data)
