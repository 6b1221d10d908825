"""GitHub API shapes and the decoded activity event.

Events are decoded in two stages: a generic envelope carrying the ``type``
tag and the raw ``payload`` object, then the payload model selected by the
tag. Tags outside :data:`PAYLOAD_TYPES` decode to ``payload=None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from standup.errors import DecodeError


def _flatten_user(data: Any) -> Any:
    """Lift ``user.login`` into ``author_login`` for PR/issue objects."""
    if not isinstance(data, dict) or "author_login" in data:
        return data
    user = data.get("user") or {}
    return {**data, "author_login": user.get("login", "")}


class PullRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    number: int
    url: str = Field(alias="html_url")
    title: str
    merged: bool = False
    author_login: str = ""

    @model_validator(mode="before")
    @classmethod
    def _prepare(cls, data: Any) -> Any:
        data = _flatten_user(data)
        # the pulls listing omits ``merged``; events may send null
        if isinstance(data, dict) and data.get("merged") is None:
            data = {k: v for k, v in data.items() if k != "merged"}
        return data


class Issue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    number: int
    url: str = Field(alias="html_url")
    title: str
    author_login: str = ""
    # GitHub sets this back-reference when the "issue" is a pull request
    pull_request: dict[str, Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _prepare(cls, data: Any) -> Any:
        return _flatten_user(data)

    @property
    def is_pull_request(self) -> bool:
        """True if this issue is really a pull request.

        Prefers the ``pull_request`` back-reference; without it, falls back
        to the web URL shape ``https://github.com/<owner>/<repo>/pull/<n>``.
        """
        if self.pull_request is not None:
            return True
        segments = urlsplit(self.url).path.strip("/").split("/")
        return len(segments) >= 3 and segments[2] == "pull"


class PullRequestPayload(BaseModel):
    action: str
    pull_request: PullRequest


class ReviewPayload(BaseModel):
    action: str
    pull_request: PullRequest


class ReviewCommentPayload(BaseModel):
    action: str
    pull_request: PullRequest


class IssuePayload(BaseModel):
    action: str
    issue: Issue


class IssueCommentPayload(BaseModel):
    action: str
    issue: Issue


class PushPayload(BaseModel):
    ref: str
    resolved_pull_requests: list[PullRequest] | None = None


EventPayload = Union[
    PullRequestPayload,
    ReviewPayload,
    ReviewCommentPayload,
    IssuePayload,
    IssueCommentPayload,
    PushPayload,
]

PAYLOAD_TYPES: dict[str, type[BaseModel]] = {
    "PullRequestEvent": PullRequestPayload,
    "PullRequestReviewEvent": ReviewPayload,
    "PullRequestReviewCommentEvent": ReviewCommentPayload,
    "IssuesEvent": IssuePayload,
    "IssueCommentEvent": IssueCommentPayload,
    "PushEvent": PushPayload,
}


class RepositoryInfo(BaseModel):
    full_name: str
    fork: bool = False
    default_branch: str | None = None
    source: RepositoryInfo | None = None

    @property
    def owner(self) -> str:
        return self.full_name.split("/", 1)[0]


@dataclass
class ActivityEvent:
    """A single entry of a user's event feed.

    ``payload`` is None for event types the report does not understand.
    Push enrichment may rewrite ``repository_name`` (fork → source) and
    fill ``PushPayload.resolved_pull_requests``; nothing else mutates it.
    """

    repository_name: str
    created_at: datetime
    payload: EventPayload | None = None


# ── decoding ──────────────────────────────────────────────────────────────


class _Repo(BaseModel):
    name: str


class _Envelope(BaseModel):
    type: str | None = None
    repo: _Repo
    created_at: datetime
    payload: dict[str, Any] = Field(default_factory=dict)


_ENVELOPES = TypeAdapter(list[_Envelope])
_PULL_REQUESTS = TypeAdapter(list[PullRequest])


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _decode_payload(envelope: _Envelope) -> EventPayload | None:
    model = PAYLOAD_TYPES.get(envelope.type or "")
    if model is None:
        return None
    return model.model_validate(envelope.payload)  # type: ignore[return-value]


def decode_events(data: Any) -> list[ActivityEvent]:
    """Decode one page of ``GET /users/{user}/events``."""
    try:
        envelopes = _ENVELOPES.validate_python(data)
        return [
            ActivityEvent(
                repository_name=env.repo.name,
                created_at=_as_utc(env.created_at),
                payload=_decode_payload(env),
            )
            for env in envelopes
        ]
    except ValidationError as exc:
        raise DecodeError(f"can not parse GitHub events: {exc}") from exc


def decode_repository(data: Any) -> RepositoryInfo:
    """Decode ``GET /repos/{full_name}``."""
    try:
        return RepositoryInfo.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(f"can not parse GitHub repository: {exc}") from exc


def decode_pull_requests(data: Any) -> list[PullRequest]:
    """Decode ``GET /repos/{full_name}/pulls``."""
    try:
        return _PULL_REQUESTS.validate_python(data)
    except ValidationError as exc:
        raise DecodeError(f"can not parse GitHub pull requests: {exc}") from exc
