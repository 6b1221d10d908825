"""Report entry: the line item shared by the GitHub pipeline and the calendar."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

EntryKind = Literal["PR", "Issue", "Meeting"]


@dataclass
class ReportEntry:
    """One aggregated line of the standup report.

    ``actions`` keeps insertion order and never holds the same label twice;
    use :meth:`add_action` / :meth:`remove_action` rather than mutating the
    list directly.
    """

    kind: EntryKind
    title: str
    url: str | None = None
    actions: list[str] = field(default_factory=list)

    def add_action(self, action: str) -> None:
        if action not in self.actions:
            self.actions.append(action)

    def remove_action(self, action: str) -> None:
        if action in self.actions:
            self.actions.remove(action)

    def __str__(self) -> str:
        parts = [f"[{self.kind}]"]
        if self.actions:
            parts.append(f"({', '.join(self.actions)})")
        parts.append(self.title)
        return " ".join(parts) + f" {self.url or ''}"
