"""Tests for ReportEntry formatting and action bookkeeping."""

from __future__ import annotations

from standup.report import ReportEntry


class TestReportEntry:
    def test_format_with_actions(self):
        entry = ReportEntry(
            kind="PR",
            title="Add cache",
            url="https://github.com/o/r/pull/7",
            actions=["opened", "merged"],
        )
        assert str(entry) == "[PR] (opened, merged) Add cache https://github.com/o/r/pull/7"

    def test_format_without_actions(self):
        entry = ReportEntry(kind="Issue", title="Bug", url="https://github.com/o/r/issues/1")
        assert str(entry) == "[Issue] Bug https://github.com/o/r/issues/1"

    def test_format_meeting_without_url(self):
        assert str(ReportEntry(kind="Meeting", title="Standup")) == "[Meeting] Standup "

    def test_add_action_is_idempotent(self):
        entry = ReportEntry(kind="PR", title="t")
        entry.add_action("pushed")
        entry.add_action("pushed")
        assert entry.actions == ["pushed"]

    def test_remove_missing_action(self):
        entry = ReportEntry(kind="PR", title="t", actions=["opened"])
        entry.remove_action("pushed")
        assert entry.actions == ["opened"]
