"""
Tests for display summaries.

Covers:
- Badge priority
- Accounting hints
- Progress percentage
- Session-wide counts
"""

from delivery_engines.aggregation import aggregate_line_items
from delivery_engines.issue_history import fold_issue_history
from delivery_engines.reconciliation import WorkingStatus
from delivery_engines.summary import (
    GroupBadge,
    accounting_hint,
    badge_for,
    build_group_view,
    progress_percent,
    summarize,
)
from tests.conftest import make_issue, make_line_item


def _status(remaining: int = 5, **fields) -> WorkingStatus:
    return WorkingStatus(
        group_key="widget-acme",
        remaining=remaining,
        is_fully_accounted=remaining == 0,
        **fields,
    )


class TestBadgeFor:
    """First matching badge wins."""

    def test_fully_accounted_first(self):
        assert badge_for(_status(0)) == GroupBadge.FULLY_ACCOUNTED

    def test_invalid_before_anything_else(self):
        assert badge_for(_status(5)) == GroupBadge.INVALID
        assert badge_for(_status(5, received_good=7, damaged=1)) == GroupBadge.INVALID

    def test_over_delivery(self):
        assert badge_for(_status(5, received_good=7)) == GroupBadge.OVER_DELIVERY

    def test_single_bucket_badges(self):
        assert badge_for(_status(5, received_good=5)) == GroupBadge.ALL_GOOD
        assert badge_for(_status(5, damaged=5)) == GroupBadge.ALL_DAMAGED
        assert badge_for(_status(5, never_arrived=5)) == GroupBadge.ALL_MISSING
        assert badge_for(_status(5, wrong_item=5)) == GroupBadge.ALL_WRONG_ITEM

    def test_mixed_issues(self):
        assert badge_for(_status(5, received_good=3, other=2)) == GroupBadge.HAS_ISSUES

    def test_partial_good_is_valid(self):
        assert badge_for(_status(5, received_good=2)) == GroupBadge.VALID


class TestAccountingHint:
    """Hints relating the entry to remaining."""

    def test_over_delivery_hint(self):
        hint = accounting_hint(_status(4, received_good=6), "boxes")
        assert hint == "+2 boxes more than ordered"

    def test_unaccounted_hint(self):
        assert accounting_hint(_status(5, received_good=2)) == "3 units still unaccounted"

    def test_over_limit_hint(self):
        assert accounting_hint(_status(5, received_good=4, damaged=2)) == "1 units over limit"

    def test_no_hint_when_empty_or_exact(self):
        assert accounting_hint(_status(5)) is None
        assert accounting_hint(_status(5, received_good=5)) is None


class TestProgressAndSummary:
    """Progress percentage and session counts."""

    def test_progress_counts_history_and_session(self):
        item = make_line_item(10, received_good=2)
        groups = aggregate_line_items([item])
        (group,) = fold_issue_history(groups, [make_issue(item, 3)]).groups

        status = WorkingStatus.initial(group)
        assert progress_percent(group, status) == 50

        status = WorkingStatus(
            group_key=group.key, remaining=5, is_fully_accounted=False, received_good=9
        )
        assert progress_percent(group, status) == 100

    def test_zero_ordered_is_complete(self):
        (group,) = aggregate_line_items([make_line_item(0)])
        assert progress_percent(group, WorkingStatus.initial(group)) == 100

    def test_group_view(self):
        (group,) = aggregate_line_items([make_line_item(10, received_good=4)])
        status = WorkingStatus.initial(group)

        view = build_group_view(group, status)

        assert view.has_history
        assert view.badge == GroupBadge.INVALID
        assert view.to_dict()["badge"] == "invalid"
        assert view.to_dict()["remaining"] == 6
        assert view.member_count == 1

    def test_summarize_counts(self):
        items = [
            make_line_item(5, item_type_id="a"),
            make_line_item(5, item_type_id="b"),
            make_line_item(5, item_type_id="c", received_good=5),
        ]
        groups = aggregate_line_items(items)
        a, b, c = (WorkingStatus.initial(g) for g in groups)
        statuses = {
            a.group_key: WorkingStatus(
                group_key=a.group_key, remaining=5, is_fully_accounted=False,
                received_good=5, selected=True,
            ),
            b.group_key: WorkingStatus(
                group_key=b.group_key, remaining=5, is_fully_accounted=False,
                damaged=1, issue_notes="x",
            ),
            c.group_key: c,
        }

        summary = summarize(groups, statuses)

        assert summary.total_groups == 3
        assert summary.selected_count == 1
        assert summary.valid_count == 3
        assert summary.with_issues_count == 1
        assert summary.fully_accounted_count == 1
        assert summary.processable_count == 2
        assert summary.has_items_to_process
        assert summary.fully_accounted_percent == 33
        assert [v.key for v in summary.groups] == ["a-acme", "b-acme", "c-acme"]

    def test_empty_session_summary(self):
        summary = summarize((), {})
        assert summary.total_groups == 0
        assert not summary.has_items_to_process
        assert summary.fully_accounted_percent == 100
