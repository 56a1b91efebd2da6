"""
Tests for the issue history engine.

Covers:
- Indexing issues by line item
- Folding prior issues into groups (all statuses count)
- Zero-quantity and unmatched issues ignored
- History exceeding the order
- Unavailable-history fallback
"""

from uuid import uuid4

from delivery_engines.aggregation import aggregate_line_items
from delivery_engines.issue_history import (
    IssueHistory,
    fold_issue_history,
    group_issues_by_line_item,
)
from delivery_kernel.domain.dtos import (
    IssueRecord,
    IssueStatus,
    IssueType,
    ResolutionType,
)
from tests.conftest import make_issue, make_line_item


class TestGroupIssuesByLineItem:
    """Tests for group_issues_by_line_item."""

    def test_issues_indexed_in_input_order(self):
        """Each line item maps to its issues in report order."""
        a = make_line_item(5)
        b = make_line_item(5)
        first = make_issue(a, 1)
        second = make_issue(b, 2)
        third = make_issue(a, 3)

        grouped = group_issues_by_line_item([first, second, third])

        assert grouped[a.id] == (first, third)
        assert grouped[b.id] == (second,)

    def test_no_issues(self):
        assert group_issues_by_line_item([]) == {}


class TestFoldIssueHistory:
    """Tests for fold_issue_history."""

    def test_prior_issues_reduce_remaining(self):
        """Issues of every member count against the group."""
        a = make_line_item(6, received_good=1)
        b = make_line_item(4)
        groups = aggregate_line_items([a, b])
        issues = [make_issue(a, 2), make_issue(b, 1, IssueType.NEVER_ARRIVED)]

        history = fold_issue_history(groups, issues)
        (group,) = history.groups

        assert history.history_available
        assert group.total_prior_issues == 3
        assert group.remaining == 6
        assert group.prior_issues == tuple(issues)
        assert history.total_prior_issues_by_group == {group.key: 3}
        assert history.issues_by_group == {group.key: tuple(issues)}

    def test_resolved_issues_still_count(self):
        """Resolution does not return units to the remainder."""
        item = make_line_item(5)
        (group,) = aggregate_line_items([item])
        resolved = IssueRecord(
            id=uuid4(),
            line_item_id=item.id,
            issue_type=IssueType.DAMAGED,
            affected_quantity=2,
            description="dented",
            status=IssueStatus.RESOLVED,
            resolution_type=ResolutionType.REFUND,
        )

        history = fold_issue_history([group], [resolved])

        assert history.groups[0].total_prior_issues == 2
        assert history.groups[0].remaining == 3

    def test_zero_quantity_issues_ignored(self):
        """An issue affecting no units does not attach to the group."""
        item = make_line_item(5)
        groups = aggregate_line_items([item])

        history = fold_issue_history(groups, [make_issue(item, 0)])

        assert history.groups[0].prior_issues == ()
        assert history.groups[0].total_prior_issues == 0

    def test_unmatched_issues_ignored_and_logged(self, captured_logs):
        """Issues of line items outside the order are reported, not folded."""
        item = make_line_item(5)
        stranger = make_line_item(5)
        groups = aggregate_line_items([item])
        foreign = make_issue(stranger, 2)

        history = fold_issue_history(groups, [foreign])

        assert history.groups[0].total_prior_issues == 0
        assert history.ignored_issue_ids == (foreign.id,)
        warnings = [
            r for r in captured_logs()
            if r["message"] == "issue_history_unmatched_issues"
        ]
        assert warnings[0]["ignored_issue_count"] == 1
        assert warnings[0]["level"] == "WARNING"

    def test_history_exceeding_order_is_logged(self, captured_logs):
        """Receipts plus issues beyond the order clamp remaining and warn."""
        item = make_line_item(5, received_good=4)
        groups = aggregate_line_items([item])

        history = fold_issue_history(groups, [make_issue(item, 3)])

        group = history.groups[0]
        assert group.remaining == 0
        assert group.history_overage == 2
        overage = [
            r for r in captured_logs() if r["message"] == "issue_history_exceeds_order"
        ]
        assert overage[0]["group_keys"] == [group.key]

    def test_fully_accounted_by_issues(self):
        """ordered=5, no receipts, 5 units of prior issues: remaining 0."""
        item = make_line_item(5)
        groups = aggregate_line_items([item])

        history = fold_issue_history(groups, [make_issue(item, 5)])

        assert history.groups[0].is_fully_accounted

    def test_input_groups_untouched(self):
        """Folding returns new groups and leaves the input as it was."""
        item = make_line_item(5)
        groups = aggregate_line_items([item])

        fold_issue_history(groups, [make_issue(item, 2)])

        assert groups[0].total_prior_issues == 0


class TestUnavailableHistory:
    """Tests for the fetch-failure fallback."""

    def test_unavailable_zeroes_prior_issues(self):
        """Without history, remaining = ordered - already_received."""
        item = make_line_item(10, received_good=4)
        groups = aggregate_line_items([item])
        folded = fold_issue_history(groups, [make_issue(item, 3)]).groups

        history = IssueHistory.unavailable(folded)

        assert not history.history_available
        assert history.groups[0].total_prior_issues == 0
        assert history.groups[0].prior_issues == ()
        assert history.groups[0].remaining == 6
