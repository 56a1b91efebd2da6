"""
Tests for IssueHistoryLoader.

Covers:
- Successful fetch folds prior issues into groups
- Any fetch failure falls back to an empty history and is logged
"""

from uuid import uuid4

from delivery_engines.aggregation import aggregate_line_items
from delivery_services.issue_history_loader import IssueHistoryLoader
from tests.conftest import TEST_ORDER_ID, FakeOrderGateway, make_issue, make_line_item


class TestIssueHistoryLoader:
    """Tests for IssueHistoryLoader.load."""

    async def test_history_folded(self):
        item = make_line_item(10, received_good=2)
        gateway = FakeOrderGateway([item], [make_issue(item, 3)])
        loader = IssueHistoryLoader(gateway)

        history = await loader.load(TEST_ORDER_ID, aggregate_line_items([item]))

        assert history.history_available
        assert history.groups[0].total_prior_issues == 3
        assert history.groups[0].remaining == 5
        assert gateway.fetch_issue_calls == 1

    async def test_fetch_failure_falls_back(self, captured_logs):
        """A failed fetch gives remaining = ordered - already_received."""
        item = make_line_item(10, received_good=2)
        gateway = FakeOrderGateway([item], issues_error=ConnectionError("timeout"))
        loader = IssueHistoryLoader(gateway)

        history = await loader.load(TEST_ORDER_ID, aggregate_line_items([item]))

        assert not history.history_available
        assert history.groups[0].total_prior_issues == 0
        assert history.groups[0].remaining == 8
        fallback = [r for r in captured_logs() if r["message"] == "issue_history_fallback"]
        assert fallback[0]["level"] == "WARNING"
        assert fallback[0]["error_type"] == "ConnectionError"
        assert fallback[0]["error"] == "timeout"

    async def test_unmatched_history_does_not_fail(self):
        item = make_line_item(4)
        gateway = FakeOrderGateway([item], [make_issue(make_line_item(1), 1)])

        history = await IssueHistoryLoader(gateway).load(
            uuid4(), aggregate_line_items([item])
        )

        assert history.history_available
        assert len(history.ignored_issue_ids) == 1
