"""
Issue History Loader -- the one suspension point of a reconciliation session.

Responsibility:
    Await the order's prior issues from the order-management gateway and
    fold them into the aggregated groups.  A failed fetch never blocks the
    session: the loader logs it and returns the fallback history, in which
    every group has zero prior issues.

Architecture position:
    Services -- async I/O over the pure ``delivery_engines.issue_history``.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from delivery_engines.aggregation import AggregatedGroup
from delivery_engines.issue_history import IssueHistory, fold_issue_history
from delivery_kernel.logging_config import get_logger
from delivery_modules.procurement.gateway import OrderManagementGateway

logger = get_logger("services.issue_history_loader")


class IssueHistoryLoader:
    """Fetch-and-fold of prior issues with a non-blocking fallback."""

    def __init__(self, gateway: OrderManagementGateway):
        self._gateway = gateway

    async def load(
        self,
        order_id: UUID,
        groups: Sequence[AggregatedGroup],
    ) -> IssueHistory:
        """
        Fold the order's issue history into ``groups``.

        Returns:
            IssueHistory with ``history_available`` False when the fetch
            failed, in which case ``remaining = ordered - already_received``
            for every group.
        """
        try:
            issues = await self._gateway.fetch_issues(order_id)
        except Exception as exc:
            logger.warning(
                "issue_history_fallback",
                extra={
                    "purchase_order_id": str(order_id),
                    "group_count": len(groups),
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return IssueHistory.unavailable(groups)

        return fold_issue_history(groups, list(issues))
