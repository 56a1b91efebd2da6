"""
Tests for SqlOrderGateway and a full reconciliation round trip.

Covers:
- Protocol conformance
- Line items and issues read through worker threads
- A session opened, edited and submitted against the reference store
- A second session seeing the first delivery as history
"""

from delivery_engines.reconciliation import QuickFillAction
from delivery_kernel.domain.clock import DeterministicClock
from delivery_modules.procurement import (
    DeliveryProcessingService,
    OrderManagementGateway,
    SqlOrderGateway,
)
from delivery_modules.procurement.models import PurchaseOrderStatus
from delivery_services import ReconciliationSession, SessionPhase

LINES = [
    {"item_type_id": "widget", "item_type_name": "Widget", "merchant_id": "acme", "quantity": 4},
    {"item_type_id": "widget", "item_type_name": "Widget", "merchant_id": "acme", "quantity": 6},
    {"item_type_id": "gadget", "item_type_name": "Gadget", "merchant_id": "acme", "quantity": 5},
]


def _seed(session_factory, actor_id, po_number="PO-4001"):
    with session_factory() as session:
        return DeliveryProcessingService(session).create_purchase_order(
            po_number, LINES, actor_id
        )


class TestSqlOrderGateway:
    """Gateway reads and writes."""

    def test_satisfies_protocol(self, session_factory, test_actor_id):
        gateway = SqlOrderGateway(session_factory, test_actor_id)
        assert isinstance(gateway, OrderManagementGateway)

    async def test_fetches_line_items_and_issues(self, session_factory, test_actor_id):
        order = _seed(session_factory, test_actor_id)
        gateway = SqlOrderGateway(session_factory, test_actor_id)

        items = await gateway.fetch_order_line_items(order.id)
        issues = await gateway.fetch_issues(order.id)

        assert [i.quantity for i in items] == [4, 6, 5]
        assert issues == ()


class TestReconciliationRoundTrip:
    """ReconciliationSession against the reference store."""

    async def test_submit_then_reopen(self, session_factory, test_actor_id):
        order = _seed(session_factory, test_actor_id)
        clock = DeterministicClock()
        gateway = SqlOrderGateway(session_factory, test_actor_id, clock=clock)

        first = await ReconciliationSession(order.id, gateway, clock=clock).open()
        first.toggle_selection("widget-acme")
        first.set_quantity("widget-acme", "received_good", 6)
        first.set_quantity("widget-acme", "damaged", 2)
        first.set_issue_notes("widget-acme", "forklift damage")
        first.quick_fill("gadget-acme", QuickFillAction.MARK_ALL_GOOD)
        first.toggle_selection("gadget-acme")

        result = await first.submit()

        assert result.is_success
        assert result.receipt.receipt_count == 3
        assert result.receipt.order_status == PurchaseOrderStatus.PARTIAL_DISPUTED
        assert first.phase == SessionPhase.SUBMITTED

        second = await ReconciliationSession(order.id, gateway, clock=clock).open()

        widget = second.group("widget-acme")
        assert widget.already_received == 6
        assert widget.total_prior_issues == 2
        assert widget.remaining == 2
        assert second.status("gadget-acme").is_fully_accounted
        assert second.history_available
