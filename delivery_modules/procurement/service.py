"""
Delivery Processing Service (``delivery_modules.procurement.service``).

Responsibility
--------------
The reference order-management collaborator: reads a purchase order's line
items and issue history as DTOs, atomically applies a delivery change-set
(one delivery session, one receipt per item, one REPORTED issue per issue
entry), resolves reported issues, and keeps item and order statuses in step
by delegating the status rules to ``delivery_engines.order_status``.

Architecture position
---------------------
**Modules layer** -- thin persistence glue over the ORM models in
``delivery_modules.procurement.orm``.  Status derivation is pure and lives
in the engines layer.

Invariants enforced
-------------------
* Each public write method owns the transaction boundary
  (``commit`` on success, ``rollback`` on any exception).
* A change-set is applied entirely or not at all.
* Change-set items must belong to the order they are submitted against.
* Item and order statuses are recomputed after every write.

Failure modes
-------------
* Unknown order  -> ``PurchaseOrderNotFoundError``.
* Unknown line item  -> ``LineItemNotFoundError``.
* Line item of another order  -> ``ForeignLineItemError``.
* Change-set for a different order  -> ``DeliverySubmissionError``.
* Change-set without items  -> ``EmptyDeliveryError``.
* Unknown issue on resolution  -> ``IssueNotFoundError``.
* Unexpected exception  -> session rolled back, exception re-raised.

Usage::

    service = DeliveryProcessingService(session, clock=clock)
    receipt = service.process_delivery(order_id, change_set, processed_by=actor_id)
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from delivery_engines.order_status import (
    ItemDeliveryFacts,
    PurchaseOrderStatus,
    derive_item_status,
    derive_order_status,
)
from delivery_engines.projection import DeliveryChangeSet
from delivery_kernel.domain.clock import Clock, SystemClock
from delivery_kernel.domain.dtos import IssueRecord, IssueStatus, LineItem
from delivery_kernel.exceptions import (
    DeliverySubmissionError,
    EmptyDeliveryError,
    ForeignLineItemError,
    IssueNotFoundError,
    LineItemNotFoundError,
    PurchaseOrderNotFoundError,
)
from delivery_kernel.logging_config import get_logger
from delivery_modules.procurement.models import (
    DeliverySession,
    DeliverySubmissionReceipt,
    IssueResolution,
    PurchaseOrder,
)
from delivery_modules.procurement.orm import (
    DeliveryItemReceiptModel,
    DeliverySessionModel,
    PurchaseOrderIssueModel,
    PurchaseOrderItemModel,
    PurchaseOrderModel,
)

logger = get_logger("modules.procurement.service")


class DeliveryProcessingService:
    """
    Applies deliveries and issue resolutions to the order-management store.

    Contract
    --------
    * Reads return immutable DTOs, never ORM instances.
    * Writes return a receipt or the updated DTOs.

    Guarantees
    ----------
    * Session is committed only when every step succeeded; otherwise rolled
      back and the exception re-raised unchanged.
    * Clock is injectable for deterministic testing.

    Non-goals
    ---------
    * Does NOT decide what counts as a dispute or who may resolve one.
    * Does NOT validate quantities; the reconciliation engine does that
      before a change-set is built.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    # =========================================================================
    # Reads
    # =========================================================================

    def _load_order(self, order_id: UUID) -> PurchaseOrderModel:
        order = self._session.get(PurchaseOrderModel, order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(order_id)
        return order

    def get_purchase_order(self, order_id: UUID) -> PurchaseOrder:
        return self._load_order(order_id).to_dto()

    def get_line_items(self, order_id: UUID) -> tuple[LineItem, ...]:
        """Line items in line-number order, with ``received_good`` summed from receipts."""
        return tuple(item.to_dto() for item in self._load_order(order_id).items)

    def get_issues(self, order_id: UUID) -> tuple[IssueRecord, ...]:
        """Every issue reported against the order, oldest first."""
        self._load_order(order_id)
        rows = self._session.scalars(
            select(PurchaseOrderIssueModel)
            .where(PurchaseOrderIssueModel.purchase_order_id == order_id)
            .order_by(PurchaseOrderIssueModel.reported_at)
        ).all()
        return tuple(row.to_dto() for row in rows)

    def get_deliveries(self, order_id: UUID) -> tuple[DeliverySession, ...]:
        """Recorded deliveries of the order, oldest first."""
        self._load_order(order_id)
        rows = self._session.scalars(
            select(DeliverySessionModel)
            .where(DeliverySessionModel.purchase_order_id == order_id)
            .order_by(DeliverySessionModel.processed_at)
        ).all()
        return tuple(row.to_dto() for row in rows)

    # =========================================================================
    # Purchase Orders
    # =========================================================================

    def create_purchase_order(
        self,
        po_number: str,
        lines: Sequence[dict[str, Any]],
        actor_id: UUID,
        order_id: UUID | None = None,
    ) -> PurchaseOrder:
        """
        Create a purchase order with its line items.

        Each line is a dict with ``quantity`` and optionally ``id``,
        ``item_type_id``, ``item_type_name``, ``merchant_id``,
        ``merchant_name`` and ``measuring_unit``.
        """
        try:
            order = PurchaseOrderModel(
                id=order_id or uuid4(),
                po_number=po_number,
                status=PurchaseOrderStatus.PENDING.value,
                created_by_id=actor_id,
            )
            for number, line in enumerate(lines, start=1):
                order.items.append(
                    PurchaseOrderItemModel(
                        id=line.get("id") or uuid4(),
                        line_number=number,
                        item_type_id=line.get("item_type_id"),
                        item_type_name=line.get("item_type_name"),
                        merchant_id=line.get("merchant_id"),
                        merchant_name=line.get("merchant_name"),
                        quantity=int(line["quantity"]),
                        measuring_unit=line.get("measuring_unit", "units"),
                        created_by_id=actor_id,
                    )
                )
            self._session.add(order)
            self._session.flush()
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info("purchase_order_created", extra={
            "purchase_order_id": str(order.id),
            "po_number": po_number,
            "line_count": len(lines),
        })
        return order.to_dto()

    # =========================================================================
    # Deliveries
    # =========================================================================

    def process_delivery(
        self,
        order_id: UUID,
        change_set: DeliveryChangeSet,
        processed_by: UUID,
        redelivery: bool = False,
    ) -> DeliverySubmissionReceipt:
        """
        Record one delivery atomically.

        Args:
            order_id: Order the delivery is for.
            change_set: Output of ``project_submission``.
            processed_by: Operator recording the delivery.
            redelivery: True when the goods fulfil promised redeliveries.

        Returns:
            DeliverySubmissionReceipt with the new order status.
        """
        try:
            if change_set.purchase_order_id != order_id:
                raise DeliverySubmissionError(
                    order_id,
                    f"change-set belongs to order {change_set.purchase_order_id}",
                )
            if change_set.is_empty:
                raise EmptyDeliveryError(order_id)

            order = self._load_order(order_id)
            logger.info("delivery_processing_started", extra={
                "purchase_order_id": str(order_id),
                "item_count": len(change_set.items),
                "total_received_good": change_set.total_received_good,
                "total_issue_quantity": change_set.total_issue_quantity,
                "redelivery": redelivery,
            })

            delivery = DeliverySessionModel(
                id=uuid4(),
                purchase_order_id=order.id,
                processed_by=processed_by,
                processed_at=change_set.received_at,
                delivery_notes=change_set.general_notes,
                created_by_id=processed_by,
            )
            self._session.add(delivery)

            reported_at = self._clock.now()
            issue_ids: list[UUID] = []
            for entry in change_set.items:
                item = self._session.get(PurchaseOrderItemModel, entry.line_item_id)
                if item is None:
                    raise LineItemNotFoundError(entry.line_item_id)
                if item.purchase_order_id != order.id:
                    raise ForeignLineItemError(
                        entry.line_item_id, order.id, item.purchase_order_id
                    )

                receipt = DeliveryItemReceiptModel(
                    id=uuid4(),
                    delivery_session=delivery,
                    purchase_order_item=item,
                    good_quantity=entry.received_good,
                    is_redelivery=redelivery,
                    created_by_id=processed_by,
                )
                self._session.add(receipt)
                for issue in entry.issues:
                    issue_id = uuid4()
                    self._session.add(PurchaseOrderIssueModel(
                        id=issue_id,
                        purchase_order_id=order.id,
                        purchase_order_item=item,
                        delivery_item_receipt=receipt,
                        issue_type=issue.issue_type.value,
                        status=IssueStatus.REPORTED.value,
                        affected_quantity=issue.quantity,
                        description=issue.notes,
                        reported_by=processed_by,
                        reported_at=reported_at,
                        created_by_id=processed_by,
                    ))
                    issue_ids.append(issue_id)

            self._session.flush()
            order_status = self._refresh_statuses(order, processed_by)
            self._session.commit()
        except Exception:
            self._session.rollback()
            logger.warning("delivery_processing_rolled_back", extra={
                "purchase_order_id": str(order_id),
            })
            raise

        logger.info("delivery_processing_committed", extra={
            "purchase_order_id": str(order_id),
            "delivery_session_id": str(delivery.id),
            "receipt_count": len(change_set.items),
            "issue_count": len(issue_ids),
            "order_status": order_status.value,
        })
        return DeliverySubmissionReceipt(
            delivery_session_id=delivery.id,
            purchase_order_id=order_id,
            order_status=order_status,
            receipt_count=len(change_set.items),
            issue_ids=tuple(issue_ids),
        )

    # =========================================================================
    # Issue resolution
    # =========================================================================

    def resolve_issues(
        self,
        resolutions: Sequence[IssueResolution],
        resolved_by: UUID,
    ) -> tuple[IssueRecord, ...]:
        """
        Mark issues RESOLVED and recompute the affected orders' statuses.

        Returns:
            The resolved issues as DTOs, in request order.
        """
        try:
            resolved_at = self._clock.now()
            rows: list[PurchaseOrderIssueModel] = []
            for resolution in resolutions:
                row = self._session.get(PurchaseOrderIssueModel, resolution.issue_id)
                if row is None:
                    raise IssueNotFoundError(resolution.issue_id)
                row.status = IssueStatus.RESOLVED.value
                row.resolution_type = resolution.resolution_type.value
                row.resolution_notes = resolution.notes
                row.resolved_by = resolved_by
                row.resolved_at = resolved_at
                row.touch(resolved_by)
                rows.append(row)

            self._session.flush()
            order_ids = list(dict.fromkeys(row.purchase_order_id for row in rows))
            for order_id in order_ids:
                self._refresh_statuses(self._load_order(order_id), resolved_by)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

        logger.info("issues_resolved", extra={
            "issue_count": len(rows),
            "order_count": len(order_ids),
        })
        return tuple(row.to_dto() for row in rows)

    # =========================================================================
    # Status derivation
    # =========================================================================

    def _refresh_statuses(
        self, order: PurchaseOrderModel, actor_id: UUID
    ) -> PurchaseOrderStatus:
        item_statuses = []
        for item in order.items:
            facts = ItemDeliveryFacts(
                ordered=item.quantity,
                total_good=item.received_good,
                redelivered_good=item.redelivered_good,
                issues=tuple(issue.to_dto() for issue in item.issues),
            )
            status = derive_item_status(facts)
            if item.status != status.value:
                item.status = status.value
                item.touch(actor_id)
            item_statuses.append(status)

        order_status = derive_order_status(item_statuses)
        if order.status != order_status.value:
            logger.info("purchase_order_status_changed", extra={
                "purchase_order_id": str(order.id),
                "from_status": order.status,
                "to_status": order_status.value,
            })
            order.status = order_status.value
            order.touch(actor_id)
        return order_status
