"""
Order-management gateway.

``OrderManagementGateway`` is the narrow, asynchronous contract the
reconciliation session consumes: fetch an order's line items, fetch its
issue history (which may fail), and submit one delivery change-set.

``SqlOrderGateway`` implements it over the reference store by running
``DeliveryProcessingService`` in a worker thread, one database session per
call, so the event loop never blocks on the database.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from delivery_engines.projection import DeliveryChangeSet
from delivery_kernel.domain.clock import Clock, SystemClock
from delivery_kernel.domain.dtos import IssueRecord, LineItem
from delivery_kernel.logging_config import get_logger
from delivery_modules.procurement.models import DeliverySubmissionReceipt
from delivery_modules.procurement.service import DeliveryProcessingService

logger = get_logger("modules.procurement.gateway")


@runtime_checkable
class OrderManagementGateway(Protocol):
    """Async contract with the order-management collaborator.

    Implementations: SqlOrderGateway (reference store), test fakes.
    """

    async def fetch_order_line_items(self, order_id: UUID) -> Sequence[LineItem]:
        """Return the order's line items.

        Raises:
            PurchaseOrderNotFoundError: When the order does not exist.
        """
        ...

    async def fetch_issues(self, order_id: UUID) -> Sequence[IssueRecord]:
        """Return every issue reported against the order.  May fail."""
        ...

    async def submit_delivery(
        self, order_id: UUID, change_set: DeliveryChangeSet
    ) -> DeliverySubmissionReceipt:
        """Apply the change-set atomically, or raise and apply nothing."""
        ...


class SqlOrderGateway:
    """OrderManagementGateway over the SQLAlchemy reference store."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        actor_id: UUID,
        clock: Clock | None = None,
        redelivery: bool = False,
    ):
        self._session_factory = session_factory
        self._actor_id = actor_id
        self._clock = clock or SystemClock()
        self._redelivery = redelivery

    def _service(self, session: Session) -> DeliveryProcessingService:
        return DeliveryProcessingService(session, clock=self._clock)

    def _line_items(self, order_id: UUID) -> tuple[LineItem, ...]:
        with self._session_factory() as session:
            return self._service(session).get_line_items(order_id)

    def _issues(self, order_id: UUID) -> tuple[IssueRecord, ...]:
        with self._session_factory() as session:
            return self._service(session).get_issues(order_id)

    def _submit(
        self, order_id: UUID, change_set: DeliveryChangeSet
    ) -> DeliverySubmissionReceipt:
        with self._session_factory() as session:
            return self._service(session).process_delivery(
                order_id,
                change_set,
                processed_by=self._actor_id,
                redelivery=self._redelivery,
            )

    async def fetch_order_line_items(self, order_id: UUID) -> Sequence[LineItem]:
        return await asyncio.to_thread(self._line_items, order_id)

    async def fetch_issues(self, order_id: UUID) -> Sequence[IssueRecord]:
        return await asyncio.to_thread(self._issues, order_id)

    async def submit_delivery(
        self, order_id: UUID, change_set: DeliveryChangeSet
    ) -> DeliverySubmissionReceipt:
        logger.debug("gateway_submit_delivery", extra={
            "purchase_order_id": str(order_id),
            "item_count": len(change_set.items),
        })
        return await asyncio.to_thread(self._submit, order_id, change_set)
