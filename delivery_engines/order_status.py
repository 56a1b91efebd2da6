"""
Module: delivery_engines.order_status
Responsibility:
    Derive a purchase order line item's fulfilment status from its receipts
    and issues, and the order's status from its items' statuses.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The order-management
    service gathers the facts from the store and persists the result.

Invariants enforced:
    - Any unresolved issue makes the item DISPUTED.
    - Units promised by a REDELIVERY resolution but not yet received keep
      the item PENDING.
    - Resolved issues settled any other way (refund, accepted shortage)
      count toward completion alongside good units.
    - Order status depends only on the multiset of item statuses.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from delivery_kernel.domain.dtos import IssueRecord, ResolutionType


class LineItemStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    COMPLETED = "COMPLETED"
    DISPUTED = "DISPUTED"


class PurchaseOrderStatus(str, Enum):
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PARTIAL_DISPUTED = "PARTIAL_DISPUTED"
    DISPUTED = "DISPUTED"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class ItemDeliveryFacts:
    """Everything recorded against one line item across all deliveries."""

    ordered: int
    total_good: int = 0
    redelivered_good: int = 0
    issues: tuple[IssueRecord, ...] = field(default_factory=tuple)

    @property
    def unresolved_issue_count(self) -> int:
        return sum(1 for i in self.issues if not i.is_resolved)

    @property
    def closed_issue_quantity(self) -> int:
        return sum(
            i.affected_quantity
            for i in self.issues
            if i.is_resolved and i.resolution_type != ResolutionType.REDELIVERY
        )

    @property
    def pending_redelivery(self) -> int:
        promised = sum(
            i.affected_quantity
            for i in self.issues
            if i.is_resolved and i.resolution_type == ResolutionType.REDELIVERY
        )
        return promised - self.redelivered_good


def derive_item_status(facts: ItemDeliveryFacts) -> LineItemStatus:
    if facts.unresolved_issue_count > 0:
        return LineItemStatus.DISPUTED
    if facts.pending_redelivery > 0:
        return LineItemStatus.PENDING
    settled = facts.total_good + facts.closed_issue_quantity
    if settled >= facts.ordered:
        return LineItemStatus.COMPLETED
    if settled > 0:
        return LineItemStatus.PARTIAL
    return LineItemStatus.PENDING


def derive_order_status(item_statuses: Iterable[LineItemStatus]) -> PurchaseOrderStatus:
    """
    Roll item statuses up to the order.

    Items still waiting on goods (PENDING or PARTIAL) are outstanding;
    DISPUTED items wait on a resolution instead.

    - disputed items and outstanding items -> PARTIAL_DISPUTED
    - disputed items only                  -> DISPUTED
    - outstanding items only               -> PARTIAL
    - every item COMPLETED                 -> COMPLETED
    """
    statuses: Sequence[LineItemStatus] = tuple(item_statuses)
    has_disputed = LineItemStatus.DISPUTED in statuses
    has_outstanding = any(
        s in (LineItemStatus.PENDING, LineItemStatus.PARTIAL) for s in statuses
    )

    if has_disputed and has_outstanding:
        return PurchaseOrderStatus.PARTIAL_DISPUTED
    if has_disputed:
        return PurchaseOrderStatus.DISPUTED
    if has_outstanding:
        return PurchaseOrderStatus.PARTIAL
    return PurchaseOrderStatus.COMPLETED
