"""
Procurement Domain Models.

The nouns of delivery processing: purchase orders, delivery sessions,
issue resolutions and submission receipts.  Line items and issue records
are kernel DTOs shared with the engines and re-exported here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from delivery_engines.order_status import LineItemStatus, PurchaseOrderStatus
from delivery_kernel.domain.dtos import (
    IssueRecord,
    IssueStatus,
    IssueType,
    LineItem,
    ResolutionType,
)
from delivery_kernel.logging_config import get_logger

logger = get_logger("modules.procurement.models")

__all__ = [
    "DeliverySession",
    "DeliverySubmissionReceipt",
    "IssueRecord",
    "IssueResolution",
    "IssueStatus",
    "IssueType",
    "LineItem",
    "LineItemStatus",
    "PurchaseOrder",
    "PurchaseOrderStatus",
    "ResolutionType",
]


@dataclass(frozen=True)
class PurchaseOrder:
    """A purchase order with its line items."""
    id: UUID
    po_number: str
    status: PurchaseOrderStatus = PurchaseOrderStatus.PENDING
    line_items: tuple[LineItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DeliverySession:
    """One recorded delivery against a purchase order."""
    id: UUID
    purchase_order_id: UUID
    processed_by: UUID
    processed_at: datetime
    delivery_notes: str | None = None
    receipt_count: int = 0
    issue_count: int = 0


@dataclass(frozen=True)
class DeliverySubmissionReceipt:
    """What the order-management store reports after applying a delivery."""
    delivery_session_id: UUID
    purchase_order_id: UUID
    order_status: PurchaseOrderStatus
    receipt_count: int
    issue_ids: tuple[UUID, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class IssueResolution:
    """Procurement's decision on one reported issue."""
    issue_id: UUID
    resolution_type: ResolutionType
    notes: str | None = None
