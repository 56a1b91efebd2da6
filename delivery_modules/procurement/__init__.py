"""
Procurement Module (``delivery_modules.procurement``).

Responsibility
--------------
The reference order-management collaborator: purchase orders and their line
items, recorded deliveries and receipts, reported and resolved issues, and
the async gateway the reconciliation session consumes.

Architecture position
---------------------
**Modules layer** -- ORM models, DTOs, a service facade that owns the
transaction boundary, and the gateway protocol plus its SQL adapter.

Invariants enforced
-------------------
* A delivery change-set is applied atomically by
  ``DeliveryProcessingService.process_delivery``.
* Item and order statuses are derived by ``delivery_engines.order_status``.
"""

from delivery_modules.procurement.gateway import (
    OrderManagementGateway,
    SqlOrderGateway,
)
from delivery_modules.procurement.models import (
    DeliverySession,
    DeliverySubmissionReceipt,
    IssueResolution,
    PurchaseOrder,
)
from delivery_modules.procurement.service import DeliveryProcessingService

__all__ = [
    "DeliveryProcessingService",
    "DeliverySession",
    "DeliverySubmissionReceipt",
    "IssueResolution",
    "OrderManagementGateway",
    "PurchaseOrder",
    "SqlOrderGateway",
]
