"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable records that flow into the reconciliation engine
    from the order-management store: LineItem (one ordered quantity of an
    item type on a purchase order) and IssueRecord (a previously reported
    discrepancy against one line item).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of ORM dependencies; ORM models convert to these DTOs at the
    module boundary (``to_dto()``), never the other way round inside engines.

Invariants enforced:
    - Quantities are non-negative integers (ValueError otherwise).
    - A resolved IssueRecord carries a resolution type.

Failure modes:
    - ValueError on negative or non-integer quantities.
    - ValueError on a RESOLVED issue without ``resolution_type``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class IssueType(str, Enum):
    """Kind of discrepancy reported against delivered quantity."""

    DAMAGED = "DAMAGED"
    NEVER_ARRIVED = "NEVER_ARRIVED"
    WRONG_ITEM = "WRONG_ITEM"
    OTHER = "OTHER"


class IssueStatus(str, Enum):
    """Issue lifecycle: reported by the receiver, resolved by procurement."""

    REPORTED = "REPORTED"
    RESOLVED = "RESOLVED"


class ResolutionType(str, Enum):
    """How a reported issue was settled with the merchant."""

    REDELIVERY = "REDELIVERY"  # Merchant ships the units again
    REFUND = "REFUND"
    ACCEPT_SHORTAGE = "ACCEPT_SHORTAGE"


def _require_quantity(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} cannot be negative: {value}")


@dataclass(frozen=True)
class LineItem:
    """
    One ordered quantity of an item type from a purchase order.

    Contract:
        Immutable once fetched; belongs to exactly one purchase order.
    Guarantees:
        - ``quantity`` and ``received_good`` are non-negative integers.
    """

    id: UUID
    purchase_order_id: UUID
    item_type_id: str | None
    item_type_name: str | None
    merchant_id: str | None
    merchant_name: str | None
    quantity: int
    received_good: int = 0
    measuring_unit: str = "units"

    def __post_init__(self) -> None:
        _require_quantity("quantity", self.quantity)
        _require_quantity("received_good", self.received_good)


@dataclass(frozen=True)
class IssueRecord:
    """A previously reported discrepancy against one line item."""

    id: UUID
    line_item_id: UUID
    issue_type: IssueType
    affected_quantity: int
    description: str
    status: IssueStatus
    reported_by: UUID | None = None
    reported_at: datetime | None = None
    resolved_by: UUID | None = None
    resolved_at: datetime | None = None
    resolution_type: ResolutionType | None = None
    resolution_notes: str | None = None

    def __post_init__(self) -> None:
        _require_quantity("affected_quantity", self.affected_quantity)
        if self.status == IssueStatus.RESOLVED and self.resolution_type is None:
            raise ValueError(f"Resolved issue {self.id} has no resolution type")

    @property
    def is_resolved(self) -> bool:
        return self.status == IssueStatus.RESOLVED
