"""
SQLAlchemy ORM persistence models for the reference order-management store.

Responsibility
--------------
Persist purchase orders, their line items, recorded delivery sessions, the
per-item receipts of each delivery and the issues reported against items.
This is the durable state the reconciliation engine reads at session start
and mutates only through one delivery submission.

Architecture position
---------------------
**Modules layer** -- ORM models consumed by ``DeliveryProcessingService``.
Inherits from ``TrackedBase`` (kernel db layer).

Invariants enforced
-------------------
* Quantities are whole units (Integer).
* Enum fields stored as String(50) for readability and portability.
* A line item's ``received_good`` is never stored; it is the sum of its
  receipts' good quantities.
* Every receipt belongs to exactly one delivery session and one line item.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from delivery_kernel.db.base import TrackedBase

# ---------------------------------------------------------------------------
# PurchaseOrderModel
# ---------------------------------------------------------------------------


class PurchaseOrderModel(TrackedBase):
    """
    A purchase order.

    Maps to the ``PurchaseOrder`` DTO in ``delivery_modules.procurement.models``.

    Guarantees:
        - ``po_number`` is unique.
        - ``status`` is recomputed from item statuses after every delivery
          and every issue resolution.
    """

    __tablename__ = "purchase_orders"

    __table_args__ = (
        UniqueConstraint("po_number", name="uq_purchase_order_number"),
        Index("idx_purchase_order_status", "status"),
    )

    po_number: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="PENDING")

    items: Mapped[list["PurchaseOrderItemModel"]] = relationship(
        "PurchaseOrderItemModel",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseOrderItemModel.line_number",
    )

    def to_dto(self):
        from delivery_modules.procurement.models import PurchaseOrder, PurchaseOrderStatus

        return PurchaseOrder(
            id=self.id,
            po_number=self.po_number,
            status=PurchaseOrderStatus(self.status),
            line_items=tuple(item.to_dto() for item in self.items),
        )


# ---------------------------------------------------------------------------
# PurchaseOrderItemModel
# ---------------------------------------------------------------------------


class PurchaseOrderItemModel(TrackedBase):
    """
    One line item of a purchase order.

    Maps to the kernel ``LineItem`` DTO.
    """

    __tablename__ = "purchase_order_items"

    __table_args__ = (
        Index("idx_po_item_order", "purchase_order_id"),
        Index("idx_po_item_type_merchant", "item_type_id", "merchant_id"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id"), nullable=False
    )
    line_number: Mapped[int] = mapped_column(nullable=False, default=0)
    item_type_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    item_type_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    merchant_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    merchant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(nullable=False)
    measuring_unit: Mapped[str] = mapped_column(String(30), nullable=False, default="units")
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="PENDING")

    purchase_order: Mapped["PurchaseOrderModel"] = relationship(
        "PurchaseOrderModel", back_populates="items"
    )
    receipts: Mapped[list["DeliveryItemReceiptModel"]] = relationship(
        "DeliveryItemReceiptModel",
        back_populates="purchase_order_item",
        lazy="selectin",
    )
    issues: Mapped[list["PurchaseOrderIssueModel"]] = relationship(
        "PurchaseOrderIssueModel",
        back_populates="purchase_order_item",
        lazy="selectin",
        order_by="PurchaseOrderIssueModel.reported_at",
    )

    @property
    def received_good(self) -> int:
        return sum(r.good_quantity for r in self.receipts)

    @property
    def redelivered_good(self) -> int:
        return sum(r.good_quantity for r in self.receipts if r.is_redelivery)

    def to_dto(self):
        from delivery_kernel.domain.dtos import LineItem

        return LineItem(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            item_type_id=self.item_type_id,
            item_type_name=self.item_type_name,
            merchant_id=self.merchant_id,
            merchant_name=self.merchant_name,
            quantity=self.quantity,
            received_good=self.received_good,
            measuring_unit=self.measuring_unit,
        )


# ---------------------------------------------------------------------------
# DeliverySessionModel / DeliveryItemReceiptModel
# ---------------------------------------------------------------------------


class DeliverySessionModel(TrackedBase):
    """One delivery recorded against a purchase order."""

    __tablename__ = "delivery_sessions"

    __table_args__ = (Index("idx_delivery_session_order", "purchase_order_id"),)

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id"), nullable=False
    )
    processed_by: Mapped[UUID] = mapped_column(nullable=False)
    processed_at: Mapped[datetime] = mapped_column(nullable=False)
    delivery_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    receipts: Mapped[list["DeliveryItemReceiptModel"]] = relationship(
        "DeliveryItemReceiptModel",
        back_populates="delivery_session",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dto(self):
        from delivery_modules.procurement.models import DeliverySession

        return DeliverySession(
            id=self.id,
            purchase_order_id=self.purchase_order_id,
            processed_by=self.processed_by,
            processed_at=self.processed_at,
            delivery_notes=self.delivery_notes,
            receipt_count=len(self.receipts),
            issue_count=sum(len(r.issues) for r in self.receipts),
        )


class DeliveryItemReceiptModel(TrackedBase):
    """Good units of one line item received in one delivery."""

    __tablename__ = "delivery_item_receipts"

    __table_args__ = (
        Index("idx_receipt_session", "delivery_session_id"),
        Index("idx_receipt_item", "purchase_order_item_id"),
    )

    delivery_session_id: Mapped[UUID] = mapped_column(
        ForeignKey("delivery_sessions.id"), nullable=False
    )
    purchase_order_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_order_items.id"), nullable=False
    )
    good_quantity: Mapped[int] = mapped_column(nullable=False, default=0)
    is_redelivery: Mapped[bool] = mapped_column(nullable=False, default=False)

    delivery_session: Mapped["DeliverySessionModel"] = relationship(
        "DeliverySessionModel", back_populates="receipts"
    )
    purchase_order_item: Mapped["PurchaseOrderItemModel"] = relationship(
        "PurchaseOrderItemModel", back_populates="receipts"
    )
    issues: Mapped[list["PurchaseOrderIssueModel"]] = relationship(
        "PurchaseOrderIssueModel",
        back_populates="delivery_item_receipt",
        lazy="selectin",
    )


# ---------------------------------------------------------------------------
# PurchaseOrderIssueModel
# ---------------------------------------------------------------------------


class PurchaseOrderIssueModel(TrackedBase):
    """
    A discrepancy reported against one line item.

    Maps to the kernel ``IssueRecord`` DTO.

    Guarantees:
        - ``status`` moves REPORTED -> RESOLVED once; resolution columns are
          populated together.
    """

    __tablename__ = "purchase_order_issues"

    __table_args__ = (
        Index("idx_issue_order", "purchase_order_id"),
        Index("idx_issue_item", "purchase_order_item_id"),
        Index("idx_issue_status", "status"),
    )

    purchase_order_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_orders.id"), nullable=False
    )
    purchase_order_item_id: Mapped[UUID] = mapped_column(
        ForeignKey("purchase_order_items.id"), nullable=False
    )
    delivery_item_receipt_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("delivery_item_receipts.id"), nullable=True
    )
    issue_type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="REPORTED")
    affected_quantity: Mapped[int] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    reported_by: Mapped[UUID | None]
    reported_at: Mapped[datetime | None]
    resolved_by: Mapped[UUID | None]
    resolved_at: Mapped[datetime | None]
    resolution_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    resolution_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    purchase_order_item: Mapped["PurchaseOrderItemModel"] = relationship(
        "PurchaseOrderItemModel", back_populates="issues"
    )
    delivery_item_receipt: Mapped["DeliveryItemReceiptModel"] = relationship(
        "DeliveryItemReceiptModel", back_populates="issues"
    )

    def to_dto(self):
        from delivery_kernel.domain.dtos import (
            IssueRecord,
            IssueStatus,
            IssueType,
            ResolutionType,
        )

        return IssueRecord(
            id=self.id,
            line_item_id=self.purchase_order_item_id,
            issue_type=IssueType(self.issue_type),
            affected_quantity=self.affected_quantity,
            description=self.description,
            status=IssueStatus(self.status),
            reported_by=self.reported_by,
            reported_at=self.reported_at,
            resolved_by=self.resolved_by,
            resolved_at=self.resolved_at,
            resolution_type=(
                ResolutionType(self.resolution_type) if self.resolution_type else None
            ),
            resolution_notes=self.resolution_notes,
        )
