"""
Typed Exception Hierarchy for the Delivery Reconciliation Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the reconciliation engine (a presentation layer, a batch job, the
order-management adapter) must react to failures by type, not by parsing
messages:

    try:
        session.set_quantity(key, QuantityBucket.DAMAGED, 3)
    except SessionStateError as e:      # Typed catch
        log.warning("edit ignored", extra={"phase": e.phase})

Every exception carries a class-level ``code`` (machine-readable, API-safe)
and its context as attributes (not just a message string).

Validation failures (unaccounted quantities, missing issue notes) are NOT
exceptions. They are surfaced as ``is_valid`` / ``can_submit`` flags and a
``ValidationSummary``; nothing in this module is raised for them.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    DeliveryKernelError (base)
    |
    +-- SessionError
    |   +-- SessionStateError
    |   +-- GroupNotFoundError
    |
    +-- OrderError
    |   +-- PurchaseOrderNotFoundError
    |   +-- LineItemNotFoundError
    |   +-- ForeignLineItemError
    |   +-- IssueNotFoundError
    |
    +-- DeliveryError
    |   +-- DeliverySubmissionError
    |   +-- EmptyDeliveryError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                        | When Raised
-----------|-----------------------------|------------------------------------------
Session    | SESSION_STATE               | Operation not legal in the current phase
           | GROUP_NOT_FOUND             | Aggregation key not part of the session
-----------|-----------------------------|------------------------------------------
Order      | PURCHASE_ORDER_NOT_FOUND    | Order ID doesn't exist in the store
           | LINE_ITEM_NOT_FOUND         | Line item ID doesn't exist
           | FOREIGN_LINE_ITEM           | Line item belongs to another order
           | ISSUE_NOT_FOUND             | Issue ID doesn't exist
-----------|-----------------------------|------------------------------------------
Delivery   | DELIVERY_SUBMISSION_FAILED  | Collaborator rejected a change-set
           | EMPTY_DELIVERY              | Change-set carries no items
-----------|-----------------------------|------------------------------------------
Config     | CONFIGURATION_ERROR         | Invalid or unreadable configuration
"""

from uuid import UUID


class DeliveryKernelError(Exception):
    """
    Base exception for all delivery reconciliation errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "DELIVERY_KERNEL_ERROR"


# Session-related exceptions


class SessionError(DeliveryKernelError):
    """Base exception for reconciliation session errors."""

    code: str = "SESSION_ERROR"


class SessionStateError(SessionError):
    """Operation attempted in a session phase that does not allow it."""

    code: str = "SESSION_STATE"

    def __init__(self, operation: str, phase: str, allowed: tuple[str, ...]):
        self.operation = operation
        self.phase = phase
        self.allowed = allowed
        super().__init__(
            f"Cannot {operation} while session is {phase} "
            f"(allowed: {', '.join(allowed)})"
        )


class GroupNotFoundError(SessionError):
    """Aggregation key is not part of this session."""

    code: str = "GROUP_NOT_FOUND"

    def __init__(self, group_key: str):
        self.group_key = group_key
        super().__init__(f"Aggregated group not found: {group_key}")


# Order-related exceptions


class OrderError(DeliveryKernelError):
    """Base exception for order-management store errors."""

    code: str = "ORDER_ERROR"


class PurchaseOrderNotFoundError(OrderError):
    """Purchase order with given ID was not found."""

    code: str = "PURCHASE_ORDER_NOT_FOUND"

    def __init__(self, purchase_order_id: UUID | str):
        self.purchase_order_id = str(purchase_order_id)
        super().__init__(f"Purchase order not found: {purchase_order_id}")


class LineItemNotFoundError(OrderError):
    """Purchase order line item with given ID was not found."""

    code: str = "LINE_ITEM_NOT_FOUND"

    def __init__(self, line_item_id: UUID | str):
        self.line_item_id = str(line_item_id)
        super().__init__(f"Line item not found: {line_item_id}")


class ForeignLineItemError(OrderError):
    """Line item exists but belongs to a different purchase order."""

    code: str = "FOREIGN_LINE_ITEM"

    def __init__(
        self,
        line_item_id: UUID | str,
        purchase_order_id: UUID | str,
        owning_order_id: UUID | str,
    ):
        self.line_item_id = str(line_item_id)
        self.purchase_order_id = str(purchase_order_id)
        self.owning_order_id = str(owning_order_id)
        super().__init__(
            f"Line item {line_item_id} belongs to order {owning_order_id}, "
            f"not {purchase_order_id}"
        )


class IssueNotFoundError(OrderError):
    """Issue record with given ID was not found."""

    code: str = "ISSUE_NOT_FOUND"

    def __init__(self, issue_id: UUID | str):
        self.issue_id = str(issue_id)
        super().__init__(f"Issue not found: {issue_id}")


# Delivery-related exceptions


class DeliveryError(DeliveryKernelError):
    """Base exception for delivery submission errors."""

    code: str = "DELIVERY_ERROR"


class DeliverySubmissionError(DeliveryError):
    """The order-management collaborator rejected a delivery change-set."""

    code: str = "DELIVERY_SUBMISSION_FAILED"

    def __init__(self, purchase_order_id: UUID | str, reason: str):
        self.purchase_order_id = str(purchase_order_id)
        self.reason = reason
        super().__init__(
            f"Delivery for order {purchase_order_id} rejected: {reason}"
        )


class EmptyDeliveryError(DeliveryError):
    """A change-set with no items cannot be applied."""

    code: str = "EMPTY_DELIVERY"

    def __init__(self, purchase_order_id: UUID | str):
        self.purchase_order_id = str(purchase_order_id)
        super().__init__(f"Delivery for order {purchase_order_id} has no items")


# Configuration exceptions


class ConfigurationError(DeliveryKernelError):
    """Configuration could not be parsed or holds an unsupported value."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, value: object, reason: str):
        self.key = key
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid configuration {key}={value!r}: {reason}")
