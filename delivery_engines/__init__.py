"""
Module: delivery_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    reconciliation engines.  This is the canonical import surface for the
    higher layers (delivery_services, delivery_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import delivery_kernel (domain, logging) and sibling engines.
    MUST NOT import delivery_services or delivery_modules.

Invariants enforced:
    - Purity: engines never read the clock.  Timestamps (``received_at``)
      are passed in by the session.
    - Integer arithmetic: quantities are whole units; no floats.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from delivery_engines import aggregate_line_items, fold_issue_history
    from delivery_engines import WorkingStatus, apply_edit, can_submit
    from delivery_engines import project_submission, summarize
"""

from delivery_engines.aggregation import (
    AggregatedGroup,
    aggregate_line_items,
    aggregation_key,
)
from delivery_engines.apportionment import RoundingMethod, apportion
from delivery_engines.issue_history import (
    IssueHistory,
    fold_issue_history,
    group_issues_by_line_item,
)
from delivery_engines.order_status import (
    ItemDeliveryFacts,
    LineItemStatus,
    PurchaseOrderStatus,
    derive_item_status,
    derive_order_status,
)
from delivery_engines.projection import (
    ChangeSetItem,
    DeliveryChangeSet,
    IssueAttribution,
    IssueEntry,
    ReconciliationPolicy,
    project_submission,
)
from delivery_engines.reconciliation import (
    QuantityBucket,
    QuickFill,
    QuickFillAction,
    SetIssueNotes,
    SetQuantity,
    SetSelection,
    ToggleSelection,
    ValidationSummary,
    WorkingStatus,
    apply_edit,
    build_validation_summary,
    can_submit,
)
from delivery_engines.summary import (
    GroupBadge,
    GroupView,
    SessionSummary,
    summarize,
)

__all__ = [
    # Aggregation
    "AggregatedGroup",
    "aggregate_line_items",
    "aggregation_key",
    # Issue history
    "IssueHistory",
    "fold_issue_history",
    "group_issues_by_line_item",
    # Reconciliation
    "QuantityBucket",
    "QuickFill",
    "QuickFillAction",
    "SetIssueNotes",
    "SetQuantity",
    "SetSelection",
    "ToggleSelection",
    "ValidationSummary",
    "WorkingStatus",
    "apply_edit",
    "build_validation_summary",
    "can_submit",
    # Projection
    "RoundingMethod",
    "apportion",
    "ChangeSetItem",
    "DeliveryChangeSet",
    "IssueAttribution",
    "IssueEntry",
    "ReconciliationPolicy",
    "project_submission",
    # Summary
    "GroupBadge",
    "GroupView",
    "SessionSummary",
    "summarize",
    # Order status
    "ItemDeliveryFacts",
    "LineItemStatus",
    "PurchaseOrderStatus",
    "derive_item_status",
    "derive_order_status",
]
