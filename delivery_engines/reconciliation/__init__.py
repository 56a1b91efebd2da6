"""
Reconciliation state machine: working status, edits, reducer and validation.
"""

from delivery_engines.reconciliation.domain import (
    ISSUE_BUCKETS,
    Edit,
    QuantityBucket,
    QuickFill,
    QuickFillAction,
    SetIssueNotes,
    SetQuantity,
    SetSelection,
    ToggleSelection,
    WorkingStatus,
)
from delivery_engines.reconciliation.reducer import apply_edit, normalize_quantity
from delivery_engines.reconciliation.validation import (
    ValidationSummary,
    build_validation_summary,
    can_submit,
)

__all__ = [
    "ISSUE_BUCKETS",
    "Edit",
    "QuantityBucket",
    "QuickFill",
    "QuickFillAction",
    "SetIssueNotes",
    "SetQuantity",
    "SetSelection",
    "ToggleSelection",
    "WorkingStatus",
    "apply_edit",
    "normalize_quantity",
    "ValidationSummary",
    "build_validation_summary",
    "can_submit",
]
