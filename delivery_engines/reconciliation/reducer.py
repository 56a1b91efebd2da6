"""
Module: delivery_engines.reconciliation.reducer
Responsibility:
    The reconciliation state machine as a pure reducer:
    ``apply_edit(WorkingStatus, Edit) -> WorkingStatus``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The reconciliation session
    (services layer) owns the statuses and routes operator input here.

Invariants enforced:
    - A fully accounted group (``remaining == 0``) can never become selected.
      The rejected edit returns the input status unchanged.
    - Deselecting clears nothing; re-selecting restores the last values.
    - Quantities are normalised like form input: integers or numeric text,
      anything unparsable reads as 0, negatives clamp to 0.
    - Quick-fill is a toggle: invoking the same action twice returns the
      buckets to zero.

Failure modes:
    - TypeError on an object that is not one of the edit types.
"""

from __future__ import annotations

import re
from dataclasses import replace
from typing import Any

from delivery_engines.reconciliation.domain import (
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
from delivery_kernel.logging_config import get_logger

logger = get_logger("engines.reconciliation.reducer")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def normalize_quantity(value: Any) -> int:
    """
    Read operator input as a non-negative unit count.

    ``"7"`` -> 7, ``"12 boxes"`` -> 12, ``"3.9"`` -> 3, ``""`` -> 0,
    ``"abc"`` -> 0, ``-4`` -> 0.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 0
        parsed = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        parsed = int(match.group(1)) if match else 0
    else:
        return 0
    return max(0, parsed)


def _zeroed(status: WorkingStatus, **overrides: Any) -> WorkingStatus:
    fields = {bucket.value: 0 for bucket in QuantityBucket}
    fields.update(overrides)
    return replace(status, **fields)


def _select(status: WorkingStatus, selected: bool) -> WorkingStatus:
    if selected == status.selected:
        return status
    if selected and status.remaining == 0:
        logger.info(
            "selection_rejected_fully_accounted",
            extra={"group_key": status.group_key},
        )
        return status
    return replace(status, selected=selected)


def _quick_fill(status: WorkingStatus, action: QuickFillAction) -> WorkingStatus:
    target = action.bucket
    current = status.quantity(target)
    others_clear = all(
        status.quantity(b) == 0 for b in QuantityBucket if b is not target
    )
    already_applied = (
        current == status.remaining
        and others_clear
        and (not target.is_issue or current > 0)
    )

    if already_applied:
        return _zeroed(status, issue_notes="")

    if target is QuantityBucket.RECEIVED_GOOD:
        return _zeroed(status, received_good=status.remaining, issue_notes="")
    return _zeroed(status, **{target.value: status.remaining})


def apply_edit(status: WorkingStatus, edit: Edit) -> WorkingStatus:
    """
    Apply one operator edit to a group's working status.

    Args:
        status: Current working status.
        edit: One of ToggleSelection, SetSelection, SetQuantity,
            SetIssueNotes or QuickFill.

    Returns:
        The new working status (the same instance when nothing changes).
    """
    match edit:
        case ToggleSelection():
            return _select(status, not status.selected)
        case SetSelection(selected=selected):
            return _select(status, bool(selected))
        case SetQuantity(bucket=bucket, value=value):
            return replace(status, **{QuantityBucket(bucket).value: normalize_quantity(value)})
        case SetIssueNotes(notes=notes):
            return replace(status, issue_notes=notes or "")
        case QuickFill(action=action):
            return _quick_fill(status, QuickFillAction(action))
    raise TypeError(f"Unsupported edit: {edit!r}")
