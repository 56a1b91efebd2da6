"""
Reconciliation Domain Objects.

Immutable value objects for the per-group working state of a reconciliation
session and the edits an operator applies to it.  Pure domain objects with
no I/O dependencies.

A WorkingStatus is never mutated.  Every edit produces a new instance via
``delivery_engines.reconciliation.reducer.apply_edit``; the derived flags
are properties over the stored fields, so they can never drift from them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from delivery_engines.aggregation import AggregatedGroup
from delivery_kernel.domain.dtos import IssueType


class QuantityBucket(str, Enum):
    """The five places a delivered (or undelivered) unit can be accounted to."""

    RECEIVED_GOOD = "received_good"
    DAMAGED = "damaged"
    NEVER_ARRIVED = "never_arrived"
    WRONG_ITEM = "wrong_item"
    OTHER = "other"

    @property
    def is_issue(self) -> bool:
        return self is not QuantityBucket.RECEIVED_GOOD

    @property
    def issue_type(self) -> IssueType | None:
        return _BUCKET_ISSUE_TYPES.get(self)


ISSUE_BUCKETS: tuple[QuantityBucket, ...] = (
    QuantityBucket.DAMAGED,
    QuantityBucket.NEVER_ARRIVED,
    QuantityBucket.WRONG_ITEM,
    QuantityBucket.OTHER,
)

_BUCKET_ISSUE_TYPES = {
    QuantityBucket.DAMAGED: IssueType.DAMAGED,
    QuantityBucket.NEVER_ARRIVED: IssueType.NEVER_ARRIVED,
    QuantityBucket.WRONG_ITEM: IssueType.WRONG_ITEM,
    QuantityBucket.OTHER: IssueType.OTHER,
}


class QuickFillAction(str, Enum):
    """One-click toggles that account the whole remainder to one bucket."""

    MARK_ALL_GOOD = "mark_all_good"
    MARK_ALL_DAMAGED = "mark_all_damaged"
    MARK_ALL_MISSING = "mark_all_missing"
    MARK_ALL_WRONG_ITEM = "mark_all_wrong_item"

    @property
    def bucket(self) -> QuantityBucket:
        return _QUICK_FILL_BUCKETS[self]


_QUICK_FILL_BUCKETS = {
    QuickFillAction.MARK_ALL_GOOD: QuantityBucket.RECEIVED_GOOD,
    QuickFillAction.MARK_ALL_DAMAGED: QuantityBucket.DAMAGED,
    QuickFillAction.MARK_ALL_MISSING: QuantityBucket.NEVER_ARRIVED,
    QuickFillAction.MARK_ALL_WRONG_ITEM: QuantityBucket.WRONG_ITEM,
}


@dataclass(frozen=True)
class WorkingStatus:
    """
    Per-group editable state during a reconciliation session.

    Contract:
        Frozen; replaced on every edit.  ``remaining`` and
        ``is_fully_accounted`` are captured from the group at session start.
    Guarantees:
        - All five buckets are non-negative integers.
        - Derived flags are recomputed from the buckets on every read.
    """

    group_key: str
    remaining: int
    is_fully_accounted: bool
    received_good: int = 0
    damaged: int = 0
    never_arrived: int = 0
    wrong_item: int = 0
    other: int = 0
    issue_notes: str = ""
    selected: bool = False

    def __post_init__(self) -> None:
        for bucket in QuantityBucket:
            if getattr(self, bucket.value) < 0:
                raise ValueError(f"{bucket.value} cannot be negative")

    @classmethod
    def initial(cls, group: AggregatedGroup) -> WorkingStatus:
        """Zeroed, unselected status seeded from a group."""
        return cls(
            group_key=group.key,
            remaining=group.remaining,
            is_fully_accounted=group.remaining == 0,
        )

    def quantity(self, bucket: QuantityBucket) -> int:
        return getattr(self, bucket.value)

    @property
    def total_accounted_for(self) -> int:
        return sum(self.quantity(b) for b in QuantityBucket)

    @property
    def total_issues(self) -> int:
        return sum(self.quantity(b) for b in ISSUE_BUCKETS)

    @property
    def has_issues(self) -> bool:
        return self.total_issues > 0

    @property
    def is_over_delivery(self) -> bool:
        """Over-delivery is only reachable through ``received_good``."""
        return self.received_good > self.remaining

    @property
    def over_delivery_amount(self) -> int:
        return max(0, self.received_good - self.remaining)

    @property
    def is_valid(self) -> bool:
        """
        Quantity validity of the group's entries.

        - Over-delivery: valid iff every issue bucket is 0.
        - Fully accounted with nothing entered: valid.
        - Otherwise: ``0 < total_accounted_for <= remaining``.
        """
        if self.is_over_delivery:
            return not self.has_issues
        total = self.total_accounted_for
        if self.is_fully_accounted and total == 0:
            return True
        return 0 < total <= self.remaining

    @property
    def needs_notes(self) -> bool:
        return self.has_issues and not self.issue_notes.strip()

    @property
    def is_submission_ready(self) -> bool:
        return self.is_valid and not self.needs_notes

    @property
    def unaccounted(self) -> int:
        """Units of ``remaining`` this session has not yet assigned."""
        return max(0, self.remaining - self.total_accounted_for)

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_key": self.group_key,
            "remaining": self.remaining,
            "received_good": self.received_good,
            "damaged": self.damaged,
            "never_arrived": self.never_arrived,
            "wrong_item": self.wrong_item,
            "other": self.other,
            "total_accounted_for": self.total_accounted_for,
            "issue_notes": self.issue_notes,
            "selected": self.selected,
            "has_issues": self.has_issues,
            "is_over_delivery": self.is_over_delivery,
            "over_delivery_amount": self.over_delivery_amount,
            "is_valid": self.is_valid,
            "is_fully_accounted": self.is_fully_accounted,
        }


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToggleSelection:
    """Flip ``selected``."""


@dataclass(frozen=True)
class SetSelection:
    selected: bool


@dataclass(frozen=True)
class SetQuantity:
    """Set one bucket.  ``value`` is raw operator input (int or numeric text)."""

    bucket: QuantityBucket
    value: Any


@dataclass(frozen=True)
class SetIssueNotes:
    notes: str


@dataclass(frozen=True)
class QuickFill:
    action: QuickFillAction


Edit = ToggleSelection | SetSelection | SetQuantity | SetIssueNotes | QuickFill
