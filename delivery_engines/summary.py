"""
Module: delivery_engines.summary
Responsibility:
    Read-only presentation views over a reconciliation session: per-group
    badges, progress percentages and accounting hints, plus session-wide
    counts for progress display.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Holds no state and never
    feeds back into the reconciliation state machine.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from delivery_engines.aggregation import AggregatedGroup
from delivery_engines.reconciliation.domain import (
    ISSUE_BUCKETS,
    QuantityBucket,
    WorkingStatus,
)


class GroupBadge(str, Enum):
    """Display badge for a group card, first matching wins."""

    FULLY_ACCOUNTED = "fully-accounted"
    INVALID = "invalid"
    OVER_DELIVERY = "over-delivery"
    ALL_GOOD = "all-good"
    ALL_DAMAGED = "all-damaged"
    ALL_MISSING = "all-missing"
    ALL_WRONG_ITEM = "all-wrong-item"
    HAS_ISSUES = "has-issues"
    VALID = "valid"


_ALL_IN_BUCKET_BADGES = (
    (QuantityBucket.RECEIVED_GOOD, GroupBadge.ALL_GOOD),
    (QuantityBucket.DAMAGED, GroupBadge.ALL_DAMAGED),
    (QuantityBucket.NEVER_ARRIVED, GroupBadge.ALL_MISSING),
    (QuantityBucket.WRONG_ITEM, GroupBadge.ALL_WRONG_ITEM),
)


def badge_for(status: WorkingStatus) -> GroupBadge:
    if status.is_fully_accounted:
        return GroupBadge.FULLY_ACCOUNTED
    if not status.is_valid:
        return GroupBadge.INVALID
    if status.is_over_delivery:
        return GroupBadge.OVER_DELIVERY
    for bucket, badge in _ALL_IN_BUCKET_BADGES:
        if status.quantity(bucket) == status.remaining and all(
            status.quantity(b) == 0 for b in QuantityBucket if b is not bucket
        ):
            return badge
    if any(status.quantity(b) > 0 for b in ISSUE_BUCKETS):
        return GroupBadge.HAS_ISSUES
    return GroupBadge.VALID


def accounting_hint(status: WorkingStatus, unit: str = "units") -> str | None:
    """
    Operator hint on how the entered quantities relate to ``remaining``.

    ``"+2 units more than ordered"`` for over-delivery, ``"3 units still
    unaccounted"`` for a partial entry, ``"1 units over limit"`` when issue
    quantities push the total past the remainder.  None when nothing is
    entered or the entry matches exactly.
    """
    if status.is_over_delivery:
        return f"+{status.over_delivery_amount} {unit} more than ordered"
    total = status.total_accounted_for
    if total == 0 or total == status.remaining:
        return None
    if total < status.remaining:
        return f"{status.remaining - total} {unit} still unaccounted"
    return f"{total - status.remaining} {unit} over limit"


def progress_percent(group: AggregatedGroup, status: WorkingStatus) -> int:
    """Share of the ordered quantity accounted by history plus this session."""
    if group.ordered == 0:
        return 100
    accounted = group.already_received + group.total_prior_issues + status.total_accounted_for
    return min(100, accounted * 100 // group.ordered)


@dataclass(frozen=True)
class GroupView:
    """Display snapshot of one group."""

    key: str
    item_type_name: str | None
    merchant_name: str | None
    measuring_unit: str
    ordered: int
    already_received: int
    total_prior_issues: int
    member_count: int
    status: WorkingStatus
    badge: GroupBadge
    progress_percent: int
    accounting_hint: str | None

    @property
    def has_history(self) -> bool:
        return self.already_received > 0 or self.total_prior_issues > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "item_type_name": self.item_type_name,
            "merchant_name": self.merchant_name,
            "measuring_unit": self.measuring_unit,
            "ordered": self.ordered,
            "already_received": self.already_received,
            "total_prior_issues": self.total_prior_issues,
            "member_count": self.member_count,
            "badge": self.badge.value,
            "progress_percent": self.progress_percent,
            "accounting_hint": self.accounting_hint,
            **self.status.to_dict(),
        }


def build_group_view(group: AggregatedGroup, status: WorkingStatus) -> GroupView:
    return GroupView(
        key=group.key,
        item_type_name=group.item_type_name,
        merchant_name=group.merchant_name,
        measuring_unit=group.measuring_unit,
        ordered=group.ordered,
        already_received=group.already_received,
        total_prior_issues=group.total_prior_issues,
        member_count=len(group.members),
        status=status,
        badge=badge_for(status),
        progress_percent=progress_percent(group, status),
        accounting_hint=accounting_hint(status, group.measuring_unit),
    )


@dataclass(frozen=True)
class SessionSummary:
    """Session-wide counts for progress display."""

    total_groups: int
    selected_count: int
    valid_count: int
    with_issues_count: int
    fully_accounted_count: int
    groups: tuple[GroupView, ...]

    @property
    def has_items_to_process(self) -> bool:
        return self.fully_accounted_count < self.total_groups

    @property
    def processable_count(self) -> int:
        return self.total_groups - self.fully_accounted_count

    @property
    def fully_accounted_percent(self) -> int:
        if self.total_groups == 0:
            return 100
        return self.fully_accounted_count * 100 // self.total_groups


def summarize(
    groups: Sequence[AggregatedGroup],
    statuses: Mapping[str, WorkingStatus],
) -> SessionSummary:
    """Counts over every group's status, plus one GroupView per group."""
    views = tuple(
        build_group_view(group, statuses[group.key])
        for group in groups
        if group.key in statuses
    )
    current = [v.status for v in views]
    return SessionSummary(
        total_groups=len(views),
        selected_count=sum(1 for s in current if s.selected),
        valid_count=sum(1 for s in current if s.is_valid),
        with_issues_count=sum(1 for s in current if s.has_issues),
        fully_accounted_count=sum(1 for s in current if s.is_fully_accounted),
        groups=views,
    )
