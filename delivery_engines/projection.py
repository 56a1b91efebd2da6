"""
Module: delivery_engines.projection
Responsibility:
    Convert the aggregated decisions of a reconciliation session back into a
    flat change-set of per-line-item entries: good units apportioned by each
    member's share of the group's ordered quantity, issue entries attributed
    according to policy.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The change-set is the whole
    contract handed to the order-management collaborator; this module never
    calls it.

Invariants enforced:
    - Only selected groups contribute entries.
    - Under LARGEST_REMAINDER the apportioned good units of a group sum to
      the group's ``received_good`` exactly; under HALF_UP within
      ``members - 1``.
    - FIRST_MEMBER attribution emits at most one issue entry per non-zero
      issue bucket, all on the group's first member, notes = group notes.
    - PRORATA attribution apportions each bucket over members with the same
      rounding rule and drops zero-quantity entries.

Failure modes:
    - ValueError from ``apportion`` on inconsistent quantities.

Usage:
    from delivery_engines.projection import project_submission

    change_set = project_submission(
        groups=groups,
        statuses=statuses,
        purchase_order_id=order_id,
        received_at=clock.now(),
        general_notes="Driver arrived late",
        policy=ReconciliationPolicy(),
    )
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from delivery_engines.aggregation import AggregatedGroup
from delivery_engines.apportionment import RoundingMethod, apportion
from delivery_engines.reconciliation.domain import ISSUE_BUCKETS, WorkingStatus
from delivery_engines.tracer import traced_engine
from delivery_kernel.domain.dtos import IssueType
from delivery_kernel.logging_config import get_logger

logger = get_logger("engines.projection")


class IssueAttribution(str, Enum):
    """Which member line items receive a group's issue quantities."""

    FIRST_MEMBER = "first_member"  # Group-level issues on the first record
    PRORATA = "prorata"  # Split like received_good


@dataclass(frozen=True)
class ReconciliationPolicy:
    """Tunable projection and validation rules (see ``delivery_config``)."""

    rounding: RoundingMethod = RoundingMethod.LARGEST_REMAINDER
    issue_attribution: IssueAttribution = IssueAttribution.FIRST_MEMBER
    require_issue_notes: bool = True


@dataclass(frozen=True)
class IssueEntry:
    """A new issue to be reported against one line item."""

    issue_type: IssueType
    quantity: int
    notes: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.issue_type.value,
            "quantity": self.quantity,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ChangeSetItem:
    """What this delivery changes for one original line item."""

    line_item_id: UUID
    received_good: int
    issues: tuple[IssueEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_item_id": str(self.line_item_id),
            "received_good": self.received_good,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(frozen=True)
class DeliveryChangeSet:
    """
    The normalized change-set handed to the order-management system.

    Guarantees:
        - At most one ChangeSetItem per line item.
        - Item order follows group order, then member order.
    """

    purchase_order_id: UUID
    items: tuple[ChangeSetItem, ...]
    received_at: datetime
    general_notes: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def total_received_good(self) -> int:
        return sum(item.received_good for item in self.items)

    @property
    def total_issue_quantity(self) -> int:
        return sum(i.quantity for item in self.items for i in item.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "purchase_order_id": str(self.purchase_order_id),
            "items": [item.to_dict() for item in self.items],
            "general_notes": self.general_notes,
            "received_at": self.received_at.isoformat(),
        }


def _issues_per_member(
    group: AggregatedGroup,
    status: WorkingStatus,
    weights: Sequence[int],
    policy: ReconciliationPolicy,
) -> list[list[IssueEntry]]:
    per_member: list[list[IssueEntry]] = [[] for _ in group.members]
    for bucket in ISSUE_BUCKETS:
        quantity = status.quantity(bucket)
        if quantity == 0:
            continue
        if policy.issue_attribution == IssueAttribution.PRORATA:
            shares = apportion(quantity, weights, policy.rounding)
        else:
            shares = (quantity,) + (0,) * (len(group.members) - 1)
        for i, share in enumerate(shares):
            if share > 0:
                per_member[i].append(
                    IssueEntry(
                        issue_type=bucket.issue_type,
                        quantity=share,
                        notes=status.issue_notes,
                    )
                )
    return per_member


@traced_engine(
    "projection", "1.0", fingerprint_fields=("purchase_order_id", "received_at")
)
def project_submission(
    groups: Sequence[AggregatedGroup],
    statuses: Mapping[str, WorkingStatus],
    purchase_order_id: UUID,
    received_at: datetime,
    general_notes: str | None = None,
    policy: ReconciliationPolicy | None = None,
) -> DeliveryChangeSet:
    """
    Build the delivery change-set for every selected group.

    Args:
        groups: The session's aggregated groups, in display order.
        statuses: Working status per group key.
        purchase_order_id: Order the delivery belongs to.
        received_at: Submission timestamp (from the session's clock).
        general_notes: Optional free text for the whole delivery.
        policy: Rounding and issue-attribution rules.

    Returns:
        DeliveryChangeSet with one entry per member of each selected group.
    """
    policy = policy or ReconciliationPolicy()
    items: list[ChangeSetItem] = []
    selected_groups = 0

    for group in groups:
        status = statuses.get(group.key)
        if status is None or not status.selected:
            continue
        selected_groups += 1

        weights = [m.quantity for m in group.members]
        goods = apportion(status.received_good, weights, policy.rounding)
        issues = _issues_per_member(group, status, weights, policy)

        drift = sum(goods) - status.received_good
        if drift:
            logger.info(
                "apportionment_drift",
                extra={"group_key": group.key, "drift": drift},
            )

        for member, good, member_issues in zip(group.members, goods, issues):
            items.append(
                ChangeSetItem(
                    line_item_id=member.id,
                    received_good=good,
                    issues=tuple(member_issues),
                )
            )

    change_set = DeliveryChangeSet(
        purchase_order_id=purchase_order_id,
        items=tuple(items),
        received_at=received_at,
        general_notes=general_notes or None,
    )
    logger.info(
        "submission_projected",
        extra={
            "purchase_order_id": str(purchase_order_id),
            "selected_groups": selected_groups,
            "item_count": len(change_set.items),
            "total_received_good": change_set.total_received_good,
            "total_issue_quantity": change_set.total_issue_quantity,
            "rounding": policy.rounding.value,
            "issue_attribution": policy.issue_attribution.value,
        },
    )
    return change_set
