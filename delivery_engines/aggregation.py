"""
Module: delivery_engines.aggregation
Responsibility:
    Group a purchase order's raw line items by (item type, merchant) into the
    logical units an operator reconciles, keeping the original records for
    later apportionment.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import delivery_kernel.domain and sibling engine modules.

Invariants enforced:
    - Partition: every input line item appears in exactly one group.
    - Member order within a group is input order; group order is the order
      in which each key first appears.
    - ``ordered`` and ``already_received`` are sums over members.

Failure modes:
    None.  A missing item type or merchant degrades to a sentinel key.

Usage:
    from delivery_engines.aggregation import aggregate_line_items

    groups = aggregate_line_items(line_items)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from delivery_engines.tracer import traced_engine
from delivery_kernel.domain.dtos import IssueRecord, LineItem
from delivery_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")

NO_MERCHANT = "no-merchant"
UNKNOWN_ITEM_TYPE = "unknown-item-type"


def aggregation_key(item: LineItem) -> str:
    """Key a line item by item type and merchant.

    The item type falls back to its name, then to a sentinel, so records
    without a catalogue id still group with their siblings.
    """
    item_type = item.item_type_id or item.item_type_name or UNKNOWN_ITEM_TYPE
    merchant = item.merchant_id or NO_MERCHANT
    return f"{item_type}-{merchant}"


@dataclass(frozen=True)
class AggregatedGroup:
    """
    The unit the operator works with during a reconciliation session.

    Contract:
        Frozen; computed once per session and never persisted.
    Guarantees:
        - ``remaining == max(0, ordered - already_received - total_prior_issues)``.
        - ``already_received + total_prior_issues + remaining - history_overage
          == ordered`` for every group.
        - ``members`` is non-empty and in input order.
    """

    key: str
    item_type_id: str | None
    item_type_name: str | None
    merchant_id: str | None
    merchant_name: str | None
    ordered: int
    already_received: int
    members: tuple[LineItem, ...]
    total_prior_issues: int = 0
    prior_issues: tuple[IssueRecord, ...] = field(default_factory=tuple)
    measuring_unit: str = "units"

    def __post_init__(self) -> None:
        if not self.members:
            raise ValueError(f"Aggregated group {self.key} has no members")

    @property
    def remaining(self) -> int:
        """Quantity not yet accounted for by prior receipts or prior issues."""
        return max(0, self.ordered - self.already_received - self.total_prior_issues)

    @property
    def history_overage(self) -> int:
        """Units by which prior receipts plus prior issues exceed the order."""
        return max(0, self.already_received + self.total_prior_issues - self.ordered)

    @property
    def is_fully_accounted(self) -> bool:
        return self.remaining == 0

    @property
    def member_ids(self) -> tuple:
        return tuple(item.id for item in self.members)


@traced_engine("aggregation", "1.0")
def aggregate_line_items(line_items: Sequence[LineItem]) -> tuple[AggregatedGroup, ...]:
    """
    Merge line items sharing an aggregation key into AggregatedGroups.

    Args:
        line_items: A purchase order's line items, in any order.

    Returns:
        Groups ordered by first appearance of their key.  Prior-issue totals
        are zero; ``delivery_engines.issue_history`` folds history in.
    """
    buckets: dict[str, list[LineItem]] = {}
    for item in line_items:
        buckets.setdefault(aggregation_key(item), []).append(item)

    groups = []
    for key, members in buckets.items():
        first = members[0]
        groups.append(
            AggregatedGroup(
                key=key,
                item_type_id=first.item_type_id,
                item_type_name=first.item_type_name,
                merchant_id=first.merchant_id,
                merchant_name=first.merchant_name,
                ordered=sum(m.quantity for m in members),
                already_received=sum(m.received_good for m in members),
                members=tuple(members),
                measuring_unit=first.measuring_unit,
            )
        )

    logger.info(
        "line_items_aggregated",
        extra={"line_item_count": len(line_items), "group_count": len(groups)},
    )
    return tuple(groups)
