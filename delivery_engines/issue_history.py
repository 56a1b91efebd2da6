"""
Module: delivery_engines.issue_history
Responsibility:
    Fold a purchase order's previously reported issues into its aggregated
    groups: attach each group's prior issues and recompute
    ``total_prior_issues`` (and therefore ``remaining``).

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The asynchronous fetch
    lives in ``delivery_services.issue_history_loader``; this module only
    computes.

Invariants enforced:
    - ``total_prior_issues`` is the sum of ``affected_quantity`` over every
      issue (reported or resolved) raised against a member line item.
    - Issues with zero affected quantity are ignored.
    - Issues for line items outside the order are ignored and logged.
    - The fallback history leaves ``total_prior_issues == 0`` so that
      ``remaining == max(0, ordered - already_received)``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from uuid import UUID

from delivery_engines.aggregation import AggregatedGroup
from delivery_engines.tracer import traced_engine
from delivery_kernel.domain.dtos import IssueRecord
from delivery_kernel.logging_config import get_logger

logger = get_logger("engines.issue_history")


@dataclass(frozen=True)
class IssueHistory:
    """
    Groups with their prior issues folded in.

    ``history_available`` is False when the issue fetch failed and the
    groups carry no prior issues at all.
    """

    groups: tuple[AggregatedGroup, ...]
    history_available: bool = True
    ignored_issue_ids: tuple[UUID, ...] = field(default_factory=tuple)

    @property
    def issues_by_group(self) -> Mapping[str, tuple[IssueRecord, ...]]:
        return {g.key: g.prior_issues for g in self.groups}

    @property
    def total_prior_issues_by_group(self) -> Mapping[str, int]:
        return {g.key: g.total_prior_issues for g in self.groups}

    @classmethod
    def unavailable(cls, groups: Sequence[AggregatedGroup]) -> IssueHistory:
        """Fallback when prior issues cannot be fetched."""
        return cls(
            groups=tuple(
                replace(g, total_prior_issues=0, prior_issues=()) for g in groups
            ),
            history_available=False,
        )


def group_issues_by_line_item(
    issues: Sequence[IssueRecord],
) -> dict[UUID, tuple[IssueRecord, ...]]:
    """Index issues by the line item they were reported against, in input order."""
    grouped: dict[UUID, list[IssueRecord]] = {}
    for issue in issues:
        grouped.setdefault(issue.line_item_id, []).append(issue)
    return {line_item_id: tuple(found) for line_item_id, found in grouped.items()}


@traced_engine("issue_history", "1.0")
def fold_issue_history(
    groups: Sequence[AggregatedGroup],
    issues: Sequence[IssueRecord],
) -> IssueHistory:
    """
    Attach prior issues to the groups owning their line items.

    Args:
        groups: Output of ``aggregate_line_items``.
        issues: Every issue reported against the order.

    Returns:
        IssueHistory whose groups carry ``prior_issues`` (member order, then
        report order) and ``total_prior_issues``.
    """
    by_line_item = group_issues_by_line_item(issues)
    known: set[UUID] = set()
    folded = []

    for group in groups:
        prior: list[IssueRecord] = []
        for member in group.members:
            known.add(member.id)
            prior.extend(
                issue
                for issue in by_line_item.get(member.id, ())
                if issue.affected_quantity > 0
            )
        folded.append(
            replace(
                group,
                prior_issues=tuple(prior),
                total_prior_issues=sum(i.affected_quantity for i in prior),
            )
        )

    ignored = tuple(
        issue.id
        for line_item_id, found in by_line_item.items()
        if line_item_id not in known
        for issue in found
    )
    if ignored:
        logger.warning(
            "issue_history_unmatched_issues",
            extra={"ignored_issue_count": len(ignored)},
        )

    overage = [g.key for g in folded if g.history_overage > 0]
    if overage:
        logger.warning(
            "issue_history_exceeds_order",
            extra={"group_keys": overage},
        )

    logger.info(
        "issue_history_folded",
        extra={
            "issue_count": len(issues),
            "group_count": len(folded),
            "groups_with_issues": sum(1 for g in folded if g.prior_issues),
        },
    )
    return IssueHistory(groups=tuple(folded), ignored_issue_ids=ignored)
