"""
Session-level readiness checks over a collection of working statuses.

Validation failures are never raised.  They are reported as a
ValidationSummary that names the offending groups so the operator can fix
them; submission is simply not attempted while ``is_valid`` is False.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from delivery_engines.reconciliation.domain import WorkingStatus


@dataclass(frozen=True)
class ValidationSummary:
    """Which selected groups block submission, and why."""

    selected_count: int
    invalid_keys: tuple[str, ...] = field(default_factory=tuple)
    keys_with_issues: tuple[str, ...] = field(default_factory=tuple)
    keys_missing_notes: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_valid(self) -> bool:
        return (
            self.selected_count > 0
            and not self.invalid_keys
            and not self.keys_missing_notes
        )

    @property
    def nothing_selected(self) -> bool:
        return self.selected_count == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "selected_count": self.selected_count,
            "invalid_keys": list(self.invalid_keys),
            "keys_with_issues": list(self.keys_with_issues),
            "keys_missing_notes": list(self.keys_missing_notes),
            "is_valid": self.is_valid,
        }


def build_validation_summary(
    statuses: Iterable[WorkingStatus],
    require_issue_notes: bool = True,
) -> ValidationSummary:
    """Enumerate invalid and note-less groups among the selected ones."""
    selected = [s for s in statuses if s.selected]
    return ValidationSummary(
        selected_count=len(selected),
        invalid_keys=tuple(s.group_key for s in selected if not s.is_valid),
        keys_with_issues=tuple(s.group_key for s in selected if s.has_issues),
        keys_missing_notes=(
            tuple(s.group_key for s in selected if s.needs_notes)
            if require_issue_notes
            else ()
        ),
    )


def can_submit(
    statuses: Iterable[WorkingStatus],
    require_issue_notes: bool = True,
) -> bool:
    """
    True iff at least one group is selected, every selected group is valid,
    and every selected group with issues carries non-blank notes.
    """
    return build_validation_summary(statuses, require_issue_notes).is_valid
