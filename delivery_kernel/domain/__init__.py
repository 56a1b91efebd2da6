"""
Pure domain layer.

Immutable DTOs for purchase order line items and issue records, plus the
clock abstraction. No dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O
"""

from delivery_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from delivery_kernel.domain.dtos import (
    IssueRecord,
    IssueStatus,
    IssueType,
    LineItem,
    ResolutionType,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "LineItem",
    "IssueRecord",
    "IssueType",
    "IssueStatus",
    "ResolutionType",
]
