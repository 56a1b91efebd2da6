"""
delivery_services -- Package init and public API.

Responsibility:
    Stateful orchestration that composes the pure reconciliation engines
    with the asynchronous order-management gateway.  This is the only layer
    that awaits I/O or reads the clock during a reconciliation session.

Architecture position:
    Services -- stateful orchestration over engines + kernel + modules.

    Dependency direction:
        delivery_services/ -> delivery_engines/, delivery_modules/, delivery_config/, delivery_kernel/
        delivery_engines/  -> delivery_services/ (FORBIDDEN)
        delivery_kernel/   -> delivery_services/ (FORBIDDEN)
"""

from delivery_services.issue_history_loader import IssueHistoryLoader
from delivery_services.reconciliation_session import (
    DeliverySubmissionResult,
    DeliverySubmissionStatus,
    ReconciliationSession,
    SessionPhase,
)
from delivery_services.runtime import DeliveryRuntime, build_runtime

__all__ = [
    "DeliverySubmissionResult",
    "DeliveryRuntime",
    "DeliverySubmissionStatus",
    "IssueHistoryLoader",
    "ReconciliationSession",
    "SessionPhase",
    "build_runtime",
]
