"""
delivery_services.reconciliation_session -- One operator's reconciliation pass.

Responsibility:
    Own the working state of one purchase order's delivery reconciliation
    through an explicit two-phase lifecycle, route operator edits through
    the pure reducer, and hand exactly one change-set to the
    order-management gateway on submit.

Architecture position:
    Services -- stateful orchestration over the pure engines and the async
    gateway.  This is the only holder of AggregatedGroups and WorkingStatus
    during a session; callers get read-only views.

Lifecycle:
    LOADING --open()--> READY --submit()--> SUBMITTING --> SUBMITTED
                          |    ^                    |
                          |    +---gateway raised---+
                          |
                          +----cancel()---> CANCELLED   (also from LOADING)

Invariants enforced:
    - ``open()`` is the only call that suspends on issue history, and it
      always reaches READY unless the line items themselves cannot be
      fetched.
    - Mutators are synchronous and legal only in READY.
    - At most one change-set is in flight: while the gateway call is
      pending the session is SUBMITTING, and edits, cancel and a second
      submit raise SessionStateError.
    - ``submit()`` never calls the gateway while validation fails; it
      returns a NOT_READY result instead.
    - A rejected or interrupted submission returns the session to READY
      with its working state untouched so the operator can resubmit.
    - Closing the session (submit or cancel) discards all working state.

Failure modes:
    - SessionStateError on any operation outside its allowed phases.
    - GroupNotFoundError on an unknown group key.
    - Line-item fetch and submission errors from the gateway propagate
      unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID, uuid4

from delivery_engines.aggregation import AggregatedGroup, aggregate_line_items
from delivery_engines.projection import (
    DeliveryChangeSet,
    ReconciliationPolicy,
    project_submission,
)
from delivery_engines.reconciliation import (
    Edit,
    QuantityBucket,
    QuickFill,
    QuickFillAction,
    SetIssueNotes,
    SetQuantity,
    SetSelection,
    ToggleSelection,
    ValidationSummary,
    WorkingStatus,
    apply_edit,
    build_validation_summary,
)
from delivery_engines.summary import SessionSummary, summarize
from delivery_kernel.domain.clock import Clock, SystemClock
from delivery_kernel.exceptions import GroupNotFoundError, SessionStateError
from delivery_kernel.logging_config import LogContext, get_logger
from delivery_modules.procurement.gateway import OrderManagementGateway
from delivery_modules.procurement.models import DeliverySubmissionReceipt
from delivery_services.issue_history_loader import IssueHistoryLoader

logger = get_logger("services.reconciliation_session")


class SessionPhase(str, Enum):
    LOADING = "LOADING"
    READY = "READY"
    SUBMITTING = "SUBMITTING"  # Change-set handed to the gateway; awaiting its answer
    SUBMITTED = "SUBMITTED"
    CANCELLED = "CANCELLED"


class DeliverySubmissionStatus(str, Enum):
    SUBMITTED = "submitted"
    NOT_READY = "not_ready"  # Validation failed; nothing was sent


@dataclass(frozen=True)
class DeliverySubmissionResult:
    """
    Outcome of ``ReconciliationSession.submit``.

    ``change_set`` and ``receipt`` are set only when the gateway accepted
    the delivery.
    """

    status: DeliverySubmissionStatus
    validation: ValidationSummary
    change_set: DeliveryChangeSet | None = None
    receipt: DeliverySubmissionReceipt | None = None

    @property
    def is_success(self) -> bool:
        return self.status == DeliverySubmissionStatus.SUBMITTED


class ReconciliationSession:
    """
    Working state of one delivery reconciliation for one purchase order.

    Contract:
        Single owner.  Construct, ``await open()``, edit synchronously,
        then ``await submit()`` or ``cancel()``.
    Guarantees:
        - ``statuses`` and ``groups`` are read-only views.
        - The submission timestamp comes from the injected clock.
    Non-goals:
        - No timeouts; a session may stay open indefinitely.
        - Does not retry a rejected submission.
    """

    def __init__(
        self,
        purchase_order_id: UUID,
        gateway: OrderManagementGateway,
        clock: Clock | None = None,
        policy: ReconciliationPolicy | None = None,
        loader: IssueHistoryLoader | None = None,
        session_id: UUID | None = None,
    ):
        self._purchase_order_id = purchase_order_id
        self._gateway = gateway
        self._clock = clock or SystemClock()
        self._policy = policy or ReconciliationPolicy()
        self._loader = loader or IssueHistoryLoader(gateway)
        self._session_id = session_id or uuid4()

        self._phase = SessionPhase.LOADING
        self._groups: tuple[AggregatedGroup, ...] = ()
        self._statuses: dict[str, WorkingStatus] = {}
        self._history_available = False

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def purchase_order_id(self) -> UUID:
        return self._purchase_order_id

    @property
    def session_id(self) -> UUID:
        return self._session_id

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._policy

    @property
    def history_available(self) -> bool:
        """False when prior issues could not be fetched at open."""
        return self._history_available

    @property
    def groups(self) -> tuple[AggregatedGroup, ...]:
        return self._groups

    @property
    def statuses(self) -> Mapping[str, WorkingStatus]:
        return MappingProxyType(self._statuses)

    def group(self, key: str) -> AggregatedGroup:
        for group in self._groups:
            if group.key == key:
                return group
        raise GroupNotFoundError(key)

    def status(self, key: str) -> WorkingStatus:
        try:
            return self._statuses[key]
        except KeyError:
            raise GroupNotFoundError(key) from None

    def validation_summary(self) -> ValidationSummary:
        return build_validation_summary(
            self._statuses.values(), self._policy.require_issue_notes
        )

    @property
    def can_submit(self) -> bool:
        return self._phase == SessionPhase.READY and self.validation_summary().is_valid

    def summary(self) -> SessionSummary:
        return summarize(self._groups, self._statuses)

    def build_change_set(self, general_notes: str | None = None) -> DeliveryChangeSet:
        """Project the current selection without submitting it."""
        self._require_phase("build a change-set", SessionPhase.READY)
        return project_submission(
            groups=self._groups,
            statuses=self._statuses,
            purchase_order_id=self._purchase_order_id,
            received_at=self._clock.now(),
            general_notes=general_notes,
            policy=self._policy,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _require_phase(self, operation: str, *allowed: SessionPhase) -> None:
        if self._phase not in allowed:
            raise SessionStateError(
                operation, self._phase.value, tuple(p.value for p in allowed)
            )

    def _log_context(self) -> Any:
        return LogContext.bind(
            order_id=str(self._purchase_order_id),
            session_id=str(self._session_id),
        )

    async def open(self) -> ReconciliationSession:
        """
        Fetch and aggregate line items, await the issue history, seed the
        working statuses and move to READY.

        Returns:
            self, for ``session = await ReconciliationSession(...).open()``.
        """
        self._require_phase("open", SessionPhase.LOADING)
        with self._log_context():
            line_items = await self._gateway.fetch_order_line_items(
                self._purchase_order_id
            )
            groups = aggregate_line_items(list(line_items))
            history = await self._loader.load(self._purchase_order_id, groups)

            if self._phase != SessionPhase.LOADING:
                logger.info("session_closed_while_loading", extra={
                    "phase": self._phase.value,
                })
                return self

            self._groups = history.groups
            self._statuses = {g.key: WorkingStatus.initial(g) for g in history.groups}
            self._history_available = history.history_available
            self._phase = SessionPhase.READY

            logger.info("session_opened", extra={
                "line_item_count": len(line_items),
                "group_count": len(self._groups),
                "fully_accounted_count": sum(
                    1 for s in self._statuses.values() if s.is_fully_accounted
                ),
                "history_available": self._history_available,
            })
        return self

    def cancel(self) -> None:
        """
        Discard all working state.  A submitted session stays SUBMITTED.

        Raises:
            SessionStateError: while a submission is awaiting the gateway.
        """
        if self._phase == SessionPhase.SUBMITTED:
            return
        self._require_phase(
            "cancel", SessionPhase.LOADING, SessionPhase.READY, SessionPhase.CANCELLED
        )
        with self._log_context():
            logger.info("session_cancelled", extra={
                "from_phase": self._phase.value,
                "selected_count": sum(1 for s in self._statuses.values() if s.selected),
            })
        self._discard()
        self._phase = SessionPhase.CANCELLED

    def _discard(self) -> None:
        self._groups = ()
        self._statuses = {}

    async def submit(self, general_notes: str | None = None) -> DeliverySubmissionResult:
        """
        Validate, project and hand the change-set to the gateway.

        Returns:
            NOT_READY result (gateway untouched) when validation fails,
            otherwise a SUBMITTED result with the gateway's receipt.

        Raises:
            SessionStateError: outside READY, including while an earlier
                submit is still awaiting the gateway.
            Exception: whatever the gateway raised; the session returns to
                READY.
        """
        self._require_phase("submit", SessionPhase.READY)
        with self._log_context():
            validation = self.validation_summary()
            if not validation.is_valid:
                logger.info("submission_not_ready", extra=validation.to_dict())
                return DeliverySubmissionResult(
                    status=DeliverySubmissionStatus.NOT_READY,
                    validation=validation,
                )

            change_set = self.build_change_set(general_notes)
            self._phase = SessionPhase.SUBMITTING
            try:
                receipt = await self._gateway.submit_delivery(
                    self._purchase_order_id, change_set
                )
            except BaseException:
                self._phase = SessionPhase.READY
                logger.warning("submission_rejected", exc_info=True)
                raise

            self._discard()
            self._phase = SessionPhase.SUBMITTED
            logger.info("session_submitted", extra={
                "item_count": len(change_set.items),
                "total_received_good": change_set.total_received_good,
                "total_issue_quantity": change_set.total_issue_quantity,
            })
        return DeliverySubmissionResult(
            status=DeliverySubmissionStatus.SUBMITTED,
            validation=validation,
            change_set=change_set,
            receipt=receipt,
        )

    # =========================================================================
    # Mutators
    # =========================================================================

    def apply(self, key: str, edit: Edit) -> WorkingStatus:
        """Apply one edit to a group and return its new status."""
        self._require_phase("edit", SessionPhase.READY)
        current = self.status(key)
        updated = apply_edit(current, edit)
        self._statuses[key] = updated
        return updated

    def toggle_selection(self, key: str) -> WorkingStatus:
        return self.apply(key, ToggleSelection())

    def set_selected(self, key: str, selected: bool) -> WorkingStatus:
        return self.apply(key, SetSelection(selected))

    def set_quantity(self, key: str, bucket: QuantityBucket | str, value: Any) -> WorkingStatus:
        return self.apply(key, SetQuantity(QuantityBucket(bucket), value))

    def set_issue_notes(self, key: str, notes: str) -> WorkingStatus:
        return self.apply(key, SetIssueNotes(notes))

    def quick_fill(self, key: str, action: QuickFillAction | str) -> WorkingStatus:
        return self.apply(key, QuickFill(QuickFillAction(action)))
