"""
Pytest fixtures for the delivery reconciliation test suite.

Provides:
- Structured logging configured for every test, plus log capture
- SQLite in-memory database sessions for the reference order store
- Line item and issue factories
- An in-memory OrderManagementGateway with injectable failures
"""

import asyncio
import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from delivery_engines.projection import DeliveryChangeSet
from delivery_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from delivery_kernel.domain.clock import DeterministicClock
from delivery_kernel.domain.dtos import IssueRecord, IssueStatus, IssueType, LineItem
from delivery_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from delivery_modules.procurement.models import (
    DeliverySubmissionReceipt,
    PurchaseOrderStatus,
)

TEST_ACTOR_ID = UUID("00000000-0000-4000-a000-000000000001")
TEST_ORDER_ID = UUID("00000000-0000-4000-a000-000000000100")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """No order or session fields leak from one test into the next."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture delivery_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            aggregate_line_items(items)
            logs = captured_logs()
            assert any(r["message"] == "line_items_aggregated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("delivery_kernel")
    root.addHandler(handler)

    def records() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    yield records

    root.removeHandler(handler)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite store per test."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    db_session = session_factory()
    yield db_session
    db_session.close()


@pytest.fixture
def test_actor_id() -> UUID:
    """Warehouse operator recorded on every delivery and issue."""
    return TEST_ACTOR_ID


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Clock pinned to 2024-03-01 09:00 UTC."""
    return DeterministicClock()


# =============================================================================
# Factories
# =============================================================================


def make_line_item(
    quantity: int,
    *,
    item_type_id: str | None = "widget",
    item_type_name: str | None = "Widget",
    merchant_id: str | None = "acme",
    merchant_name: str | None = "Acme",
    received_good: int = 0,
    purchase_order_id: UUID = TEST_ORDER_ID,
    item_id: UUID | None = None,
    measuring_unit: str = "units",
) -> LineItem:
    return LineItem(
        id=item_id or uuid4(),
        purchase_order_id=purchase_order_id,
        item_type_id=item_type_id,
        item_type_name=item_type_name,
        merchant_id=merchant_id,
        merchant_name=merchant_name,
        quantity=quantity,
        received_good=received_good,
        measuring_unit=measuring_unit,
    )


def make_issue(
    line_item: LineItem,
    quantity: int,
    issue_type: IssueType = IssueType.DAMAGED,
    status: IssueStatus = IssueStatus.REPORTED,
    description: str = "reported at intake",
) -> IssueRecord:
    return IssueRecord(
        id=uuid4(),
        line_item_id=line_item.id,
        issue_type=issue_type,
        affected_quantity=quantity,
        description=description,
        status=status,
        reported_at=datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
    )


# =============================================================================
# In-memory gateway
# =============================================================================


class FakeOrderGateway:
    """
    OrderManagementGateway holding one order in memory.

    ``issues_error`` / ``submit_error`` make the matching call raise.
    When ``submit_gate`` is set, ``submit_delivery`` waits on it before
    recording, which holds a submission in flight.
    Every submitted change-set is kept in ``submissions``.
    """

    def __init__(
        self,
        line_items: Sequence[LineItem] = (),
        issues: Sequence[IssueRecord] = (),
        issues_error: Exception | None = None,
        submit_error: Exception | None = None,
        line_items_error: Exception | None = None,
    ):
        self.line_items = list(line_items)
        self.issues = list(issues)
        self.issues_error = issues_error
        self.submit_error = submit_error
        self.line_items_error = line_items_error
        self.submissions: list[DeliveryChangeSet] = []
        self.fetch_issue_calls = 0
        self.on_fetch_issues = None
        self.submit_gate: asyncio.Event | None = None
        self.submit_calls = 0

    async def fetch_order_line_items(self, order_id: UUID) -> Sequence[LineItem]:
        if self.line_items_error is not None:
            raise self.line_items_error
        return list(self.line_items)

    async def fetch_issues(self, order_id: UUID) -> Sequence[IssueRecord]:
        self.fetch_issue_calls += 1
        if self.on_fetch_issues is not None:
            self.on_fetch_issues()
        if self.issues_error is not None:
            raise self.issues_error
        return list(self.issues)

    async def submit_delivery(
        self, order_id: UUID, change_set: DeliveryChangeSet
    ) -> DeliverySubmissionReceipt:
        self.submit_calls += 1
        if self.submit_gate is not None:
            await self.submit_gate.wait()
        if self.submit_error is not None:
            raise self.submit_error
        self.submissions.append(change_set)
        return DeliverySubmissionReceipt(
            delivery_session_id=uuid4(),
            purchase_order_id=order_id,
            order_status=PurchaseOrderStatus.PARTIAL,
            receipt_count=len(change_set.items),
        )
