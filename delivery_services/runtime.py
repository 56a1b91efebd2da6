"""
delivery_services.runtime -- Wiring from configuration to live sessions.

Responsibility:
    Turn a ``DeliveryConfig`` into a running process: logging configured at
    the configured level, the reference store's engine initialised, and a
    factory for reconciliation sessions that carry the configured policy.

Architecture position:
    Services -- the single place where config, kernel db and the procurement
    gateway are assembled.  Engines and modules never read configuration.

Usage:
    runtime = build_runtime()
    session = await runtime.open_session(order_id, actor_id)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from delivery_config import DeliveryConfig, get_active_config
from delivery_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
)
from delivery_kernel.domain.clock import Clock, SystemClock
from delivery_kernel.logging_config import LogContext, configure_logging, get_logger
from delivery_modules.procurement.gateway import SqlOrderGateway
from delivery_services.reconciliation_session import ReconciliationSession

logger = get_logger("services.runtime")


@dataclass(frozen=True)
class DeliveryRuntime:
    """Configured collaborators shared by every session of the process."""

    config: DeliveryConfig
    session_factory: sessionmaker[Session]
    clock: Clock

    def gateway(self, actor_id: UUID, redelivery: bool = False) -> SqlOrderGateway:
        return SqlOrderGateway(
            self.session_factory, actor_id, clock=self.clock, redelivery=redelivery
        )

    async def open_session(
        self,
        purchase_order_id: UUID,
        actor_id: UUID,
        redelivery: bool = False,
    ) -> ReconciliationSession:
        """Open a reconciliation session for one operator on one order."""
        with LogContext.bind(actor_id=str(actor_id)):
            session = ReconciliationSession(
                purchase_order_id,
                self.gateway(actor_id, redelivery),
                clock=self.clock,
                policy=self.config.policy,
            )
            return await session.open()


def build_runtime(
    config_path: Path | str | None = None,
    clock: Clock | None = None,
    create_schema: bool = True,
) -> DeliveryRuntime:
    """
    Load configuration and initialise logging and the database engine.

    Args:
        config_path: YAML file; the packaged defaults when omitted.
        clock: Injected into gateways and sessions.
        create_schema: Create missing tables (in-memory and embedded stores).
    """
    config = get_active_config(config_path)
    configure_logging(level=config.logging.level)
    init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )
    if create_schema:
        create_tables()

    logger.info("delivery_runtime_ready", extra={
        "config_id": config.config_id,
        "config_version": config.version,
        "checksum": config.checksum,
        "schema_created": create_schema,
    })
    return DeliveryRuntime(
        config=config,
        session_factory=get_session_factory(),
        clock=clock or SystemClock(),
    )
