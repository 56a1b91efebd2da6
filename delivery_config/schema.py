"""
DeliveryConfig schema.

Typed, frozen view of the YAML configuration.  The reconciliation policy
type itself lives with the projection engine that consumes it; this module
composes it with the logging and persistence settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from delivery_engines.projection import ReconciliationPolicy


@dataclass(frozen=True)
class LoggingSettings:
    """Level for the ``delivery_kernel`` logger hierarchy."""

    level: str = "INFO"


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings for the reference order-management store."""

    url: str = "sqlite://"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 5


@dataclass(frozen=True)
class DeliveryConfig:
    """Everything configurable, plus the checksum of its source."""

    config_id: str
    version: int
    policy: ReconciliationPolicy = field(default_factory=ReconciliationPolicy)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    checksum: str = ""
