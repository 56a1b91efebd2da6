"""
delivery_config -- single public entrypoint for reconciliation configuration.

Responsibility:
    Provides ``get_active_config()``, which loads the packaged
    ``defaults.yaml`` (or a caller-supplied file) and returns a frozen
    ``DeliveryConfig``.  Services receive the parsed policy by injection and
    never read configuration files themselves.

Architecture position:
    Configuration -- sits above ``delivery_engines`` (whose policy types it
    populates) and below ``delivery_services`` / ``delivery_modules``.

Failure modes:
    - ``FileNotFoundError`` -- the given path does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ConfigurationError`` -- a setting holds an unsupported value.
"""

from __future__ import annotations

import logging
from pathlib import Path

from delivery_config.loader import compute_checksum, load_yaml_file, parse_config
from delivery_config.schema import DatabaseSettings, DeliveryConfig, LoggingSettings

_logger = logging.getLogger("delivery_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> DeliveryConfig:
    """Load and parse the active configuration.

    Args:
        config_path: YAML file to load.  Defaults to the packaged
            ``defaults.yaml``.

    Returns:
        DeliveryConfig whose checksum identifies the source document.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(path))

    _logger.info(
        "DELIVERY_CONFIG_TRACE",
        extra={
            "trace_type": "DELIVERY_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "rounding": config.policy.rounding.value,
            "issue_attribution": config.policy.issue_attribution.value,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DatabaseSettings",
    "DeliveryConfig",
    "LoggingSettings",
    "compute_checksum",
    "get_active_config",
]
