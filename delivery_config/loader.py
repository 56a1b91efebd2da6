"""
Configuration Loader (``delivery_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``delivery_config.schema`` dataclasses.  Runtime callers go through
``delivery_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Unknown enum values and wrongly typed settings raise
  ``ConfigurationError`` naming the offending key.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from delivery_config.schema import DatabaseSettings, DeliveryConfig, LoggingSettings
from delivery_engines.apportionment import RoundingMethod
from delivery_engines.projection import IssueAttribution, ReconciliationPolicy
from delivery_kernel.exceptions import ConfigurationError

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), type(data).__name__, "expected a mapping")
    return data


def _parse_enum(enum_cls: type[Enum], key: str, value: Any) -> Any:
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ConfigurationError(key, value, f"expected one of: {allowed}") from None


def _parse_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(key, value, "expected true or false")
    return value


def _parse_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(key, value, "expected a non-negative integer")
    return value


def parse_policy(data: dict[str, Any]) -> ReconciliationPolicy:
    """Parse the ``reconciliation`` section; absent keys keep their defaults."""
    defaults = ReconciliationPolicy()
    return ReconciliationPolicy(
        rounding=_parse_enum(
            RoundingMethod,
            "reconciliation.rounding",
            data.get("rounding", defaults.rounding.value),
        ),
        issue_attribution=_parse_enum(
            IssueAttribution,
            "reconciliation.issue_attribution",
            data.get("issue_attribution", defaults.issue_attribution.value),
        ),
        require_issue_notes=_parse_bool(
            "reconciliation.require_issue_notes",
            data.get("require_issue_notes", defaults.require_issue_notes),
        ),
    )


def parse_logging(data: dict[str, Any]) -> LoggingSettings:
    level = str(data.get("level", LoggingSettings.level)).upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(
            "logging.level", level, f"expected one of: {', '.join(_LOG_LEVELS)}"
        )
    return LoggingSettings(level=level)


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    defaults = DatabaseSettings()
    url = data.get("url", defaults.url)
    if not isinstance(url, str) or not url:
        raise ConfigurationError("database.url", url, "expected a database URL")
    return DatabaseSettings(
        url=url,
        echo=_parse_bool("database.echo", data.get("echo", defaults.echo)),
        pool_size=_parse_int("database.pool_size", data.get("pool_size", defaults.pool_size)),
        max_overflow=_parse_int(
            "database.max_overflow", data.get("max_overflow", defaults.max_overflow)
        ),
    )


def parse_config(data: dict[str, Any]) -> DeliveryConfig:
    """
    Parse a whole configuration document.

    Postconditions:
        - ``checksum`` is the SHA-256 of the source document.
    """
    if "config_id" not in data:
        raise ConfigurationError("config_id", None, "required")
    return DeliveryConfig(
        config_id=str(data["config_id"]),
        version=_parse_int("version", data.get("version", 1)),
        policy=parse_policy(data.get("reconciliation") or {}),
        logging=parse_logging(data.get("logging") or {}),
        database=parse_database(data.get("database") or {}),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
