"""
Tests for delivery_config.

Covers:
- Packaged defaults load into typed settings
- Overrides from a caller-supplied YAML file
- Rejection of unsupported values
- Checksum stability
- DELIVERY_CONFIG_TRACE emission
"""

import pytest

from delivery_config import (
    DEFAULT_CONFIG_PATH,
    DatabaseSettings,
    DeliveryConfig,
    LoggingSettings,
    compute_checksum,
    get_active_config,
)
from delivery_config.loader import load_yaml_file, parse_config
from delivery_engines.apportionment import RoundingMethod
from delivery_engines.projection import IssueAttribution, ReconciliationPolicy
from delivery_kernel.exceptions import ConfigurationError


def _write(tmp_path, text: str):
    path = tmp_path / "delivery.yaml"
    path.write_text(text)
    return path


class TestDefaults:
    """The packaged defaults.yaml."""

    def test_defaults_load(self):
        config = get_active_config()

        assert isinstance(config, DeliveryConfig)
        assert config.config_id == "delivery-defaults"
        assert config.version == 1
        assert config.policy == ReconciliationPolicy()
        assert config.logging.level == "INFO"
        assert config.database.url == "sqlite://"
        assert len(config.checksum) == 64

    def test_packaged_file_restates_schema_defaults(self):
        """Omitted keys fall back to dataclass defaults, which equal the packaged file."""
        packaged = get_active_config()
        minimal = parse_config({"config_id": packaged.config_id})

        assert minimal.policy == packaged.policy
        assert minimal.logging == packaged.logging == LoggingSettings()
        assert minimal.database == packaged.database == DatabaseSettings()

    def test_defaults_file_is_packaged(self):
        assert DEFAULT_CONFIG_PATH.exists()

    def test_config_trace_logged(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "DELIVERY_CONFIG_TRACE"]
        assert traces[0]["checksum"] == config.checksum
        assert traces[0]["rounding"] == "largest_remainder"


class TestOverrides:
    """Caller-supplied configuration files."""

    def test_policy_override(self, tmp_path):
        path = _write(tmp_path, """
config_id: warehouse-7
version: 3
reconciliation:
  rounding: HALF_UP
  issue_attribution: prorata
  require_issue_notes: false
logging:
  level: debug
database:
  url: "sqlite:///deliveries.db"
  echo: true
""")

        config = get_active_config(path)

        assert config.config_id == "warehouse-7"
        assert config.version == 3
        assert config.policy.rounding == RoundingMethod.HALF_UP
        assert config.policy.issue_attribution == IssueAttribution.PRORATA
        assert config.policy.require_issue_notes is False
        assert config.logging.level == "DEBUG"
        assert config.database.url == "sqlite:///deliveries.db"
        assert config.database.echo is True
        assert config.database.pool_size == 10

    def test_missing_sections_use_defaults(self, tmp_path):
        config = get_active_config(_write(tmp_path, "config_id: minimal\n"))

        assert config.policy == ReconciliationPolicy()
        assert config.logging.level == "INFO"

    @pytest.mark.parametrize(
        "document, key",
        [
            ("config_id: x\nreconciliation:\n  rounding: bankers\n", "reconciliation.rounding"),
            ("config_id: x\nreconciliation:\n  issue_attribution: last\n",
             "reconciliation.issue_attribution"),
            ("config_id: x\nreconciliation:\n  require_issue_notes: maybe\n",
             "reconciliation.require_issue_notes"),
            ("config_id: x\nlogging:\n  level: LOUD\n", "logging.level"),
            ("config_id: x\ndatabase:\n  pool_size: -1\n", "database.pool_size"),
            ("version: 2\n", "config_id"),
        ],
    )
    def test_bad_values_rejected(self, tmp_path, document, key):
        with pytest.raises(ConfigurationError) as exc_info:
            get_active_config(_write(tmp_path, document))
        assert exc_info.value.key == key

    def test_non_mapping_document_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_yaml_file(_write(tmp_path, "- just\n- a list\n"))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")


class TestChecksum:
    """compute_checksum."""

    def test_key_order_does_not_matter(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})

    def test_changes_detected(self):
        first = parse_config({"config_id": "x", "reconciliation": {"rounding": "half_up"}})
        second = parse_config({"config_id": "x"})
        assert first.checksum != second.checksum
