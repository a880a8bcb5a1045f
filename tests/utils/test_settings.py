"""
Tests for centralized configuration system.
Verifies environment variable loading and default values.
"""
import pytest
from prospect_radar.config import Settings, get_settings
from prospect_radar.engine.next_action import NextActionPolicy
from prospect_radar.engine.risk_rules import RiskThresholds
from prospect_radar.models.contact import ContactStatus


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestConfigurationSystem:
    """Test suite for configuration management."""

    def test_default_values(self):
        settings = Settings()

        # Risk rules
        assert settings.stale_threshold_days == {
            "NOVO": 2,
            "EM_PROSPECCAO": 5,
            "CONTATADO": 3,
            "REUNIAO_MARCADA": 5,
        }
        assert settings.task_overdue_high_days == 3
        assert settings.no_owner_grace_hours == 24

        # Snapshots & notifications
        assert settings.interaction_window_size == 10
        assert settings.notification_dedup_hours == 6
        assert settings.digest_max_contacts_per_user == 15

        # Logging
        assert settings.log_level == "INFO"
        assert settings.enable_structured_logging is False

    def test_environment_variable_override(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_DEDUP_HOURS", "12")
        monkeypatch.setenv("STALE_THRESHOLD_DAYS", '{"NOVO": 1, "EM_PROSPECCAO": 4}')
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ENVIRONMENT", "production")

        settings = get_settings()

        assert settings.notification_dedup_hours == 12
        assert settings.stale_threshold_days == {"NOVO": 1, "EM_PROSPECCAO": 4}
        assert settings.log_level == "DEBUG"
        assert settings.environment == "production"

    def test_settings_singleton(self):
        assert get_settings() is get_settings()

    def test_invalid_log_level_rejected(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ValueError):
            Settings()

    def test_unknown_stage_in_stale_thresholds_rejected(self, monkeypatch):
        monkeypatch.setenv("STALE_THRESHOLD_DAYS", '{"UNKNOWN": 3}')

        with pytest.raises(ValueError):
            Settings()

    def test_stale_thresholds_keyed_by_stage(self, monkeypatch):
        monkeypatch.setenv("STALE_THRESHOLD_DAYS", '{"NOVO": 1}')

        assert list(Settings().stale_threshold_days) == [ContactStatus.NOVO]
        assert isinstance(next(iter(Settings().stale_threshold_days)), ContactStatus)


class TestEngineConfigFromSettings:

    def test_thresholds_read_from_settings(self, monkeypatch):
        monkeypatch.setenv("STALE_THRESHOLD_DAYS", '{"CONTATADO": 7}')
        monkeypatch.setenv("HIGH_VALUE_THRESHOLD", "5000")

        thresholds = RiskThresholds.from_settings()

        assert thresholds.stale_days == {ContactStatus.CONTATADO: 7}
        assert thresholds.high_value_threshold == 5000.0

    def test_policy_read_from_settings(self, monkeypatch):
        monkeypatch.setenv("FOLLOWUP_INTERVAL_COLD_DAYS", "10")

        policy = NextActionPolicy.from_settings()

        assert policy.interval_cold_days == 10
        assert policy.interval_for(None) == policy.interval_warm_days
