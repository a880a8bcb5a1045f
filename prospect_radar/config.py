"""
Centralized Configuration System
Environment-aware settings for the risk engine, persistence and logging.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Dict, Literal
from prospect_radar.models.contact import ContactStatus


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow"
    )
    """
    Production-grade configuration management.
    Loads from environment variables with sensible defaults.
    """

    # ============================================
    # MONGODB
    # ============================================
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "prospect_radar"
    mongodb_max_pool_size: int = 20
    mongodb_min_pool_size: int = 1
    mongodb_server_selection_timeout_ms: int = 5000

    # ============================================
    # RISK RULES (days unless noted)
    # ============================================
    # Stale threshold per active pipeline stage, JSON in env
    stale_threshold_days: Dict[ContactStatus, int] = {
        ContactStatus.NOVO: 2,
        ContactStatus.EM_PROSPECCAO: 5,
        ContactStatus.CONTATADO: 3,
        ContactStatus.REUNIAO_MARCADA: 5,
    }
    task_overdue_high_days: int = 3
    no_owner_grace_hours: int = 24
    never_contacted_days: int = 3
    cooling_down_days: int = 3
    high_value_threshold: float = 10000.0

    # ============================================
    # NEXT ACTION
    # ============================================
    awaiting_response_days: int = 2
    recent_signal_days: int = 3
    followup_interval_hot_days: int = 1
    followup_interval_warm_days: int = 3
    followup_interval_cold_days: int = 7

    # ============================================
    # NOTIFICATIONS & SNAPSHOTS
    # ============================================
    interaction_window_size: int = 10   # Interactions kept per snapshot
    notification_dedup_hours: int = 6
    digest_stale_days: int = 5
    digest_no_owner_days: int = 3
    digest_max_contacts_per_user: int = 15

    # ============================================
    # LOGGING
    # ============================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    enable_structured_logging: bool = False  # Set to True for production JSON logs

    # ============================================
    # ENVIRONMENT
    # ============================================
    environment: Literal["development", "staging", "production", "test"] = "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Singleton pattern for settings.
    Uses LRU cache to ensure only one Settings instance exists.
    """
    return Settings()


# Convenience accessor for common use
settings = get_settings()
