"""
Structured Logging & Observability
Human-readable in development, machine-parseable in production.
"""
import sys
from loguru import logger
from typing import Any, Dict
from prospect_radar.config import get_settings


def configure_logging():
    """
    Configure loguru for the analysis runs.

    In development: Human-readable colorized output
    In production: Structured JSON logs for ingestion
    """
    settings = get_settings()

    # Remove default handler
    logger.remove()

    if not settings.enable_structured_logging:
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            level=settings.log_level,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,  # Output as JSON
        )

    logger.info(f"Logging configured: level={settings.log_level}, structured={settings.enable_structured_logging}")


def log_analysis_run(
    organization_id: str,
    contacts_analyzed: int,
    alerts: int,
    notifications_created: int,
    duration_ms: float | None = None,
    **context
):
    """
    Structured logging for one organization-wide risk analysis.

    Args:
        organization_id: Tenant that was analyzed
        contacts_analyzed: Number of active contacts evaluated
        alerts: Number of alerts raised by the rules engine
        notifications_created: Drafts persisted after deduplication
        duration_ms: Wall time of the run in milliseconds
        **context: Additional context (skipped drafts, admins, etc.)

    Example:
        >>> log_analysis_run(
        ...     organization_id="org_1",
        ...     contacts_analyzed=120,
        ...     alerts=37,
        ...     notifications_created=12,
        ...     duration_ms=84.2,
        ... )
    """
    log_data = {
        "event_type": "risk_analysis",
        "organization_id": organization_id,
        "contacts_analyzed": contacts_analyzed,
        "alerts": alerts,
        "notifications_created": notifications_created,
    }

    if duration_ms is not None:
        log_data["duration_ms"] = round(duration_ms, 2)

    log_data.update(context)

    logger.bind(**log_data).info(
        f"Risk analysis | org={organization_id} | {alerts} alerts | {notifications_created} notifications"
    )


def log_business_event(
    event_type: str,
    organization_id: str,
    **details: Dict[str, Any]
):
    """
    Log business-relevant events for analytics.

    Examples:
        - Daily digest sent
        - High value contact flagged

    Args:
        event_type: Type of event (e.g., "daily_digest", "high_value_at_risk")
        organization_id: The tenant involved
        **details: Event-specific data
    """
    log_data = {
        "event_type": event_type,
        "organization_id": organization_id,
        **details
    }

    logger.bind(**log_data).success(f"Business Event: {event_type}")
