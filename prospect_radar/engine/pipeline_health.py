"""
Pipeline Health Summary
Aggregates the active pipeline and its alerts into dashboard counters.
"""

import datetime as dt
from collections import defaultdict
from typing import Dict, Iterable, Sequence
from pydantic import BaseModel
from prospect_radar.engine.timeutils import days_between
from prospect_radar.models.alert import RiskAlert, RiskLevel, RiskRule
from prospect_radar.models.contact import ContactSnapshot


AT_RISK_LEVELS = frozenset({RiskLevel.HIGH, RiskLevel.MEDIUM})


class PipelineHealth(BaseModel):
    at_risk: int
    stale: int
    no_owner: int
    no_next_action: int
    total_active: int
    total_value: float
    avg_days_in_stage: Dict[str, int]
    conversion_rate: int


def summarize_pipeline(
    contacts: Sequence[ContactSnapshot],
    alerts: Iterable[RiskAlert],
    now: dt.datetime,
    total_contacts: int = 0,
    converted_contacts: int = 0,
) -> PipelineHealth:
    """
    Summarize the active pipeline of one organization.

    Args:
        contacts: Active contact snapshots
        alerts: Alerts raised for those contacts
        now: Evaluation time
        total_contacts: All contacts of the organization, any status
        converted_contacts: Contacts in CONVERTIDO

    Returns:
        PipelineHealth counters; conversion rate is a rounded percentage
    """
    days_sum: Dict[str, int] = defaultdict(int)
    days_count: Dict[str, int] = defaultdict(int)
    no_owner = 0
    no_next_action = 0

    for contact in contacts:
        stage = contact.status.value
        days_sum[stage] += days_between(contact.updated_at, now)
        days_count[stage] += 1
        if not contact.assigned_to_user_id:
            no_owner += 1
        if not contact.proxima_acao_tipo and not contact.proxima_acao_data:
            no_next_action += 1

    at_risk = set()
    stale = set()
    for alert in alerts:
        if alert.level in AT_RISK_LEVELS:
            at_risk.add(alert.contact_id)
        if alert.rule == RiskRule.STALE_DEAL:
            stale.add(alert.contact_id)

    conversion_rate = round(converted_contacts / total_contacts * 100) if total_contacts > 0 else 0

    return PipelineHealth(
        at_risk=len(at_risk),
        stale=len(stale),
        no_owner=no_owner,
        no_next_action=no_next_action,
        total_active=len(contacts),
        total_value=sum(c.valor_estimado or 0 for c in contacts),
        avg_days_in_stage={
            stage: round(total / days_count[stage]) for stage, total in days_sum.items()
        },
        conversion_rate=conversion_rate,
    )
