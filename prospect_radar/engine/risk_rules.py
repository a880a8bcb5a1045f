"""
Risk Rules Engine

Scans a contact snapshot for pipeline risks: stalled deals, overdue
tasks, unowned leads and a handful of softer warning signs.
Every rule is evaluated independently, so one contact can raise
several alerts in the same pass.
"""

import datetime as dt
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
from prospect_radar.config import get_settings
from prospect_radar.engine.timeutils import days_between, calendar_days_overdue
from prospect_radar.models.base import ensure_utc
from prospect_radar.models.alert import RiskAlert, RiskLevel, RiskRule
from prospect_radar.models.contact import ContactSnapshot, ContactStatus, InteractionOutcome, Temperature


@dataclass(frozen=True)
class RiskThresholds:
    """Tunable limits for every rule. Days unless noted."""
    stale_days: Dict[ContactStatus, int] = field(default_factory=lambda: {
        ContactStatus.NOVO: 2,
        ContactStatus.EM_PROSPECCAO: 5,
        ContactStatus.CONTATADO: 3,
        ContactStatus.REUNIAO_MARCADA: 5,
    })
    task_overdue_high_days: int = 3
    no_owner_grace_hours: int = 24
    never_contacted_days: int = 3
    cooling_down_days: int = 3
    high_value_threshold: float = 10000.0

    @classmethod
    def from_settings(cls) -> "RiskThresholds":
        settings = get_settings()
        return cls(
            stale_days=dict(settings.stale_threshold_days),
            task_overdue_high_days=settings.task_overdue_high_days,
            no_owner_grace_hours=settings.no_owner_grace_hours,
            never_contacted_days=settings.never_contacted_days,
            cooling_down_days=settings.cooling_down_days,
            high_value_threshold=settings.high_value_threshold,
        )


class RiskRulesEngine:
    """
    Evaluates contact snapshots against the fixed rule set.

    Terminal contacts (converted or lost) never raise alerts.

    Usage:
        engine = RiskRulesEngine()
        alerts = engine.analyze_contact(snapshot, now=now)
    """

    def __init__(self, thresholds: Optional[RiskThresholds] = None):
        self.thresholds = thresholds or RiskThresholds.from_settings()

    def analyze_contact(self, contact: ContactSnapshot, now: Optional[dt.datetime] = None) -> List[RiskAlert]:
        """
        Run every rule against one contact.

        Args:
            contact: Snapshot to evaluate
            now: Evaluation time (defaults to current UTC time)

        Returns:
            Alerts for this contact, most severe first
        """
        now = ensure_utc(now) if now else dt.datetime.now(dt.UTC)

        if contact.status.is_terminal:
            return []

        candidates = [
            self._check_stale_deal(contact, now),
            self._check_task_overdue(contact, now),
            self._check_no_owner(contact, now),
            self._check_no_next_action(contact),
            self._check_never_contacted(contact, now),
            self._check_cooling_down(contact, now),
        ]
        alerts = [a for a in candidates if a is not None]

        # Depends on the severity of the alerts above
        high_value = self._check_high_value_at_risk(contact, alerts)
        if high_value:
            alerts.append(high_value)

        # Stable: rules of equal severity keep evaluation order
        alerts.sort(key=lambda a: a.level.rank, reverse=True)
        return alerts

    def analyze_contacts(
        self,
        contacts: Iterable[ContactSnapshot],
        now: Optional[dt.datetime] = None
    ) -> List[RiskAlert]:
        """Evaluate each contact independently, preserving input order."""
        now = ensure_utc(now) if now else dt.datetime.now(dt.UTC)
        alerts: List[RiskAlert] = []
        for contact in contacts:
            alerts.extend(self.analyze_contact(contact, now))
        return alerts

    # ------------------------------------------------------------------
    # Rules
    # ------------------------------------------------------------------

    def _check_stale_deal(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[RiskAlert]:
        threshold = self.thresholds.stale_days.get(contact.status)
        if not threshold:
            return None

        days_stale = days_between(contact.last_activity_at, now)
        if days_stale <= threshold:
            return None

        if days_stale >= threshold * 3:
            level, title = RiskLevel.HIGH, "Stalled deal"
        elif days_stale >= threshold * 2:
            level, title = RiskLevel.MEDIUM, "Deal going stale"
        else:
            level, title = RiskLevel.LOW, "Deal cooling off"

        return RiskAlert(
            contact_id=contact.id,
            rule=RiskRule.STALE_DEAL,
            level=level,
            title=title,
            description=(
                f"No progress for {days_stale} days in stage {contact.status.value} "
                f"(limit {threshold} days)"
            ),
            days_stale=days_stale,
        )

    def _check_task_overdue(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[RiskAlert]:
        if contact.proxima_acao_data is None:
            return None

        days_overdue = calendar_days_overdue(contact.proxima_acao_data, now)
        if days_overdue <= 0:
            return None

        level = RiskLevel.HIGH if days_overdue >= self.thresholds.task_overdue_high_days else RiskLevel.MEDIUM
        action = contact.proxima_acao_tipo.value if contact.proxima_acao_tipo else "scheduled action"

        return RiskAlert(
            contact_id=contact.id,
            rule=RiskRule.TASK_OVERDUE,
            level=level,
            title="Overdue task",
            description=f'Action "{action}" is {days_overdue} day(s) overdue',
            days_stale=days_overdue,
        )

    def _check_no_owner(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[RiskAlert]:
        if contact.assigned_to_user_id:
            return None

        age = now - contact.created_at
        if age <= dt.timedelta(hours=self.thresholds.no_owner_grace_hours):
            return None

        return RiskAlert(
            contact_id=contact.id,
            rule=RiskRule.NO_OWNER,
            level=RiskLevel.MEDIUM,
            title="No owner",
            description=f"Unassigned for {days_between(contact.created_at, now)} days",
        )

    def _check_no_next_action(self, contact: ContactSnapshot) -> Optional[RiskAlert]:
        if contact.proxima_acao_tipo or contact.proxima_acao_data:
            return None

        return RiskAlert(
            contact_id=contact.id,
            rule=RiskRule.NO_NEXT_ACTION,
            level=RiskLevel.LOW,
            title="No next action",
            description="No next action is scheduled",
        )

    def _check_never_contacted(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[RiskAlert]:
        if contact.interactions:
            return None

        days_since_creation = days_between(contact.created_at, now)
        if days_since_creation <= self.thresholds.never_contacted_days:
            return None

        return RiskAlert(
            contact_id=contact.id,
            rule=RiskRule.NEVER_CONTACTED,
            level=RiskLevel.MEDIUM,
            title="Never contacted",
            description=f"Created {days_since_creation} days ago with no interaction logged",
            days_stale=days_since_creation,
        )

    def _check_cooling_down(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[RiskAlert]:
        if contact.temperatura != Temperature.HOT:
            return None

        last = contact.last_interaction
        if last is None or last.outcome != InteractionOutcome.SEM_RESPOSTA:
            return None

        days_silent = days_between(last.happened_at, now)
        if days_silent <= self.thresholds.cooling_down_days:
            return None

        return RiskAlert(
            contact_id=contact.id,
            rule=RiskRule.COOLING_DOWN,
            level=RiskLevel.MEDIUM,
            title="Hot contact cooling down",
            description=f"Hot contact unanswered for {days_silent} days",
            days_stale=days_silent,
        )

    def _check_high_value_at_risk(
        self,
        contact: ContactSnapshot,
        alerts: List[RiskAlert]
    ) -> Optional[RiskAlert]:
        value = contact.valor_estimado
        if not value or value < self.thresholds.high_value_threshold:
            return None

        if not any(a.level == RiskLevel.HIGH for a in alerts):
            return None

        return RiskAlert(
            contact_id=contact.id,
            rule=RiskRule.HIGH_VALUE_AT_RISK,
            level=RiskLevel.HIGH,
            title="High value at risk",
            description=f"Estimated value of {value:,.2f} is under a high-severity risk",
            value=value,
        )


# Singleton instance
_engine: Optional[RiskRulesEngine] = None


def get_risk_engine() -> RiskRulesEngine:
    """Get or create the rules engine singleton."""
    global _engine
    if _engine is None:
        _engine = RiskRulesEngine()
    return _engine


def analyze_contact(contact: ContactSnapshot, now: Optional[dt.datetime] = None) -> List[RiskAlert]:
    return get_risk_engine().analyze_contact(contact, now)


def analyze_contacts(contacts: Iterable[ContactSnapshot], now: Optional[dt.datetime] = None) -> List[RiskAlert]:
    return get_risk_engine().analyze_contacts(contacts, now)
