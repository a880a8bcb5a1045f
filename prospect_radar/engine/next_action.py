"""
Next-Action Engine

Picks the single best next move for a contact from its status,
temperature and latest interaction. Branches are checked in priority
order and the first match wins; the last branch always matches, so
every contact gets a recommendation.
"""

import datetime as dt
from dataclasses import dataclass
from typing import Optional
from prospect_radar.config import get_settings
from prospect_radar.engine.timeutils import days_between, calendar_days_overdue
from prospect_radar.models.base import ensure_utc
from prospect_radar.models.alert import NextActionSuggestion, RiskLevel
from prospect_radar.models.contact import (
    ContactSnapshot,
    ContactStatus,
    InteractionOutcome,
    InteractionType,
    NextActionType,
    Temperature,
)


AWAITING_OUTCOMES = frozenset({
    InteractionOutcome.SEM_RESPOSTA,
    InteractionOutcome.AGUARDANDO_RETORNO,
})

POSITIVE_OUTCOMES = frozenset({
    InteractionOutcome.RESPONDEU,
    InteractionOutcome.SEGUIR_TENTANDO,
    InteractionOutcome.EM_NEGOCIACAO,
})

MEETING_TYPES = frozenset({
    InteractionType.REUNIAO,
    InteractionType.VISITA,
    InteractionType.APRESENTACAO,
})

# Try a different channel than the one that went unanswered
NUDGE_CHANNEL = {
    InteractionType.LIGACAO: NextActionType.ENVIAR_WHATSAPP,
    InteractionType.WHATSAPP: NextActionType.LIGAR,
    InteractionType.EMAIL: NextActionType.LIGAR,
}


@dataclass(frozen=True)
class NextActionPolicy:
    """Timing knobs for the recommendation branches. Days."""
    awaiting_response_days: int = 2
    recent_signal_days: int = 3
    interval_hot_days: int = 1
    interval_warm_days: int = 3
    interval_cold_days: int = 7

    @classmethod
    def from_settings(cls) -> "NextActionPolicy":
        settings = get_settings()
        return cls(
            awaiting_response_days=settings.awaiting_response_days,
            recent_signal_days=settings.recent_signal_days,
            interval_hot_days=settings.followup_interval_hot_days,
            interval_warm_days=settings.followup_interval_warm_days,
            interval_cold_days=settings.followup_interval_cold_days,
        )

    def interval_for(self, temperature: Optional[Temperature]) -> int:
        if temperature == Temperature.HOT:
            return self.interval_hot_days
        if temperature == Temperature.COLD:
            return self.interval_cold_days
        return self.interval_warm_days


class NextActionEngine:
    """
    Recommends one next action per contact.

    Usage:
        engine = NextActionEngine()
        suggestion = engine.suggest(snapshot, now=now)
    """

    def __init__(self, policy: Optional[NextActionPolicy] = None):
        self.policy = policy or NextActionPolicy.from_settings()

    def suggest(self, contact: ContactSnapshot, now: Optional[dt.datetime] = None) -> NextActionSuggestion:
        """
        Recommend the next action for a contact.

        Args:
            contact: Snapshot to evaluate
            now: Evaluation time (defaults to current UTC time)

        Returns:
            Exactly one NextActionSuggestion
        """
        now = ensure_utc(now) if now else dt.datetime.now(dt.UTC)

        if not contact.status.is_terminal:
            for branch in (
                self._overdue_action,
                self._meeting_without_outcome,
                self._first_contact,
                self._awaiting_response,
                self._stage_progression,
            ):
                suggestion = branch(contact, now)
                if suggestion is not None:
                    return suggestion

        return self._periodic_followup(contact, now)

    # ------------------------------------------------------------------
    # Branches, highest priority first
    # ------------------------------------------------------------------

    def _overdue_action(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[NextActionSuggestion]:
        if contact.proxima_acao_data is None:
            return None

        days_overdue = calendar_days_overdue(contact.proxima_acao_data, now)
        if days_overdue <= 0:
            return None

        action = contact.proxima_acao_tipo or NextActionType.FOLLOW_UP
        return NextActionSuggestion(
            contact_id=contact.id,
            action_type=action,
            reasoning=(
                f"Scheduled {action.value} is {days_overdue} day(s) overdue; "
                f"do it today or reschedule"
            ),
            priority=RiskLevel.HIGH,
            due_by=now,
        )

    def _meeting_without_outcome(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[NextActionSuggestion]:
        if contact.status != ContactStatus.REUNIAO_MARCADA:
            return None

        meeting_at = contact.proxima_acao_data
        if meeting_at is None or meeting_at > now:
            return None

        last = contact.last_interaction
        if last is not None and last.happened_at >= meeting_at:
            return None

        return NextActionSuggestion(
            contact_id=contact.id,
            action_type=NextActionType.FOLLOW_UP,
            reasoning="Meeting time has passed with no outcome logged; record the result and follow up",
            priority=RiskLevel.HIGH,
            due_by=now,
        )

    def _first_contact(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[NextActionSuggestion]:
        if contact.interactions or contact.status != ContactStatus.NOVO:
            return None

        days_waiting = days_between(contact.created_at, now)
        return NextActionSuggestion(
            contact_id=contact.id,
            action_type=NextActionType.LIGAR,
            reasoning=f"No contact made in {days_waiting} day(s) since creation; make the first call",
            priority=RiskLevel.HIGH,
            due_by=now,
        )

    def _awaiting_response(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[NextActionSuggestion]:
        last = contact.last_interaction
        if last is None or last.outcome not in AWAITING_OUTCOMES:
            return None

        days_waiting = days_between(last.happened_at, now)
        if days_waiting <= self.policy.awaiting_response_days:
            return None

        action = NUDGE_CHANNEL.get(last.type, NextActionType.FOLLOW_UP)
        return NextActionSuggestion(
            contact_id=contact.id,
            action_type=action,
            reasoning=(
                f"Last {last.type.value} has been {last.outcome.value} for {days_waiting} days; "
                f"nudge with {action.value}"
            ),
            priority=RiskLevel.MEDIUM,
            due_by=now,
        )

    def _stage_progression(self, contact: ContactSnapshot, now: dt.datetime) -> Optional[NextActionSuggestion]:
        last = contact.last_interaction
        if last is None:
            return None

        days_since = days_between(last.happened_at, now)
        tomorrow = now + dt.timedelta(days=1)

        if last.outcome == InteractionOutcome.INDICOU_TERCEIRO:
            return NextActionSuggestion(
                contact_id=contact.id,
                action_type=NextActionType.LIGAR,
                reasoning="Contact referred a third party; reach out to the referral",
                priority=RiskLevel.MEDIUM,
                due_by=tomorrow,
            )

        if (
            contact.status == ContactStatus.REUNIAO_MARCADA
            and last.type in MEETING_TYPES
            and days_since <= 1
        ):
            return NextActionSuggestion(
                contact_id=contact.id,
                action_type=NextActionType.ENVIAR_PROPOSTA,
                reasoning=f"{last.type.value} held {days_since} day(s) ago; send the proposal",
                priority=RiskLevel.HIGH,
                due_by=tomorrow,
            )

        if (
            contact.status in (ContactStatus.EM_PROSPECCAO, ContactStatus.CONTATADO)
            and last.outcome in POSITIVE_OUTCOMES
            and days_since <= self.policy.recent_signal_days
        ):
            return NextActionSuggestion(
                contact_id=contact.id,
                action_type=NextActionType.REUNIAO,
                reasoning=f"Contact answered {last.outcome.value} {days_since} day(s) ago; book a meeting while warm",
                priority=RiskLevel.HIGH,
                due_by=tomorrow,
            )

        return None

    def _periodic_followup(self, contact: ContactSnapshot, now: dt.datetime) -> NextActionSuggestion:
        last = contact.last_interaction
        reference = last.happened_at if last is not None else contact.created_at
        interval = self.policy.interval_for(contact.temperatura)
        days_idle = days_between(reference, now)
        due_by = max(reference + dt.timedelta(days=interval), now)
        temperature = contact.temperatura.value if contact.temperatura else "unrated"

        return NextActionSuggestion(
            contact_id=contact.id,
            action_type=NextActionType.FOLLOW_UP,
            reasoning=(
                f"{days_idle} day(s) since last activity; "
                f"{temperature} contacts get a follow-up every {interval} day(s)"
            ),
            priority=RiskLevel.MEDIUM if days_idle >= interval else RiskLevel.LOW,
            due_by=due_by,
        )


# Singleton instance
_engine: Optional[NextActionEngine] = None


def get_next_action_engine() -> NextActionEngine:
    """Get or create the next-action engine singleton."""
    global _engine
    if _engine is None:
        _engine = NextActionEngine()
    return _engine


def suggest_next_action(contact: ContactSnapshot, now: Optional[dt.datetime] = None) -> NextActionSuggestion:
    return get_next_action_engine().suggest(contact, now)
