"""
Tests for the Risk Rules Engine

Covers each rule, severity escalation, terminal statuses and the
module-level helpers.
"""

import pytest
import datetime as dt
from prospect_radar.engine.risk_rules import (
    RiskRulesEngine,
    RiskThresholds,
    analyze_contact,
    analyze_contacts,
    get_risk_engine,
)
from prospect_radar.engine.timeutils import days_between
from prospect_radar.models.alert import RiskLevel, RiskRule
from prospect_radar.models.contact import (
    ContactStatus,
    InteractionOutcome,
    InteractionType,
    NextActionType,
    Temperature,
)


def rules_of(alerts):
    return [a.rule for a in alerts]


def only(alerts, rule):
    return [a for a in alerts if a.rule == rule]


class TestRiskRulesEngine:
    """Tests for RiskRulesEngine rules."""

    @pytest.fixture
    def engine(self):
        return RiskRulesEngine(RiskThresholds())

    # ===========================================
    # Terminal statuses
    # ===========================================

    @pytest.mark.parametrize("status", [ContactStatus.CONVERTIDO, ContactStatus.PERDIDO])
    def test_terminal_contacts_raise_nothing(self, engine, make_snapshot, now, status):
        """Converted or lost contacts never raise alerts, however neglected."""
        contact = make_snapshot(
            status=status,
            assigned_to_user_id=None,
            updated_at=now - dt.timedelta(days=60),
            proxima_acao_data=now - dt.timedelta(days=10),
        )

        assert engine.analyze_contact(contact, now) == []

    # ===========================================
    # STALE_DEAL
    # ===========================================

    def test_one_day_under_threshold_not_stale(self, engine, make_snapshot, now):
        contact = make_snapshot(updated_at=now - dt.timedelta(days=4))

        assert only(engine.analyze_contact(contact, now), RiskRule.STALE_DEAL) == []

    def test_exactly_threshold_not_stale(self, engine, make_snapshot, now):
        contact = make_snapshot(updated_at=now - dt.timedelta(days=5))

        assert only(engine.analyze_contact(contact, now), RiskRule.STALE_DEAL) == []

    def test_one_day_over_threshold_is_stale(self, engine, make_snapshot, now):
        """EM_PROSPECCAO threshold is 5 days; 6 idle days raises exactly one alert."""
        contact = make_snapshot(updated_at=now - dt.timedelta(days=6))

        stale = only(engine.analyze_contact(contact, now), RiskRule.STALE_DEAL)

        assert len(stale) == 1
        assert stale[0].days_stale == 6
        assert stale[0].days_stale >= 1
        assert stale[0].level == RiskLevel.LOW

    @pytest.mark.parametrize("days, level", [
        (6, RiskLevel.LOW),
        (10, RiskLevel.MEDIUM),
        (14, RiskLevel.MEDIUM),
        (15, RiskLevel.HIGH),
        (40, RiskLevel.HIGH),
    ])
    def test_stale_severity_escalates(self, engine, make_snapshot, now, days, level):
        contact = make_snapshot(updated_at=now - dt.timedelta(days=days))

        stale = only(engine.analyze_contact(contact, now), RiskRule.STALE_DEAL)

        assert stale[0].level == level

    def test_stage_specific_threshold(self, engine, make_snapshot, now):
        """NOVO goes stale after 2 days, CONTATADO after 3."""
        novo = make_snapshot(status=ContactStatus.NOVO, updated_at=now - dt.timedelta(days=3))
        contatado = make_snapshot(status=ContactStatus.CONTATADO, updated_at=now - dt.timedelta(days=3))

        assert len(only(engine.analyze_contact(novo, now), RiskRule.STALE_DEAL)) == 1
        assert only(engine.analyze_contact(contatado, now), RiskRule.STALE_DEAL) == []

    def test_recent_interaction_resets_staleness(self, engine, make_snapshot, make_interaction, now):
        """Staleness counts from the latest of updated_at and the last interaction."""
        contact = make_snapshot(
            updated_at=now - dt.timedelta(days=20),
            interactions=(make_interaction(days_ago=1),),
        )

        assert only(engine.analyze_contact(contact, now), RiskRule.STALE_DEAL) == []

    def test_partial_days_are_floored(self, engine, make_snapshot, now):
        contact = make_snapshot(updated_at=now - dt.timedelta(days=5, hours=23))

        assert only(engine.analyze_contact(contact, now), RiskRule.STALE_DEAL) == []

    # ===========================================
    # TASK_OVERDUE
    # ===========================================

    def test_due_yesterday_is_one_day_overdue(self, engine, make_snapshot, now):
        contact = make_snapshot(
            status=ContactStatus.CONTATADO,
            proxima_acao_tipo=NextActionType.LIGAR,
            proxima_acao_data=now - dt.timedelta(days=1),
        )

        overdue = only(engine.analyze_contact(contact, now), RiskRule.TASK_OVERDUE)

        assert len(overdue) == 1
        assert overdue[0].days_stale == 1
        assert overdue[0].level == RiskLevel.MEDIUM
        assert "LIGAR" in overdue[0].description

    def test_overdue_uses_calendar_days(self, engine, make_snapshot, now):
        """Due late yesterday is still one calendar day overdue at noon today."""
        due = dt.datetime(2024, 6, 14, 23, 30, tzinfo=dt.UTC)
        contact = make_snapshot(proxima_acao_data=due)

        overdue = only(engine.analyze_contact(contact, now), RiskRule.TASK_OVERDUE)

        assert overdue[0].days_stale == 1

    def test_due_earlier_today_not_overdue(self, engine, make_snapshot, now):
        contact = make_snapshot(proxima_acao_data=now - dt.timedelta(hours=3))

        assert only(engine.analyze_contact(contact, now), RiskRule.TASK_OVERDUE) == []

    def test_long_overdue_is_high(self, engine, make_snapshot, now):
        contact = make_snapshot(proxima_acao_data=now - dt.timedelta(days=3))

        overdue = only(engine.analyze_contact(contact, now), RiskRule.TASK_OVERDUE)

        assert overdue[0].level == RiskLevel.HIGH

    # ===========================================
    # NO_OWNER
    # ===========================================

    def test_unassigned_contact_past_grace(self, engine, make_snapshot, now):
        contact = make_snapshot(assigned_to_user_id=None, created_at=now - dt.timedelta(days=2))

        no_owner = only(engine.analyze_contact(contact, now), RiskRule.NO_OWNER)

        assert len(no_owner) == 1
        assert no_owner[0].level == RiskLevel.MEDIUM

    def test_unassigned_contact_within_grace(self, engine, make_snapshot, now):
        contact = make_snapshot(assigned_to_user_id=None, created_at=now - dt.timedelta(hours=12))

        assert only(engine.analyze_contact(contact, now), RiskRule.NO_OWNER) == []

    # ===========================================
    # Softer warnings
    # ===========================================

    def test_no_next_action(self, engine, make_snapshot, now):
        contact = make_snapshot(proxima_acao_tipo=None, proxima_acao_data=None)

        alerts = only(engine.analyze_contact(contact, now), RiskRule.NO_NEXT_ACTION)

        assert len(alerts) == 1
        assert alerts[0].level == RiskLevel.LOW

    def test_never_contacted(self, engine, make_snapshot, now):
        contact = make_snapshot(created_at=now - dt.timedelta(days=5))

        alerts = only(engine.analyze_contact(contact, now), RiskRule.NEVER_CONTACTED)

        assert alerts[0].days_stale == 5

    def test_new_contact_not_flagged_as_never_contacted(self, engine, make_snapshot, now):
        contact = make_snapshot(created_at=now - dt.timedelta(days=2))

        assert only(engine.analyze_contact(contact, now), RiskRule.NEVER_CONTACTED) == []

    def test_future_timestamps_clamp_to_zero_days(self, engine, make_snapshot, now):
        """Clock skew between writers must not produce negative ages."""
        future = now + dt.timedelta(days=1)
        contact = make_snapshot(created_at=future, updated_at=future)

        rules = {a.rule for a in engine.analyze_contact(contact, now)}

        assert days_between(future, now) == 0
        assert RiskRule.STALE_DEAL not in rules
        assert RiskRule.NEVER_CONTACTED not in rules

    def test_hot_contact_cooling_down(self, engine, make_snapshot, make_interaction, now):
        contact = make_snapshot(
            temperatura=Temperature.HOT,
            interactions=(make_interaction(days_ago=4, outcome=InteractionOutcome.SEM_RESPOSTA),),
        )

        alerts = only(engine.analyze_contact(contact, now), RiskRule.COOLING_DOWN)

        assert len(alerts) == 1
        assert alerts[0].days_stale == 4

    def test_warm_contact_does_not_cool_down(self, engine, make_snapshot, make_interaction, now):
        contact = make_snapshot(
            temperatura=Temperature.WARM,
            interactions=(make_interaction(days_ago=4, outcome=InteractionOutcome.SEM_RESPOSTA),),
        )

        assert only(engine.analyze_contact(contact, now), RiskRule.COOLING_DOWN) == []

    def test_high_value_under_high_risk(self, engine, make_snapshot, now):
        contact = make_snapshot(valor_estimado=25000.0, updated_at=now - dt.timedelta(days=20))

        alerts = only(engine.analyze_contact(contact, now), RiskRule.HIGH_VALUE_AT_RISK)

        assert len(alerts) == 1
        assert alerts[0].level == RiskLevel.HIGH
        assert alerts[0].value == 25000.0

    def test_high_value_without_high_risk(self, engine, make_snapshot, now):
        contact = make_snapshot(valor_estimado=25000.0, updated_at=now - dt.timedelta(days=6))

        assert only(engine.analyze_contact(contact, now), RiskRule.HIGH_VALUE_AT_RISK) == []

    # ===========================================
    # Ordering & batches
    # ===========================================

    def test_alerts_sorted_by_severity(self, engine, make_snapshot, now):
        contact = make_snapshot(
            assigned_to_user_id=None,
            proxima_acao_data=None,
            updated_at=now - dt.timedelta(days=20),
        )

        levels = [a.level.rank for a in engine.analyze_contact(contact, now)]

        assert levels == sorted(levels, reverse=True)
        assert levels[0] == RiskLevel.HIGH.rank

    def test_contacts_evaluated_independently(self, engine, make_snapshot, now):
        stale = make_snapshot(id="a", updated_at=now - dt.timedelta(days=6))
        fresh = make_snapshot(id="b", interactions=())
        lost = make_snapshot(id="c", status=ContactStatus.PERDIDO)

        alerts = engine.analyze_contacts([stale, fresh, lost], now)

        assert {a.contact_id for a in alerts} <= {"a", "b"}
        assert RiskRule.STALE_DEAL in rules_of(a for a in alerts if a.contact_id == "a")

    def test_naive_now_treated_as_utc(self, engine, make_snapshot, now):
        contact = make_snapshot(updated_at=now - dt.timedelta(days=6))

        aware = engine.analyze_contact(contact, now)
        naive = engine.analyze_contact(contact, now.replace(tzinfo=None))

        assert aware == naive


class TestRiskScenarios:
    """End-to-end scenarios on the default thresholds."""

    def test_unowned_prospect_without_activity(self, make_snapshot, now):
        contact = make_snapshot(
            status=ContactStatus.EM_PROSPECCAO,
            updated_at=now - dt.timedelta(days=10),
            assigned_to_user_id=None,
            proxima_acao_data=None,
        )

        rules = rules_of(analyze_contact(contact, now))

        assert RiskRule.NO_OWNER in rules
        assert RiskRule.STALE_DEAL in rules

    def test_contacted_with_action_due_yesterday(self, make_snapshot, make_interaction, now):
        contact = make_snapshot(
            status=ContactStatus.CONTATADO,
            proxima_acao_tipo=NextActionType.ENVIAR_EMAIL,
            proxima_acao_data=now - dt.timedelta(days=1),
            interactions=(make_interaction(days_ago=2, type=InteractionType.EMAIL),),
        )

        overdue = only(analyze_contacts([contact], now), RiskRule.TASK_OVERDUE)

        assert len(overdue) == 1
        assert overdue[0].days_stale == 1


def test_get_risk_engine_singleton():
    assert get_risk_engine() is get_risk_engine()
