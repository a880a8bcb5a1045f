"""Pure decision core: risk rules, next action, notification planning."""
from prospect_radar.engine.risk_rules import (
    RiskRulesEngine,
    RiskThresholds,
    analyze_contact,
    analyze_contacts,
    get_risk_engine,
)
from prospect_radar.engine.next_action import (
    NextActionEngine,
    NextActionPolicy,
    suggest_next_action,
    get_next_action_engine,
)
from prospect_radar.engine.notification_planner import (
    plan_notifications,
    notification_type_for,
    dedup_key,
)
from prospect_radar.engine.pipeline_health import PipelineHealth, summarize_pipeline
from prospect_radar.engine.daily_digest import DailyDigestPlanner, DigestReason, plan_daily_digest

__all__ = [
    "RiskRulesEngine",
    "RiskThresholds",
    "analyze_contact",
    "analyze_contacts",
    "get_risk_engine",
    "NextActionEngine",
    "NextActionPolicy",
    "suggest_next_action",
    "get_next_action_engine",
    "plan_notifications",
    "notification_type_for",
    "dedup_key",
    "PipelineHealth",
    "summarize_pipeline",
    "DailyDigestPlanner",
    "DigestReason",
    "plan_daily_digest",
]
