"""
Analysis Service
The impure shell around the decision engine.

Flow per organization:
    Contacts + Interactions → Snapshots → Risk Rules → Dedup/Fan-out → Notifications
"""
from dataclasses import dataclass, field
from loguru import logger
from typing import List, Optional
import datetime as dt
import time

from prospect_radar.config import get_settings
from prospect_radar.engine.daily_digest import DailyDigestPlanner
from prospect_radar.engine.next_action import NextActionEngine, get_next_action_engine
from prospect_radar.engine.notification_planner import plan_notification_batch
from prospect_radar.engine.pipeline_health import PipelineHealth, AT_RISK_LEVELS, summarize_pipeline
from prospect_radar.engine.risk_rules import RiskRulesEngine, get_risk_engine
from prospect_radar.engine.timeutils import days_between
from prospect_radar.models.alert import NextActionSuggestion, RiskAlert, RiskLevel
from prospect_radar.models.contact import ContactStatus, InteractionSummary
from prospect_radar.models.notification import Notification, NotificationType
from prospect_radar.models.base import utc_now
from prospect_radar.repositories import (
    db_manager,
    ContactRepository,
    InteractionRepository,
    NotificationRepository,
    ProfileRepository,
)
from prospect_radar.services.snapshot_builder import build_snapshot, build_snapshots
from prospect_radar.utils.metrics import Timer, metrics
from prospect_radar.utils.observability import log_analysis_run, log_business_event


DIGEST_TYPES = (NotificationType.NEXT_ACTION, NotificationType.STALE_DEAL, NotificationType.NO_OWNER)


@dataclass
class AnalysisResult:
    """Outcome of one organization-wide risk analysis."""
    organization_id: str
    contacts_analyzed: int
    alerts: List[RiskAlert]
    notifications_created: int
    total_duration_ms: float
    skipped_alerts: int = 0
    unrouted_alerts: int = 0


@dataclass
class ContactInsight:
    """On-demand view of one contact: risks plus the recommended action."""
    contact_id: str
    risks: List[RiskAlert]
    next_action: NextActionSuggestion
    days_in_stage: int
    interaction_count: int
    last_interaction: Optional[InteractionSummary] = None


@dataclass
class DigestResult:
    organization_id: str
    notifications_created: int
    users_notified: List[str] = field(default_factory=list)


class AnalysisService:
    """
    Coordinates repositories and the pure engine for one tenant at a time.

    Usage:
        >>> service = AnalysisService()
        >>> await service.initialize()
        >>> result = await service.run_organization_analysis("org_1")
        >>> print(result.notifications_created)
    """

    def __init__(
        self,
        contact_repo: ContactRepository | None = None,
        interaction_repo: InteractionRepository | None = None,
        notification_repo: NotificationRepository | None = None,
        profile_repo: ProfileRepository | None = None,
        risk_engine: RiskRulesEngine | None = None,
        next_action_engine: NextActionEngine | None = None,
        digest_planner: DailyDigestPlanner | None = None
    ):
        """
        Initialize the service.

        Repositories left as None are created by `initialize()` from the
        shared database connection.
        """
        self.contact_repo = contact_repo
        self.interaction_repo = interaction_repo
        self.notification_repo = notification_repo
        self.profile_repo = profile_repo

        self.risk_engine = risk_engine or get_risk_engine()
        self.next_action_engine = next_action_engine or get_next_action_engine()
        self.digest_planner = digest_planner or DailyDigestPlanner()

        self.settings = get_settings()

    async def initialize(self) -> None:
        """Connect to MongoDB, create indexes and build missing repositories."""
        logger.info("Initializing AnalysisService with MongoDB persistence")

        await db_manager.connect()
        await db_manager.create_indexes()

        db = db_manager.database
        self.contact_repo = self.contact_repo or ContactRepository(db)
        self.interaction_repo = self.interaction_repo or InteractionRepository(db)
        self.notification_repo = self.notification_repo or NotificationRepository(db)
        self.profile_repo = self.profile_repo or ProfileRepository(db)

        logger.info("AnalysisService initialized")

    async def shutdown(self) -> None:
        """Close the MongoDB connection and drop repository references."""
        logger.info("Shutting down AnalysisService")
        await db_manager.disconnect()
        self.contact_repo = None
        self.interaction_repo = None
        self.notification_repo = None
        self.profile_repo = None

    def _require_repositories(self) -> None:
        if not all((self.contact_repo, self.interaction_repo, self.notification_repo, self.profile_repo)):
            raise RuntimeError("AnalysisService not initialized. Call await service.initialize() first.")

    async def run_organization_analysis(
        self,
        organization_id: str,
        now: Optional[dt.datetime] = None
    ) -> AnalysisResult:
        """
        Analyze every active contact of an organization and persist new notifications.

        Steps:
        1. Load active contacts and their interactions
        2. Build snapshots and run the risk rules
        3. Drop alerts already notified inside the dedup window
        4. Fan out to owners or admins and bulk insert the drafts

        Args:
            organization_id: Tenant to analyze
            now: Evaluation time (defaults to the current UTC time)

        Returns:
            AnalysisResult with the alerts and the number of notifications created

        Raises:
            RuntimeError: If the service was not initialized
            PyMongoError: On collaborator failures (logged and re-raised)
        """
        self._require_repositories()
        now = now or utc_now()
        start_time = time.time()

        logger.info(f"Starting risk analysis for organization: {organization_id}")

        try:
            contacts = await self.contact_repo.get_active_contacts(organization_id)
            interactions = await self.interaction_repo.get_for_contacts(
                organization_id, [c.id for c in contacts]
            )
            snapshots = build_snapshots(contacts, interactions, self.settings.interaction_window_size)
            alerts = self.risk_engine.analyze_contacts(snapshots, now)

            admin_user_ids = await self.profile_repo.get_admin_user_ids(organization_id)
            since = now - dt.timedelta(hours=self.settings.notification_dedup_hours)
            recent_keys = await self.notification_repo.get_recent_keys(organization_id, since)

            plan = plan_notification_batch(
                alerts,
                {s.id: s for s in snapshots},
                admin_user_ids,
                recent_keys,
                organization_id,
            )
            persisted = await self.notification_repo.insert_drafts(plan.drafts)

        except Exception as e:
            total_duration_ms = (time.time() - start_time) * 1000
            logger.error(f"Risk analysis failed for {organization_id} after {total_duration_ms:.0f}ms: {e}")
            raise

        total_duration_ms = (time.time() - start_time) * 1000
        self._record_metrics(organization_id, alerts, persisted, plan.skipped, total_duration_ms)

        log_analysis_run(
            organization_id=organization_id,
            contacts_analyzed=len(snapshots),
            alerts=len(alerts),
            notifications_created=len(persisted),
            duration_ms=total_duration_ms,
            skipped_alerts=plan.skipped,
            unrouted_alerts=plan.unrouted,
            admins=len(admin_user_ids),
        )

        high_value = [a for a in alerts if a.level == RiskLevel.HIGH and a.value is not None]
        if high_value:
            log_business_event(
                "high_value_at_risk",
                organization_id,
                contacts=sorted({a.contact_id for a in high_value}),
            )

        return AnalysisResult(
            organization_id=organization_id,
            contacts_analyzed=len(snapshots),
            alerts=alerts,
            notifications_created=len(persisted),
            total_duration_ms=total_duration_ms,
            skipped_alerts=plan.skipped,
            unrouted_alerts=plan.unrouted,
        )

    def _record_metrics(
        self,
        organization_id: str,
        alerts: List[RiskAlert],
        persisted: List[Notification],
        skipped: int,
        duration_ms: float
    ) -> None:
        for alert in alerts:
            metrics.alerts_total.inc(rule=alert.rule.value, level=alert.level.value)
        for notification in persisted:
            metrics.notifications_created.inc(type=notification.type.value)
        if skipped > 0:
            metrics.notifications_skipped.inc(skipped)

        at_risk = {a.contact_id for a in alerts if a.level in AT_RISK_LEVELS}
        metrics.contacts_at_risk.set(len(at_risk), organization_id=organization_id)
        metrics.analysis_duration.observe(duration_ms / 1000, operation="organization_analysis")

    async def get_contact_insight(
        self,
        organization_id: str,
        contact_id: str,
        now: Optional[dt.datetime] = None
    ) -> Optional[ContactInsight]:
        """
        Risks and next action for a single contact.

        Returns:
            ContactInsight, or None when the contact does not exist in the organization
        """
        self._require_repositories()
        now = now or utc_now()

        contact = await self.contact_repo.get_contact(organization_id, contact_id)
        if contact is None:
            logger.info(f"Contact {contact_id} not found in organization {organization_id}")
            return None

        interactions = await self.interaction_repo.get_recent_for_contact(
            organization_id, contact_id, limit=self.settings.interaction_window_size
        )
        snapshot = build_snapshot(contact, interactions, self.settings.interaction_window_size)

        return ContactInsight(
            contact_id=snapshot.id,
            risks=self.risk_engine.analyze_contact(snapshot, now),
            next_action=self.next_action_engine.suggest(snapshot, now),
            days_in_stage=days_between(snapshot.updated_at, now),
            interaction_count=len(snapshot.interactions),
            last_interaction=snapshot.last_interaction,
        )

    async def get_pipeline_health(
        self,
        organization_id: str,
        now: Optional[dt.datetime] = None
    ) -> PipelineHealth:
        """Dashboard counters for the active pipeline of an organization."""
        self._require_repositories()
        now = now or utc_now()

        with Timer(metrics.analysis_duration, operation="pipeline_health"):
            contacts = await self.contact_repo.get_active_contacts(organization_id)
            interactions = await self.interaction_repo.get_for_contacts(
                organization_id, [c.id for c in contacts]
            )
            snapshots = build_snapshots(contacts, interactions, self.settings.interaction_window_size)
            alerts = self.risk_engine.analyze_contacts(snapshots, now)

            total_contacts = await self.contact_repo.count_for_organization(organization_id)
            converted = await self.contact_repo.count_for_organization(
                organization_id, ContactStatus.CONVERTIDO
            )

        return summarize_pipeline(snapshots, alerts, now, total_contacts, converted)

    async def run_daily_digest(
        self,
        organization_id: str,
        now: Optional[dt.datetime] = None
    ) -> DigestResult:
        """
        Remind each seller of the contacts needing attention today.

        Digest keys are per recipient, so an admin and an owner are
        deduplicated independently.
        """
        self._require_repositories()
        now = now or utc_now()
        start_time = time.time()

        try:
            contacts = await self.contact_repo.get_active_contacts(organization_id)
            snapshots = [build_snapshot(c, [], 0) for c in contacts]
            admin_user_ids = await self.profile_repo.get_admin_user_ids(organization_id)
            since = now - dt.timedelta(hours=self.settings.notification_dedup_hours)
            recent_keys = await self.notification_repo.get_recent_user_keys(
                organization_id, since, DIGEST_TYPES
            )

            drafts = self.digest_planner.plan(
                snapshots,
                admin_user_ids,
                recent_keys,
                organization_id,
                now,
                contact_names={c.id: c.name for c in contacts},
            )
            persisted = await self.notification_repo.insert_drafts(drafts)

        except Exception as e:
            logger.error(f"Daily digest failed for {organization_id}: {e}")
            raise

        for notification in persisted:
            metrics.notifications_created.inc(type=notification.type.value)
        metrics.analysis_duration.observe(time.time() - start_time, operation="daily_digest")

        users = sorted({n.user_id for n in persisted})
        log_business_event(
            "daily_digest",
            organization_id,
            notifications=len(persisted),
            users=len(users),
        )

        return DigestResult(
            organization_id=organization_id,
            notifications_created=len(persisted),
            users_notified=users,
        )
