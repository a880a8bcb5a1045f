"""
CLI Runner for the Analysis Service
Runs one operation against a live MongoDB and prints the outcome.

Usage:
    python -m prospect_radar.core.cli_runner analyze <organization_id>
    python -m prospect_radar.core.cli_runner digest <organization_id>
    python -m prospect_radar.core.cli_runner health <organization_id>
    python -m prospect_radar.core.cli_runner contact <organization_id> <contact_id>
    python -m prospect_radar.core.cli_runner metrics <organization_id>
"""
import asyncio
import sys
from loguru import logger
from pymongo.errors import PyMongoError
from prospect_radar.core.analysis_service import AnalysisService
from prospect_radar.utils.metrics import metrics
from prospect_radar.utils.observability import configure_logging


COMMANDS = ("analyze", "digest", "health", "contact", "metrics")


async def run_analysis(service: AnalysisService, organization_id: str) -> None:
    result = await service.run_organization_analysis(organization_id)

    print(f"\n📊 Risk analysis for {organization_id}")
    print(f"   Contacts analyzed: {result.contacts_analyzed}")
    print(f"   Alerts raised: {len(result.alerts)}")
    print(f"   Notifications created: {result.notifications_created}")
    print(f"   Skipped (recent): {result.skipped_alerts}")
    if result.unrouted_alerts:
        print(f"   Without recipients: {result.unrouted_alerts}")
    print(f"   Duration: {result.total_duration_ms:.0f}ms")

    for alert in result.alerts:
        print(f"   [{alert.level.value:<6}] {alert.contact_id} {alert.rule.value}: {alert.description}")


async def run_digest(service: AnalysisService, organization_id: str) -> None:
    result = await service.run_daily_digest(organization_id)

    print(f"\n📬 Daily digest for {organization_id}")
    print(f"   Notifications created: {result.notifications_created}")
    print(f"   Users notified: {len(result.users_notified)}")


async def run_health(service: AnalysisService, organization_id: str) -> None:
    health = await service.get_pipeline_health(organization_id)

    print(f"\n📈 Pipeline health for {organization_id}")
    print(f"   Active: {health.total_active} | Value: {health.total_value:,.2f}")
    print(f"   At risk: {health.at_risk} | Stale: {health.stale}")
    print(f"   No owner: {health.no_owner} | No next action: {health.no_next_action}")
    print(f"   Conversion rate: {health.conversion_rate}%")
    for stage, days in health.avg_days_in_stage.items():
        print(f"   Avg days in {stage}: {days}")


async def run_contact(service: AnalysisService, organization_id: str, contact_id: str) -> None:
    insight = await service.get_contact_insight(organization_id, contact_id)

    if insight is None:
        print(f"\n❌ Contact {contact_id} not found")
        return

    print(f"\n🔎 Contact {insight.contact_id}")
    print(f"   Days in stage: {insight.days_in_stage}")
    print(f"   Interactions: {insight.interaction_count}")
    for alert in insight.risks:
        print(f"   Risk [{alert.level.value}]: {alert.title} - {alert.description}")

    action = insight.next_action
    print(f"\n🎯 Next action: {action.action_type.value} ({action.priority.value})")
    print(f"   {action.reasoning}")
    print(f"   Due by: {action.due_by.isoformat()}")


async def main(argv: list[str]) -> int:
    """Dispatch a command. Returns the process exit code."""
    configure_logging()

    if len(argv) < 2 or argv[0] not in COMMANDS or (argv[0] == "contact" and len(argv) < 3):
        print(__doc__)
        return 2

    command, organization_id = argv[0], argv[1]
    service = AnalysisService()

    try:
        logger.info("🔌 Connecting to MongoDB...")
        await service.initialize()

        if command == "analyze":
            await run_analysis(service, organization_id)
        elif command == "digest":
            await run_digest(service, organization_id)
        elif command == "health":
            await run_health(service, organization_id)
        elif command == "contact":
            await run_contact(service, organization_id, argv[2])
        else:
            await run_analysis(service, organization_id)
            print("\n" + metrics.export())

        return 0

    except (PyMongoError, RuntimeError) as e:
        logger.error(f"❌ {command} failed: {e}")
        return 1

    finally:
        logger.info("🔌 Disconnecting from MongoDB...")
        await service.shutdown()


def run() -> None:
    sys.exit(asyncio.run(main(sys.argv[1:])))


if __name__ == "__main__":
    run()
