"""
Notification Deduplication & Fan-out

Turns risk alerts into per-user notification drafts. An alert is
dropped when a notification with the same (contact, type) key was
created inside the trailing dedup window. Owned contacts notify
their owner; unowned contacts notify every admin of the organization.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Set
from prospect_radar.models.alert import RiskAlert, RiskRule
from prospect_radar.models.contact import ContactSnapshot
from prospect_radar.models.notification import Notification, NotificationType
from prospect_radar.utils.observability import logger


RULE_NOTIFICATION_TYPES = {
    RiskRule.STALE_DEAL: NotificationType.STALE_DEAL,
    RiskRule.TASK_OVERDUE: NotificationType.TASK_OVERDUE,
    RiskRule.NO_OWNER: NotificationType.NO_OWNER,
}


def notification_type_for(rule: RiskRule) -> NotificationType:
    """Coarse notification type for a rule; unmapped rules are generic risk alerts."""
    return RULE_NOTIFICATION_TYPES.get(rule, NotificationType.RISK_ALERT)


def dedup_key(contact_id: Optional[str], notification_type: NotificationType) -> str:
    return f"{contact_id}:{notification_type.value}"


def resolve_recipients(
    contact: Optional[ContactSnapshot],
    admin_user_ids: Sequence[str]
) -> List[str]:
    """Owner when assigned, otherwise every admin."""
    if contact is not None and contact.assigned_to_user_id:
        return [contact.assigned_to_user_id]
    return list(admin_user_ids)


@dataclass
class NotificationPlan:
    """Drafts for one run, plus the alerts that produced none."""
    drafts: List[Notification] = field(default_factory=list)
    skipped: int = 0   # key sent recently or planned earlier in the batch
    unrouted: int = 0  # no owner and no admins


def plan_notification_batch(
    alerts: Iterable[RiskAlert],
    contacts_by_id: Mapping[str, ContactSnapshot],
    admin_user_ids: Sequence[str],
    recent_notification_keys: Set[str],
    organization_id: str,
) -> NotificationPlan:
    """
    Build notification drafts for alerts that are not already covered,
    counting dedup skips and unroutable alerts apart.

    Args:
        alerts: Alerts from the rules engine, most important first per contact
        contacts_by_id: Snapshots keyed by contact id, used to find owners
        admin_user_ids: Admins of the organization (unowned contacts fan out to all)
        recent_notification_keys: "contact_id:type" keys created inside the dedup window
        organization_id: Tenant the drafts belong to

    Returns:
        NotificationPlan holding unpersisted drafts, one per (alert, recipient)
    """
    plan = NotificationPlan()
    planned_keys: Set[str] = set()

    for alert in alerts:
        notification_type = notification_type_for(alert.rule)
        key = dedup_key(alert.contact_id, notification_type)

        # Earlier alerts in this batch count against the window too
        if key in recent_notification_keys or key in planned_keys:
            plan.skipped += 1
            continue

        recipients = resolve_recipients(contacts_by_id.get(alert.contact_id), admin_user_ids)
        if not recipients:
            logger.warning(
                f"No recipients for alert {alert.rule.value} on contact {alert.contact_id}",
                extra={"organization_id": organization_id}
            )
            plan.unrouted += 1
            continue

        planned_keys.add(key)
        metadata = {
            "rule": alert.rule.value,
            "level": alert.level.value,
            "daysStale": alert.days_stale,
            "value": alert.value,
        }

        for user_id in recipients:
            plan.drafts.append(Notification(
                organization_id=organization_id,
                user_id=user_id,
                type=notification_type,
                title=alert.title,
                body=alert.description,
                contact_id=alert.contact_id,
                metadata=dict(metadata),
            ))

    logger.debug(
        f"Planned {len(plan.drafts)} notification drafts, "
        f"skipped {plan.skipped} recent, {plan.unrouted} without recipients",
        extra={"organization_id": organization_id}
    )
    return plan


def plan_notifications(
    alerts: Iterable[RiskAlert],
    contacts_by_id: Mapping[str, ContactSnapshot],
    admin_user_ids: Sequence[str],
    recent_notification_keys: Set[str],
    organization_id: str,
) -> List[Notification]:
    """Notification drafts only; see plan_notification_batch for the counts."""
    return plan_notification_batch(
        alerts, contacts_by_id, admin_user_ids, recent_notification_keys, organization_id
    ).drafts
