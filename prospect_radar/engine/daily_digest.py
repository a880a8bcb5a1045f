"""
Daily Digest Planner

Hourly/daily sweep that reminds each seller of the contacts needing
attention today, with a short rule-based tip per contact. Unowned
contacts are routed to every admin.
"""

import datetime as dt
from dataclasses import dataclass
from enum import StrEnum
from typing import Dict, List, Mapping, Optional, Sequence, Set
from prospect_radar.config import get_settings
from prospect_radar.engine.timeutils import days_between
from prospect_radar.models.contact import ContactSnapshot, ContactStatus
from prospect_radar.models.notification import Notification, NotificationType


class DigestReason(StrEnum):
    STALE = "stale"
    OVERDUE = "overdue"
    TODAY = "today"
    NO_OWNER = "no_owner"


REASON_TYPES = {
    DigestReason.STALE: NotificationType.STALE_DEAL,
    DigestReason.OVERDUE: NotificationType.NEXT_ACTION,
    DigestReason.TODAY: NotificationType.NEXT_ACTION,
    DigestReason.NO_OWNER: NotificationType.NO_OWNER,
}


@dataclass(frozen=True)
class DigestItem:
    contact: ContactSnapshot
    reason: DigestReason
    days_since_update: int


def user_dedup_key(contact_id: str, user_id: str, notification_type: NotificationType) -> str:
    return f"{contact_id}:{user_id}:{notification_type.value}"


def digest_tip(item: DigestItem) -> str:
    """Short, rule-based coaching line for one contact."""
    contact = item.contact
    action = contact.proxima_acao_tipo.value if contact.proxima_acao_tipo else None

    if item.reason == DigestReason.OVERDUE:
        return f'Do the pending "{action or "action"}" as soon as possible before the contact goes cold.'
    if item.reason == DigestReason.TODAY:
        return f'"{action or "Action"}" is scheduled for today. Prepare and get it done.'
    if contact.status == ContactStatus.NOVO:
        return "Make the first contact quickly. The longer it waits, the lower the odds of converting."
    if contact.status == ContactStatus.CONTATADO:
        return "Contact made. Propose a meeting or send more information to move forward."
    if contact.status == ContactStatus.REUNIAO_MARCADA:
        return "Meeting booked. Prepare a tailored proposal and confirm the time."
    return "A quick follow-up can bring the negotiation back to life."


class DailyDigestPlanner:
    """
    Classifies active contacts into digest reasons and builds drafts.

    One reason per (contact, user); priority stale > overdue > today.
    """

    def __init__(
        self,
        stale_days: Optional[int] = None,
        no_owner_days: Optional[int] = None,
        max_per_user: Optional[int] = None,
    ):
        settings = get_settings()
        self.stale_days = stale_days if stale_days is not None else settings.digest_stale_days
        self.no_owner_days = no_owner_days if no_owner_days is not None else settings.digest_no_owner_days
        self.max_per_user = max_per_user if max_per_user is not None else settings.digest_max_contacts_per_user

    def classify(
        self,
        contacts: Sequence[ContactSnapshot],
        admin_user_ids: Sequence[str],
        recent_keys: Set[str],
        now: dt.datetime,
    ) -> Dict[str, List[DigestItem]]:
        """Group pending contacts by the user who should hear about them."""
        today = now.astimezone(dt.UTC).date()
        pending: Dict[str, List[DigestItem]] = {}

        def add(user_id: str, item: DigestItem) -> None:
            key = user_dedup_key(item.contact.id, user_id, REASON_TYPES[item.reason])
            if key in recent_keys:
                return
            items = pending.setdefault(user_id, [])
            if any(existing.contact.id == item.contact.id for existing in items):
                return
            items.append(item)

        for contact in contacts:
            if contact.status.is_terminal:
                continue

            days_since_update = days_between(contact.updated_at, now)
            owner = contact.assigned_to_user_id
            due = contact.proxima_acao_data.astimezone(dt.UTC).date() if contact.proxima_acao_data else None

            if owner:
                if days_since_update >= self.stale_days:
                    add(owner, DigestItem(contact, DigestReason.STALE, days_since_update))
                if due is not None and due < today:
                    add(owner, DigestItem(contact, DigestReason.OVERDUE, days_since_update))
                if due is not None and due == today:
                    add(owner, DigestItem(contact, DigestReason.TODAY, days_since_update))
            elif days_since_update >= self.no_owner_days:
                for admin_id in admin_user_ids:
                    add(admin_id, DigestItem(contact, DigestReason.NO_OWNER, days_since_update))

        return pending

    def plan(
        self,
        contacts: Sequence[ContactSnapshot],
        admin_user_ids: Sequence[str],
        recent_keys: Set[str],
        organization_id: str,
        now: dt.datetime,
        contact_names: Optional[Mapping[str, str]] = None,
    ) -> List[Notification]:
        """
        Build digest notification drafts for one organization.

        Args:
            contacts: Active contact snapshots
            admin_user_ids: Admins receiving unowned contacts
            recent_keys: "contact_id:user_id:type" keys inside the dedup window
            organization_id: Tenant the drafts belong to
            now: Evaluation time
            contact_names: Optional display names keyed by contact id

        Returns:
            Unpersisted Notification drafts, at most `max_per_user` per user
        """
        names = contact_names or {}
        drafts: List[Notification] = []

        for user_id, items in self.classify(contacts, admin_user_ids, recent_keys, now).items():
            for item in items[: self.max_per_user]:
                drafts.append(self._build_draft(item, user_id, organization_id, names))

        return drafts

    def _build_draft(
        self,
        item: DigestItem,
        user_id: str,
        organization_id: str,
        names: Mapping[str, str],
    ) -> Notification:
        contact = item.contact
        name = names.get(contact.id, "Contact")
        tip = digest_tip(item)
        action = contact.proxima_acao_tipo.value if contact.proxima_acao_tipo else "Action"
        due_date = contact.proxima_acao_data.date().isoformat() if contact.proxima_acao_data else None

        if item.reason == DigestReason.NO_OWNER:
            title = f"No owner: {name}"
            body = f'{name} has been in "{contact.status.value}" for {item.days_since_update} days without an owner.'
            metadata = {"days_stale": item.days_since_update}
        elif item.reason == DigestReason.OVERDUE:
            title = f"Overdue action: {name}"
            body = f'"{action}" with {name} is overdue since {due_date}.'
            metadata = {"action_type": action, "due_date": due_date}
        elif item.reason == DigestReason.TODAY:
            title = f"Action for today: {name}"
            body = f'Today: "{action}" with {name}.'
            metadata = {"action_type": action, "due_date": due_date}
        else:
            title = f"{name} idle for {item.days_since_update} days"
            body = f'{name} has been in "{contact.status.value}" for {item.days_since_update} days.'
            metadata = {"days_stale": item.days_since_update}

        if contact.valor_estimado and item.reason in (DigestReason.STALE, DigestReason.NO_OWNER):
            body += f" Value: {contact.valor_estimado:,.2f}."

        return Notification(
            organization_id=organization_id,
            user_id=user_id,
            type=REASON_TYPES[item.reason],
            title=title,
            body=f"{body}\n\nTip: {tip}",
            contact_id=contact.id,
            metadata={"source": "daily_digest", "reason": item.reason.value, "tip": tip, **metadata},
        )


def plan_daily_digest(
    contacts: Sequence[ContactSnapshot],
    admin_user_ids: Sequence[str],
    recent_keys: Set[str],
    organization_id: str,
    now: dt.datetime,
    contact_names: Optional[Mapping[str, str]] = None,
) -> List[Notification]:
    """Plan digest drafts with the configured thresholds."""
    return DailyDigestPlanner().plan(contacts, admin_user_ids, recent_keys, organization_id, now, contact_names)
