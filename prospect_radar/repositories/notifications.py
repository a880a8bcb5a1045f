"""
Notification Repository
Dedup-window lookups and bulk insert of planned drafts.
"""
from typing import Iterable, List, Optional, Set
from motor.motor_asyncio import AsyncIOMotorDatabase
import datetime as dt

from .base import BaseRepository
from ..models.notification import Notification, NotificationType
from ..utils.observability import logger


class NotificationRepository(BaseRepository[Notification]):
    """Repository for the `notifications` collection."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "notifications", Notification)

    async def _recent_documents(
        self,
        organization_id: str,
        since: dt.datetime,
        types: Optional[Iterable[NotificationType]],
        fields: List[str],
    ) -> List[dict]:
        filter_dict = {"organization_id": organization_id, "created_at": {"$gte": since}}
        if types is not None:
            filter_dict["type"] = {"$in": [t.value for t in types]}

        cursor = self.collection.find(filter_dict, {name: 1 for name in fields})
        return await cursor.to_list(length=None)

    async def get_recent_keys(
        self,
        organization_id: str,
        since: dt.datetime,
        types: Optional[Iterable[NotificationType]] = None
    ) -> Set[str]:
        """
        "contact_id:type" keys of notifications created at or after `since`.

        Args:
            organization_id: Tenant to read
            since: Start of the dedup window
            types: Restrict to these notification types (default: all)
        """
        docs = await self._recent_documents(organization_id, since, types, ["contact_id", "type"])
        return {f"{d.get('contact_id')}:{d.get('type')}" for d in docs}

    async def get_recent_user_keys(
        self,
        organization_id: str,
        since: dt.datetime,
        types: Optional[Iterable[NotificationType]] = None
    ) -> Set[str]:
        """Per-recipient keys "contact_id:user_id:type" used by the daily digest."""
        docs = await self._recent_documents(
            organization_id, since, types, ["contact_id", "user_id", "type"]
        )
        return {f"{d.get('contact_id')}:{d.get('user_id')}:{d.get('type')}" for d in docs}

    async def insert_drafts(self, drafts: List[Notification]) -> List[Notification]:
        """Persist planned drafts in one bulk write."""
        if not drafts:
            logger.debug("No notification drafts to persist")
            return []

        persisted = await self.bulk_create(drafts)

        logger.info(
            f"Persisted {len(persisted)} notifications",
            extra={"notification_count": len(persisted)}
        )
        return persisted
