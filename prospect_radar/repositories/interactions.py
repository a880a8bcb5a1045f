"""
Interaction Repository
Touchpoint history, newest first.
"""
from typing import List, Sequence
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.contact import Interaction


class InteractionRepository(BaseRepository[Interaction]):
    """Repository for the `interactions` collection."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "interactions", Interaction)

    async def get_for_contacts(
        self,
        organization_id: str,
        contact_ids: Sequence[str]
    ) -> List[Interaction]:
        """
        All interactions for the given contacts, ordered by `happened_at` descending.

        Returns:
            Empty list when no contact ids are given
        """
        if not contact_ids:
            return []

        return await self.find_many(
            filter_dict={
                "organization_id": organization_id,
                "contact_id": {"$in": list(contact_ids)},
            },
            limit=None,
            sort=[("happened_at", -1)],
        )

    async def get_recent_for_contact(
        self,
        organization_id: str,
        contact_id: str,
        limit: int = 10
    ) -> List[Interaction]:
        """The latest `limit` interactions of one contact, newest first."""
        return await self.find_many(
            filter_dict={"organization_id": organization_id, "contact_id": contact_id},
            limit=limit,
            sort=[("happened_at", -1)],
        )
