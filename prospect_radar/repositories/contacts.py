"""
Contact Repository
Contact reads scoped by organization.
"""
from typing import Iterable, List, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.contact import Contact, ContactStatus, ACTIVE_STATUSES
from ..utils.observability import logger


class ContactRepository(BaseRepository[Contact]):
    """Repository for the `contacts` collection."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "contacts", Contact)

    async def get_active_contacts(
        self,
        organization_id: str,
        statuses: Iterable[ContactStatus] = ACTIVE_STATUSES
    ) -> List[Contact]:
        """
        Every contact of the organization in one of the given statuses.

        Args:
            organization_id: Tenant to read
            statuses: Pipeline statuses to include (default: all active)

        Returns:
            List of Contact instances, no pagination
        """
        contacts = await self.find_many(
            filter_dict={
                "organization_id": organization_id,
                "status": {"$in": [s.value for s in statuses]},
            },
            limit=None,
        )

        logger.debug(
            f"Loaded {len(contacts)} contacts for analysis",
            extra={"organization_id": organization_id}
        )
        return contacts

    async def get_contact(self, organization_id: str, contact_id: str) -> Optional[Contact]:
        return await self.find_by_id(contact_id, organization_id)

    async def count_for_organization(
        self,
        organization_id: str,
        status: Optional[ContactStatus] = None
    ) -> int:
        """Contacts of the organization, optionally restricted to one status."""
        filter_dict = {"organization_id": organization_id}
        if status is not None:
            filter_dict["status"] = status.value
        return await self.count(filter_dict)
