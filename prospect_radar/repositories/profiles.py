"""
Profile Repository
Organization membership lookups.
"""
from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase

from .base import BaseRepository
from ..models.profile import Profile, UserRole


class ProfileRepository(BaseRepository[Profile]):
    """Repository for the `profiles` collection."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "profiles", Profile)

    async def get_admin_user_ids(self, organization_id: str) -> List[str]:
        """User ids of every admin in the organization."""
        admins = await self.find_many(
            filter_dict={"organization_id": organization_id, "role": UserRole.ADMIN.value},
            limit=None,
        )
        return [p.user_id for p in admins]

