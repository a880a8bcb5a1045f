from enum import StrEnum
from typing import Optional
from prospect_radar.models.base import MongoBaseModel


class UserRole(StrEnum):
    ADMIN = "admin"
    SELLER = "vendedor"


class Profile(MongoBaseModel):
    """A user's membership in an organization."""
    user_id: str
    organization_id: str
    name: str
    email: Optional[str] = None
    role: UserRole = UserRole.SELLER
