from enum import StrEnum
from typing import Any, Dict, Optional
from pydantic import Field
from prospect_radar.models.base import MongoBaseModel


class NotificationType(StrEnum):
    RISK_ALERT = "RISK_ALERT"
    NEXT_ACTION = "NEXT_ACTION"
    STALE_DEAL = "STALE_DEAL"
    TASK_OVERDUE = "TASK_OVERDUE"
    NO_OWNER = "NO_OWNER"


class Notification(MongoBaseModel):
    """
    In-app notification for one user.
    Drafts are built by the planners and persisted by the caller.
    """
    organization_id: str
    user_id: str
    type: NotificationType
    title: str
    body: str
    contact_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    dismissed: bool = False

    @property
    def dedup_key(self) -> str:
        return f"{self.contact_id}:{self.type.value}"
