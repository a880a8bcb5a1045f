import datetime as dt
from enum import StrEnum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from prospect_radar.models.contact import NextActionType


class RiskRule(StrEnum):
    STALE_DEAL = "STALE_DEAL"
    TASK_OVERDUE = "TASK_OVERDUE"
    NO_OWNER = "NO_OWNER"
    NO_NEXT_ACTION = "NO_NEXT_ACTION"
    NEVER_CONTACTED = "NEVER_CONTACTED"
    COOLING_DOWN = "COOLING_DOWN"
    HIGH_VALUE_AT_RISK = "HIGH_VALUE_AT_RISK"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}[self]


class RiskAlert(BaseModel):
    """A single rule hit for one contact. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    contact_id: str
    rule: RiskRule
    level: RiskLevel
    title: str
    description: str
    days_stale: Optional[int] = Field(default=None, ge=0)
    value: Optional[float] = None


class NextActionSuggestion(BaseModel):
    """The one recommended move for a contact."""
    model_config = ConfigDict(frozen=True)

    contact_id: str
    action_type: NextActionType
    reasoning: str
    priority: RiskLevel = RiskLevel.MEDIUM
    due_by: Optional[dt.datetime] = None
