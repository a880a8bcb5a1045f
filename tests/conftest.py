import pytest
import datetime as dt
from prospect_radar.models.contact import (
    ContactSnapshot,
    ContactStatus,
    InteractionOutcome,
    InteractionSummary,
    InteractionType,
)

NOW = dt.datetime(2024, 6, 15, 12, 0, tzinfo=dt.UTC)


@pytest.fixture
def now():
    """Fixed evaluation time shared by the engine tests."""
    return NOW


@pytest.fixture
def make_interaction():
    """Factory for an interaction summary `days_ago` days before NOW."""
    def _make(
        days_ago: float = 1,
        type: InteractionType = InteractionType.LIGACAO,
        outcome: InteractionOutcome = InteractionOutcome.RESPONDEU,
    ) -> InteractionSummary:
        happened_at = NOW - dt.timedelta(days=days_ago)
        return InteractionSummary(type=type, outcome=outcome, happened_at=happened_at, created_at=happened_at)
    return _make


@pytest.fixture
def make_snapshot():
    """
    Factory for a contact snapshot.
    Defaults to an owned, freshly updated EM_PROSPECCAO contact with a next action tomorrow.
    """
    def _make(**overrides) -> ContactSnapshot:
        fields = {
            "id": "c1",
            "status": ContactStatus.EM_PROSPECCAO,
            "assigned_to_user_id": "u1",
            "proxima_acao_tipo": None,
            "proxima_acao_data": NOW + dt.timedelta(days=1),
            "created_at": NOW - dt.timedelta(days=30),
            "updated_at": NOW,
            "interactions": (),
        }
        fields.update(overrides)
        return ContactSnapshot(**fields)
    return _make
