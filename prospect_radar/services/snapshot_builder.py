"""
Contact Snapshot Builder
Assembles the engine's immutable ContactSnapshot from stored records.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence
from prospect_radar.config import get_settings
from prospect_radar.models.contact import Contact, ContactSnapshot, Interaction, InteractionSummary


def summarize_interaction(interaction: Interaction) -> InteractionSummary:
    return InteractionSummary(
        type=interaction.type,
        outcome=interaction.outcome,
        happened_at=interaction.happened_at,
        created_at=interaction.created_at,
    )


def build_snapshot(
    contact: Contact,
    interactions: Iterable[Interaction],
    window: Optional[int] = None,
) -> ContactSnapshot:
    """
    Build a snapshot for one contact.

    Interactions are sorted most-recent-first here, so the engine can
    rely on the order without re-sorting.

    Args:
        contact: Stored contact record (must have an id)
        interactions: That contact's interactions, any order
        window: How many interactions to keep (default from settings)

    Returns:
        Frozen ContactSnapshot
    """
    if not contact.id:
        raise ValueError("Cannot build a snapshot for a contact without an id")

    window = window if window is not None else get_settings().interaction_window_size
    ordered = sorted(interactions, key=lambda i: i.happened_at, reverse=True)[:window]

    return ContactSnapshot(
        id=contact.id,
        status=contact.status,
        temperatura=contact.temperatura,
        origem=contact.origem,
        proxima_acao_tipo=contact.proxima_acao_tipo,
        proxima_acao_data=contact.proxima_acao_data,
        valor_estimado=contact.valor_estimado,
        assigned_to_user_id=contact.assigned_to_user_id,
        created_at=contact.created_at,
        updated_at=contact.updated_at,
        interactions=tuple(summarize_interaction(i) for i in ordered),
    )


def build_snapshots(
    contacts: Sequence[Contact],
    interactions: Iterable[Interaction],
    window: Optional[int] = None,
) -> List[ContactSnapshot]:
    """Group interactions by contact and build one snapshot per contact, in input order."""
    by_contact: Dict[str, List[Interaction]] = defaultdict(list)
    for interaction in interactions:
        by_contact[interaction.contact_id].append(interaction)

    return [build_snapshot(c, by_contact.get(c.id, []), window) for c in contacts]
