"""Collaborator-facing helpers."""
from prospect_radar.services.snapshot_builder import build_snapshot, build_snapshots

__all__ = [
    "build_snapshot",
    "build_snapshots",
]
