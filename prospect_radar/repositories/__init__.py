"""
Repositories Layer
Collaborator reads and writes backing the analysis service.
"""
from .connection import db_manager, get_database, DatabaseManager
from .base import BaseRepository
from .contacts import ContactRepository
from .interactions import InteractionRepository
from .notifications import NotificationRepository
from .profiles import ProfileRepository

__all__ = [
    "db_manager",
    "get_database",
    "DatabaseManager",
    "BaseRepository",
    "ContactRepository",
    "InteractionRepository",
    "NotificationRepository",
    "ProfileRepository",
]
