"""
MongoDB Connection Management
Singleton Motor client with connection pooling and lifecycle management.
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from typing import Optional
from ..config import get_settings
from ..utils.observability import logger


class DatabaseManager:
    """
    Singleton MongoDB client manager with async Motor.
    Handles connection lifecycle, pooling, and graceful shutdown.
    """

    _instance: Optional["DatabaseManager"] = None
    _client: Optional[AsyncIOMotorClient] = None
    _database: Optional[AsyncIOMotorDatabase] = None

    def __new__(cls) -> "DatabaseManager":
        """Enforce singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    async def connect(self) -> None:
        """
        Initialize MongoDB connection with configured pool settings.
        Idempotent - safe to call multiple times.
        """
        settings = get_settings()

        if self._client:
            try:
                await self._client.admin.command("ping")
                logger.debug("Reusing healthy MongoDB connection")
                return
            except (RuntimeError, PyMongoError):
                logger.warning("Event loop closed or connection lost. Rebuilding client...")
                self._client = None
                self._database = None

        logger.info(
            "Connecting to MongoDB",
            extra={
                "database": settings.mongodb_database,
                "max_pool_size": settings.mongodb_max_pool_size,
                "environment": settings.environment
            }
        )
        self._client = AsyncIOMotorClient(
            settings.mongodb_uri,
            maxPoolSize=settings.mongodb_max_pool_size,
            minPoolSize=settings.mongodb_min_pool_size,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
            tz_aware=True,
        )

        self._database = self._client[settings.mongodb_database]

    async def disconnect(self) -> None:
        """
        Close MongoDB connection and cleanup resources.
        Idempotent - safe to call multiple times.
        """
        if self._client is None:
            logger.debug("MongoDB client already disconnected")
            return

        logger.info("Closing MongoDB connection")
        self._client.close()
        self._client = None
        self._database = None

    @property
    def database(self) -> AsyncIOMotorDatabase:
        """
        Get the database instance.
        Raises RuntimeError if not connected.
        """
        if self._database is None:
            raise RuntimeError(
                "Database not connected. Call await db_manager.connect() first."
            )
        return self._database

    async def create_indexes(self) -> None:
        """
        Create the indexes behind the analysis queries.
        Should be called during application startup.
        """
        db = self.database

        logger.info("Creating MongoDB indexes")

        await db.contacts.create_index(
            [("organization_id", 1), ("status", 1)],
            name="idx_org_status"
        )
        await db.interactions.create_index(
            [("organization_id", 1), ("contact_id", 1), ("happened_at", -1)],
            name="idx_org_contact_happened"
        )
        # Dedup window lookups
        await db.notifications.create_index(
            [("organization_id", 1), ("created_at", -1)],
            name="idx_org_created"
        )
        await db.profiles.create_index(
            [("organization_id", 1), ("role", 1)],
            name="idx_org_role"
        )

        logger.info("MongoDB indexes created successfully")


# Singleton instance
db_manager = DatabaseManager()


async def get_database() -> AsyncIOMotorDatabase:
    """
    Dependency injection helper for repositories.
    Returns the connected database instance.
    """
    return db_manager.database
