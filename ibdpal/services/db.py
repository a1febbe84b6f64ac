# async mongodb client for the backend api
# uses motor for non-blocking operations

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from ibdpal.config import settings

logger = logging.getLogger(__name__)


class Database:
    """async mongodb connection manager"""

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self):
        """establish connection to mongodb"""
        if self.client is not None:
            return

        logger.info(f"Connecting to MongoDB database: {settings.MONGODB_DATABASE}")
        self.client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=settings.MONGODB_TIMEOUT_MS,
        )
        self.db = self.client[settings.MONGODB_DATABASE]

        # verify connection
        await self.client.admin.command("ping")
        logger.info("MongoDB connection established")

    async def close(self):
        """close mongodb connection"""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None
            logger.info("MongoDB connection closed")

    # collection accessors

    @property
    def users(self):
        return self.db["users"]

    @property
    def diagnoses(self):
        return self.db["diagnoses"]

    @property
    def journal_entries(self):
        return self.db["journal_entries"]

    @property
    def medication_intakes(self):
        return self.db["medication_intakes"]

    @property
    def medications(self):
        return self.db["medications"]


# singleton instance
db = Database()


async def get_db() -> Database:
    """dependency injection for database access"""
    return db
