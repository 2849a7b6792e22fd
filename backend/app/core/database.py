"""
MongoDB access for the LMS Video Service.

The service reads two collections of the LMS course catalog through Motor:
- lessons: {course_id, title, is_free, video_url, attachments: [{name, url, type}]}
- enrollments: {user_id, course_id}, one document per enrolled user and course

A single DatabaseClient is created during application startup (init_db) and
closed on shutdown (close_db). Route dependencies obtain the database handle
through get_database().
"""

import asyncio
import logging

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from app.config import Settings


logger = logging.getLogger(__name__)

LESSONS_COLLECTION = "lessons"
ENROLLMENTS_COLLECTION = "enrollments"

MAX_CONNECT_RETRIES = 3
SERVER_SELECTION_TIMEOUT_MS = 5000


class DatabaseClient:
    """
    Motor client bound to the catalog database.

    Example:
        >>> client = DatabaseClient(get_settings())
        >>> await client.connect()
        True
        >>> await client.get_lessons_collection().find_one({"is_free": True})
    """

    def __init__(self, settings: Settings) -> None:
        self._uri = settings.mongodb_uri
        self._db_name = settings.mongodb_db_name
        self._pool_size = (settings.mongodb_min_pool_size, settings.mongodb_max_pool_size)
        self._client: AsyncIOMotorClient | None = None
        self._database: AsyncIOMotorDatabase | None = None

    async def connect(self) -> bool:
        """
        Open the connection pool and confirm it with a ping.

        Retries up to MAX_CONNECT_RETRIES times, doubling the delay after each
        failure (1s, 2s).

        Returns:
            True once connected, False if every attempt failed
        """
        delay = 1.0
        min_pool, max_pool = self._pool_size

        for attempt in range(1, MAX_CONNECT_RETRIES + 1):
            logger.info(f"Connecting to MongoDB '{self._db_name}' ({attempt}/{MAX_CONNECT_RETRIES})")
            try:
                self._client = AsyncIOMotorClient(
                    self._uri,
                    minPoolSize=min_pool,
                    maxPoolSize=max_pool,
                    serverSelectionTimeoutMS=SERVER_SELECTION_TIMEOUT_MS,
                )
                await self._client.admin.command("ping")
                self._database = self._client[self._db_name]
                logger.info(f"Connected to MongoDB '{self._db_name}' (pool {min_pool}-{max_pool})")
                return True
            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                logger.warning(f"MongoDB not reachable on attempt {attempt}: {e}")

            if attempt < MAX_CONNECT_RETRIES:
                await asyncio.sleep(delay)
                delay *= 2

        logger.error(f"Giving up on MongoDB after {MAX_CONNECT_RETRIES} attempts")
        return False

    async def close(self) -> None:
        """Close the pool; a no-op when not connected."""
        if self._client is None:
            return

        self._client.close()
        self._client = None
        self._database = None
        logger.info(f"Closed MongoDB connection to '{self._db_name}'")

    async def ping(self) -> bool:
        """Return True if the server answers a ping."""
        if self._client is None:
            return False

        try:
            await self._client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False
        return True

    def get_database(self) -> AsyncIOMotorDatabase:
        """
        Return the catalog database handle.

        Raises:
            RuntimeError: If connect() has not succeeded
        """
        if self._database is None:
            raise RuntimeError(f"MongoDB database '{self._db_name}' is not connected")
        return self._database

    def get_lessons_collection(self) -> AsyncIOMotorCollection:
        return self.get_database()[LESSONS_COLLECTION]

    def get_enrollments_collection(self) -> AsyncIOMotorCollection:
        return self.get_database()[ENROLLMENTS_COLLECTION]

    async def create_indexes(self) -> None:
        """
        Ensure indexes backing the lesson and enrollment lookups.

        - lessons.course_id
        - enrollments (user_id, course_id), unique
        """
        await self.get_lessons_collection().create_index("course_id")
        await self.get_enrollments_collection().create_index(
            [("user_id", 1), ("course_id", 1)], unique=True
        )
        logger.info("MongoDB indexes ensured for lessons and enrollments")


# =============================================================================
# Process-wide client
# =============================================================================


class _DatabaseClientContainer:
    """Holds the process-wide DatabaseClient."""

    client: DatabaseClient | None = None


_container = _DatabaseClientContainer()


async def init_db(settings: Settings | None = None) -> DatabaseClient:
    """
    Connect the process-wide client and ensure indexes.

    Raises:
        RuntimeError: If MongoDB is unreachable after all retries
    """
    if _container.client is not None:
        return _container.client

    client = DatabaseClient(settings or Settings())
    if not await client.connect():
        raise RuntimeError("Could not connect to MongoDB; check MONGODB_URI")

    await client.create_indexes()
    _container.client = client
    return client


async def close_db() -> None:
    """Close and forget the process-wide client."""
    if _container.client is None:
        return

    await _container.client.close()
    _container.client = None


def get_db_client() -> DatabaseClient:
    """
    Return the process-wide client.

    Raises:
        RuntimeError: If init_db() has not completed
    """
    if _container.client is None:
        raise RuntimeError("Database client not initialized; init_db() runs at startup")
    return _container.client


def get_database() -> AsyncIOMotorDatabase:
    """Return the catalog database of the process-wide client."""
    return get_db_client().get_database()
