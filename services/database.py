from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError
import certifi
from config.settings import Config
import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Any, Set
import asyncio


logger = logging.getLogger(__name__) # Get logger instance

db = None


async def init_mongodb(max_retries=3, retry_delay=2):
    """Initialize MongoDB connection with retry mechanism and health check."""
    global db  # Modify the global db variable

    MONGODB_URI = Config.MONGODB_URI
    if not MONGODB_URI:
        raise ValueError("MONGODB_URI / DATABASE_URL / MONGO_URI environment variable not set!")

    for attempt in range(max_retries):
        try:
            client = AsyncIOMotorClient(
                MONGODB_URI,
                tlsCAFile=certifi.where(),
                serverSelectionTimeoutMS=5000,
                tz_aware=True
            )

            # Test connection
            await client.admin.command('ping')

            database = client[Config.DB_NAME]

            # Uniqueness constraints live in the store, not in the bot
            await asyncio.gather(
                database.users.create_index("telegram_id", unique=True),
                database.days.create_index("day_number", unique=True),
                database.progress.create_index(
                    [("user_id", ASCENDING), ("day_number", ASCENDING)],
                    unique=True
                )
            )

            db = database
            logger.info("MongoDB connection successful")
            return db

        except Exception as e:
            if attempt == max_retries - 1:
                logger.error(f"MongoDB connection error after {max_retries} attempts: {e}")
                raise
            logger.warning(f"Attempt {attempt + 1} failed, retrying in {retry_delay}s...")
            await asyncio.sleep(retry_delay)


async def get_db():
    """Get database instance, initializing if necessary"""
    global db
    if db is None:
        db = await init_mongodb()
    return db


class _Manager:
    def __init__(self, database=None):
        self._db = database

    @property
    def db(self):
        database = self._db if self._db is not None else db
        if database is None:
            raise RuntimeError("Database not initialized; call init_mongodb() first")
        return database


class UserManager(_Manager):
    async def ensure_user(self, user) -> Dict[str, Any]:
        """
        Create the user on first contact, refresh the last seen timestamp otherwise.

        Args:
            user: A telegram.User (or anything with id/username/first_name/language_code)

        Returns:
            The stored user document without its Mongo _id
        """
        now = datetime.now(timezone.utc)
        document = await self.db.users.find_one_and_update(
            {"telegram_id": user.id},
            {
                "$setOnInsert": {
                    "telegram_id": user.id,
                    "username": user.username,
                    "first_name": user.first_name,
                    "language": user.language_code or "de",
                    "activated_at": now,
                    "created_at": now
                },
                "$set": {"updated_at": now}
            },
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        if document:
            document.pop('_id', None)
        return document


class DayManager(_Manager):
    async def get_publish_date(self, day_number: int) -> Optional[datetime]:
        day = await self.db.days.find_one({"day_number": day_number}, {"publish_date": 1})
        if not day:
            return None
        return day.get("publish_date")

    async def upsert_day(self, document: Dict[str, Any]) -> None:
        """Insert or replace the editable copy of a catalog day."""
        document = dict(document)
        document["updated_at"] = datetime.now(timezone.utc)
        await self.db.days.update_one(
            {"day_number": document["day_number"]},
            {
                "$set": document,
                "$setOnInsert": {"created_at": document["updated_at"]}
            },
            upsert=True
        )


class ProgressManager(_Manager):
    async def get_opened_days(self, user_id: int) -> Set[int]:
        cursor = self.db.progress.find({"user_id": user_id}, {"day_number": 1})
        return {record["day_number"] async for record in cursor}

    async def create_record(self, user_id: int, day_number: int) -> bool:
        """
        Record that a user opened a day.

        Returns:
            True if a new record was written, False if one already existed
        """
        try:
            await self.db.progress.insert_one({
                "user_id": user_id,
                "day_number": day_number,
                "opened_at": datetime.now(timezone.utc),
                "completed": False,
                "answers": {}
            })
            logger.info(f"User {user_id} opened day {day_number} for the first time")
            return True
        except DuplicateKeyError:
            logger.info(f"Progress for user {user_id} day {day_number} already exists")
            return False
