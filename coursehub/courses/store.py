"""
Record store used by the course system.

Tables are addressed by name and records filtered by field equality.
``modify`` changes array fields of one record in a single atomic write
($push / $addToSet / $pull, any combination) and returns the record as it
was BEFORE the change, so callers can derive the new state without a second
read.
"""

import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from coursehub.courses.errors import DuplicateRecord, StoreUnavailable

logger = logging.getLogger(__name__)


class RecordStore:
    """Interface of the generic record store"""

    async def select(self, table: str, filters: Optional[Dict[str, Any]] = None,
                     sort: Optional[str] = None) -> List[dict]:
        raise NotImplementedError

    async def select_one(self, table: str, filters: Dict[str, Any]) -> Optional[dict]:
        raise NotImplementedError

    async def insert(self, table: str, record: dict) -> dict:
        """Insert a record; raises DuplicateRecord on a unique key clash"""
        raise NotImplementedError

    async def update(self, table: str, filters: Dict[str, Any], patch: dict) -> int:
        raise NotImplementedError

    async def delete(self, table: str, filters: Dict[str, Any]) -> int:
        raise NotImplementedError

    async def modify(self, table: str, filters: Dict[str, Any],
                     push: Optional[Dict[str, Any]] = None,
                     add_to_set: Optional[Dict[str, Any]] = None,
                     pull: Optional[Dict[str, Any]] = None) -> Optional[dict]:
        raise NotImplementedError

    async def add_to_set(self, table, filters, field, value):
        return await self.modify(table, filters, add_to_set={field: value})

    async def pull(self, table, filters, field, value):
        return await self.modify(table, filters, pull={field: value})

    async def push(self, table, filters, field, value):
        return await self.modify(table, filters, push={field: value})


class MongoRecordStore(RecordStore):
    """RecordStore over a Motor database; one collection per table"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def select(self, table, filters=None, sort=None):
        try:
            cursor = self.db[table].find(filters or {}, {"_id": 0})
            if sort:
                cursor = cursor.sort(sort, ASCENDING)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error("select on %s failed: %s", table, e)
            raise StoreUnavailable(f"Failed to read {table}") from e

    async def select_one(self, table, filters):
        try:
            return await self.db[table].find_one(filters, {"_id": 0})
        except PyMongoError as e:
            logger.error("select_one on %s failed: %s", table, e)
            raise StoreUnavailable(f"Failed to read {table}") from e

    async def insert(self, table, record):
        try:
            await self.db[table].insert_one(dict(record))
        except DuplicateKeyError as e:
            raise DuplicateRecord(f"Record already exists in {table}") from e
        except PyMongoError as e:
            logger.error("insert into %s failed: %s", table, e)
            raise StoreUnavailable(f"Failed to write {table}") from e
        return record

    async def update(self, table, filters, patch):
        try:
            result = await self.db[table].update_many(filters, {"$set": patch})
        except PyMongoError as e:
            logger.error("update on %s failed: %s", table, e)
            raise StoreUnavailable(f"Failed to write {table}") from e
        return result.modified_count

    async def delete(self, table, filters):
        try:
            result = await self.db[table].delete_many(filters)
        except PyMongoError as e:
            logger.error("delete on %s failed: %s", table, e)
            raise StoreUnavailable(f"Failed to write {table}") from e
        return result.deleted_count

    async def modify(self, table, filters, push=None, add_to_set=None, pull=None):
        changes = {}
        if push:
            changes["$push"] = push
        if add_to_set:
            changes["$addToSet"] = add_to_set
        if pull:
            changes["$pull"] = pull
        try:
            return await self.db[table].find_one_and_update(
                filters,
                changes,
                projection={"_id": 0},
                return_document=ReturnDocument.BEFORE,
            )
        except PyMongoError as e:
            logger.error("modify on %s (%s) failed: %s", table, ", ".join(changes), e)
            raise StoreUnavailable(f"Failed to write {table}") from e


# ==================== DATABASE INDEXES ====================

async def create_course_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes for the course system tables"""
    await db.courses.create_index("course_id", unique=True)
    await db.course_modules.create_index([("course_id", 1), ("created_at", 1)])
    await db.course_lessons.create_index([("module_id", 1), ("created_at", 1)])
    await db.course_lessons.create_index("lesson_id", unique=True)

    await db.enrollments.create_index("enrollment_id", unique=True)
    await db.enrollments.create_index([("user_id", 1), ("course_id", 1)], unique=True)

    await db.coupons.create_index("code", unique=True)
    await db.course_completions.create_index([("user_id", 1), ("course_id", 1)])

    logger.info("Course system indexes created")
