from fastapi import Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from coursehub.courses.auth import TokenClaims, verify_token
from coursehub.courses.catalog import CourseCatalog
from coursehub.courses.completion import CompletionTrigger, record_course_completion
from coursehub.courses.config import ADMIN_ROLE, QUIZ_PASS_THRESHOLD
from coursehub.courses.progress import ProgressEngine
from coursehub.courses.store import MongoRecordStore, RecordStore


def get_db_instance():
    """Get database from main module"""
    from coursehub.main import db
    return db

# ==================== DEPENDENCY FUNCTIONS ====================

async def get_db() -> AsyncIOMotorDatabase:
    """Database dependency"""
    return get_db_instance()

async def get_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> RecordStore:
    return MongoRecordStore(db)

async def get_catalog(store: RecordStore = Depends(get_store)) -> CourseCatalog:
    return CourseCatalog(store)

async def get_progress_engine(store: RecordStore = Depends(get_store)) -> ProgressEngine:
    trigger = CompletionTrigger([record_course_completion(store)])
    return ProgressEngine(store, CourseCatalog(store), trigger, QUIZ_PASS_THRESHOLD)

async def get_current_user_id(claims: TokenClaims = Depends(verify_token)) -> str:
    """The authenticated student's id (the token subject)"""
    return claims.user_id

async def require_admin(claims: TokenClaims = Depends(verify_token)) -> str:
    """Only administrators may read cross-student views"""
    if claims.role != ADMIN_ROLE:
        raise HTTPException(status_code=403, detail="Admin access required")
    return claims.user_id
