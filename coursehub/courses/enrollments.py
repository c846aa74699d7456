import logging
import uuid
from datetime import datetime
from typing import List

from coursehub.courses.catalog import CourseCatalog
from coursehub.courses.errors import CourseNotFound, DuplicateRecord
from coursehub.courses.models import Enrollment
from coursehub.courses.progress import ENROLLMENTS, completion_percentage
from coursehub.courses.store import RecordStore

logger = logging.getLogger(__name__)

# ==================== ENROLLMENT CRUD ====================

async def enroll_student(store: RecordStore, user_id: str, course_id: str) -> Enrollment:
    """
    Enroll user in course; an existing enrollment is returned unchanged.

    Two concurrent requests can both miss the lookup; the unique
    (user_id, course_id) index rejects the second insert and the record that
    won is returned instead.
    """
    course = await store.select_one("courses", {"course_id": course_id})
    if not course:
        raise CourseNotFound(course_id)

    key = {"user_id": user_id, "course_id": course_id}
    existing = await store.select_one(ENROLLMENTS, key)
    if existing:
        return Enrollment(**existing)

    enrollment = Enrollment(
        enrollment_id=f"ENR_{uuid.uuid4().hex[:12].upper()}",
        user_id=user_id,
        course_id=course_id,
        enrolled_at=datetime.utcnow(),
    )
    try:
        await store.insert(ENROLLMENTS, enrollment.dict())
    except DuplicateRecord:
        logger.info("Concurrent enrollment of %s in %s", user_id, course_id)
        return Enrollment(**await store.select_one(ENROLLMENTS, key))

    logger.info("Enrolled %s in %s", user_id, course_id)
    return enrollment


async def get_student_courses_with_progress(store: RecordStore, user_id: str) -> List[dict]:
    """Every course the user is enrolled in, with its completion percentage"""
    catalog = CourseCatalog(store)
    enrollments = await store.select(ENROLLMENTS, {"user_id": user_id, "is_active": True})

    result = []
    for enr in enrollments:
        course = await catalog.find_course(enr["course_id"])
        if course is None:
            continue
        result.append({
            "enrollment_id": enr["enrollment_id"],
            "course": {
                "course_id": course.course_id,
                "title": course.title,
                "description": course.description,
                "image_url": course.image_url,
            },
            "progress": completion_percentage(course, enr.get("completed_lesson_ids") or []),
            "enrolled_at": enr.get("enrolled_at"),
        })
    return result


async def get_progress_overview(store: RecordStore) -> List[dict]:
    """Read-only progress of every student in every course (admin view)"""
    catalog = CourseCatalog(store)
    courses = {}
    overview = []
    for enr in await store.select(ENROLLMENTS):
        course_id = enr["course_id"]
        if course_id not in courses:
            courses[course_id] = await catalog.find_course(course_id)
        course = courses[course_id]
        if course is None:
            continue
        overview.append({
            "user_id": enr["user_id"],
            "course_id": course_id,
            "course_title": course.title,
            "progress": completion_percentage(course, enr.get("completed_lesson_ids") or []),
        })
    return overview
