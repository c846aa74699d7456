"""
Student enrollment, progress and quiz endpoints.

All routes act on the calling student's own enrollment.
"""

from fastapi import APIRouter, Depends

from coursehub.courses.dependencies import get_current_user_id, get_progress_engine, get_store
from coursehub.courses.enrollments import enroll_student, get_student_courses_with_progress
from coursehub.courses.models import (
    CourseProgress,
    EnrollmentCreate,
    LessonCompletionSet,
    ProgressUpdate,
    QuizResult,
    QuizSubmission,
)
from coursehub.courses.progress import ProgressEngine
from coursehub.courses.store import RecordStore

router = APIRouter(tags=["Enrollments"])


# ==================== ENROLLMENT ENDPOINTS ====================

@router.post("/enroll")
async def enroll_endpoint(
    enrollment: EnrollmentCreate,
    store: RecordStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Enroll in course"""
    record = await enroll_student(store, user_id, enrollment.course_id)
    return {
        "success": True,
        "enrollment_id": record.enrollment_id,
        "course_id": record.course_id,
    }


@router.get("/my-courses")
async def get_my_courses(
    store: RecordStore = Depends(get_store),
    user_id: str = Depends(get_current_user_id)
):
    """Get all enrolled courses for user, with progress"""
    courses = await get_student_courses_with_progress(store, user_id)
    return {
        "enrollments": courses,
        "count": len(courses)
    }


# ==================== PROGRESS ENDPOINTS ====================

@router.get("/course/{course_id}/progress", response_model=CourseProgress)
async def get_course_progress(
    course_id: str,
    engine: ProgressEngine = Depends(get_progress_engine),
    user_id: str = Depends(get_current_user_id)
):
    """Get progress in specific course"""
    return await engine.get_course_progress(user_id, course_id)


@router.put("/course/{course_id}/lessons/{lesson_id}/completion", response_model=ProgressUpdate)
async def set_lesson_completion(
    course_id: str,
    lesson_id: str,
    body: LessonCompletionSet,
    engine: ProgressEngine = Depends(get_progress_engine),
    user_id: str = Depends(get_current_user_id)
):
    """Mark a lesson complete or incomplete (safe to retry)"""
    return await engine.set_lesson_complete(user_id, course_id, lesson_id, body.completed)


@router.post("/course/{course_id}/lessons/{lesson_id}/toggle", response_model=ProgressUpdate)
async def toggle_lesson_completion(
    course_id: str,
    lesson_id: str,
    engine: ProgressEngine = Depends(get_progress_engine),
    user_id: str = Depends(get_current_user_id)
):
    """Flip a lesson's completion"""
    return await engine.toggle_lesson_completion(user_id, course_id, lesson_id)


@router.post("/course/{course_id}/prune")
async def prune_stale_lessons(
    course_id: str,
    engine: ProgressEngine = Depends(get_progress_engine),
    user_id: str = Depends(get_current_user_id)
):
    """Forget completed lessons that were removed from the course"""
    completed = await engine.prune_stale_lessons(user_id, course_id)
    return {
        "course_id": course_id,
        "completed_lesson_ids": sorted(completed),
    }


# ==================== QUIZ ENDPOINTS ====================

@router.post("/course/{course_id}/lessons/{lesson_id}/quiz", response_model=QuizResult)
async def submit_quiz(
    course_id: str,
    lesson_id: str,
    submission: QuizSubmission,
    engine: ProgressEngine = Depends(get_progress_engine),
    user_id: str = Depends(get_current_user_id)
):
    """Score a quiz and record the attempt"""
    return await engine.submit_quiz(user_id, course_id, lesson_id, submission.answers)


@router.get("/course/{course_id}/performance")
async def get_performance(
    course_id: str,
    engine: ProgressEngine = Depends(get_progress_engine),
    user_id: str = Depends(get_current_user_id)
):
    """Average quiz score in the course"""
    return {
        "course_id": course_id,
        "average_score": await engine.get_average_performance(user_id, course_id),
    }
