"""
Progress engine: lesson completion, quiz scoring and course performance.

Enrollment records live in the ``enrollments`` table keyed by
(user_id, course_id):

    completed_lesson_ids  array used as a set
    quiz_attempts         append-only list of {lesson_id, score, passed, timestamp}

Completion is written per lesson ($addToSet / $pull) so writes for different
lessons never overwrite each other. Quiz attempts are appended with $push, in
the same write that marks the lesson complete when the quiz is passed.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set

from coursehub.courses.catalog import CourseCatalog
from coursehub.courses.completion import (
    CompletionTrigger,
    course_lesson_ids,
)
from coursehub.courses.config import QUIZ_PASS_THRESHOLD
from coursehub.courses.errors import EnrollmentNotFound, InvalidSubmission, LessonNotFound
from coursehub.courses.models import (
    Course,
    CourseProgress,
    ProgressUpdate,
    Quiz,
    QuizAttempt,
    QuizResult,
    QuizScore,
)
from coursehub.courses.store import RecordStore

logger = logging.getLogger(__name__)

ENROLLMENTS = "enrollments"

# ==================== PURE CALCULATIONS ====================

def count_lessons(course: Course) -> int:
    return sum(len(module.lessons) for module in course.modules)


def completion_percentage(course: Course, completed: Iterable[str]) -> float:
    """
    Percentage of the course's lessons in ``completed``.

    Ids of lessons no longer in the course are not counted, so the result
    stays within 0-100. Not rounded.
    """
    total = count_lessons(course)
    if total == 0:
        return 0.0
    done = course_lesson_ids(course) & set(completed)
    return 100 * len(done) / total


def score_quiz(quiz: Quiz, answers: Dict[str, int], pass_threshold: float) -> QuizScore:
    """
    Score answers against the quiz key.

    Unknown question ids are ignored; unanswered questions count as wrong.
    """
    correct_answers = {q.question_id: q.correct_option_index for q in quiz.questions}
    matches = sum(
        1 for question_id, correct in correct_answers.items()
        if answers.get(question_id) == correct
    )
    score = 100 * matches / len(quiz.questions)
    return QuizScore(
        score=score,
        passed=score >= pass_threshold,
        correct_answers=correct_answers,
    )


def average_score(attempts: List[dict]) -> float:
    if not attempts:
        return 0.0
    return sum(a["score"] for a in attempts) / len(attempts)


def _completed_ids(enrollment: dict) -> Set[str]:
    return {i for i in enrollment.get("completed_lesson_ids") or [] if isinstance(i, str)}

# ==================== ENGINE ====================

class ProgressEngine:
    def __init__(
        self,
        store: RecordStore,
        catalog: Optional[CourseCatalog] = None,
        trigger: Optional[CompletionTrigger] = None,
        pass_threshold: float = QUIZ_PASS_THRESHOLD,
    ):
        self.store = store
        self.catalog = catalog or CourseCatalog(store)
        self.trigger = trigger or CompletionTrigger()
        self.pass_threshold = pass_threshold

    @staticmethod
    def _key(user_id: str, course_id: str) -> dict:
        return {"user_id": user_id, "course_id": course_id}

    async def _get_enrollment(self, user_id: str, course_id: str) -> dict:
        enrollment = await self.store.select_one(ENROLLMENTS, self._key(user_id, course_id))
        if not enrollment:
            raise EnrollmentNotFound(user_id, course_id)
        return enrollment

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_progress(self, user_id: str, course_id: str) -> Set[str]:
        """Completed lesson ids for the enrollment"""
        return _completed_ids(await self._get_enrollment(user_id, course_id))

    async def get_average_performance(self, user_id: str, course_id: str) -> float:
        """Mean score over every quiz attempt of the enrollment; 0 with none"""
        enrollment = await self._get_enrollment(user_id, course_id)
        return average_score(enrollment.get("quiz_attempts") or [])

    async def get_completion_percentage(self, user_id: str, course_id: str) -> float:
        course = await self.catalog.get_course(course_id)
        return completion_percentage(course, await self.get_progress(user_id, course_id))

    async def get_course_progress(self, user_id: str, course_id: str) -> CourseProgress:
        course = await self.catalog.get_course(course_id)
        enrollment = await self._get_enrollment(user_id, course_id)
        completed = _completed_ids(enrollment)
        attempts = enrollment.get("quiz_attempts") or []
        return CourseProgress(
            course_id=course_id,
            course_title=course.title,
            total_lessons=count_lessons(course),
            completed_lesson_ids=completed,
            progress=completion_percentage(course, completed),
            average_performance=average_score(attempts),
            quiz_attempts=[QuizAttempt(**a) for a in attempts],
        )

    # -------------------------------------------------------------------------
    # Completion writes
    # -------------------------------------------------------------------------

    def _require_lesson(self, course: Course, lesson_id: str):
        lesson = self.catalog.get_lesson(course, lesson_id)
        if lesson is None:
            raise LessonNotFound(lesson_id, course.course_id)
        return lesson

    async def _progress_update(
        self, course: Course, user_id: str, before: Set[str], after: Set[str]
    ) -> ProgressUpdate:
        event = await self.trigger.evaluate(
            course, user_id, before, after,
            lambda: self.get_average_performance(user_id, course.course_id),
        )
        return ProgressUpdate(
            course_id=course.course_id,
            completed_lesson_ids=after,
            progress=completion_percentage(course, after),
            course_completed=event,
        )

    async def _set_lesson_complete(
        self, course: Course, user_id: str, lesson_id: str, completed: bool
    ) -> ProgressUpdate:
        key = self._key(user_id, course.course_id)
        if completed:
            previous = await self.store.add_to_set(ENROLLMENTS, key, "completed_lesson_ids", lesson_id)
        else:
            previous = await self.store.pull(ENROLLMENTS, key, "completed_lesson_ids", lesson_id)
        if previous is None:
            raise EnrollmentNotFound(user_id, course.course_id)

        before = _completed_ids(previous)
        after = before | {lesson_id} if completed else before - {lesson_id}
        return await self._progress_update(course, user_id, before, after)

    async def set_lesson_complete(
        self, user_id: str, course_id: str, lesson_id: str, completed: bool
    ) -> ProgressUpdate:
        """
        Set a lesson's completion to the desired value.

        Idempotent, so safe to retry after a failed request. Only lessons of
        the course are accepted.
        """
        course = await self.catalog.get_course(course_id)
        self._require_lesson(course, lesson_id)
        return await self._set_lesson_complete(course, user_id, lesson_id, completed)

    async def toggle_lesson_completion(
        self, user_id: str, course_id: str, lesson_id: str
    ) -> ProgressUpdate:
        """
        Flip a lesson's completion.

        Not safe to blindly resend: a retried toggle undoes the first one.
        """
        course = await self.catalog.get_course(course_id)
        self._require_lesson(course, lesson_id)
        current = await self.get_progress(user_id, course_id)
        return await self._set_lesson_complete(
            course, user_id, lesson_id, lesson_id not in current
        )

    async def prune_stale_lessons(self, user_id: str, course_id: str) -> Set[str]:
        """Drop completed ids of lessons that are no longer part of the course"""
        course = await self.catalog.get_course(course_id)
        completed = await self.get_progress(user_id, course_id)
        stale = completed - course_lesson_ids(course)
        for lesson_id in stale:
            await self.store.pull(
                ENROLLMENTS, self._key(user_id, course_id), "completed_lesson_ids", lesson_id
            )
        if stale:
            logger.info("Pruned %d stale lessons for %s in %s", len(stale), user_id, course_id)
        return completed - stale

    # -------------------------------------------------------------------------
    # Quizzes
    # -------------------------------------------------------------------------

    async def submit_quiz(
        self, user_id: str, course_id: str, lesson_id: str, answers: Dict[str, int]
    ) -> QuizResult:
        """
        Score a quiz submission and record the attempt.

        Every call appends a new attempt. A passing score marks the lesson
        complete in the same write as the attempt; a failing one never
        un-completes it.
        """
        course = await self.catalog.get_course(course_id)
        lesson = self.catalog.get_lesson(course, lesson_id)
        if lesson is None:
            raise InvalidSubmission(f"Lesson {lesson_id} is not part of course {course_id}")
        if lesson.quiz is None or not lesson.quiz.questions:
            raise InvalidSubmission(f"Lesson {lesson_id} has no quiz")

        result = score_quiz(lesson.quiz, answers, self.pass_threshold)
        attempt = QuizAttempt(
            lesson_id=lesson_id,
            score=result.score,
            passed=result.passed,
            timestamp=datetime.utcnow(),
        )
        previous = await self.store.modify(
            ENROLLMENTS,
            self._key(user_id, course_id),
            push={"quiz_attempts": attempt.dict()},
            add_to_set={"completed_lesson_ids": lesson_id} if result.passed else None,
        )
        if previous is None:
            raise EnrollmentNotFound(user_id, course_id)

        logger.info(
            "Quiz attempt by %s on %s: %.1f (%s)",
            user_id, lesson_id, result.score, "passed" if result.passed else "failed",
        )

        before = _completed_ids(previous)
        update = None
        if result.passed and lesson_id not in before:
            update = await self._progress_update(course, user_id, before, before | {lesson_id})

        return QuizResult(
            **result.dict(),
            lesson_completed=update is not None,
            course_completed=update.course_completed if update else None,
        )
