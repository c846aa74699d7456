"""
Course completion trigger.

Edge-triggered on "every lesson of the course is complete": fires on the
false -> true transition only, so a course can complete again after a lesson
is un-marked and re-marked.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional, Set

from coursehub.courses.models import Course, CourseCompleted
from coursehub.courses.store import RecordStore

logger = logging.getLogger(__name__)

CompletionListener = Callable[[CourseCompleted], Awaitable[None]]


def course_lesson_ids(course: Course) -> Set[str]:
    return {
        lesson.lesson_id
        for module in course.modules
        for lesson in module.lessons
    }


def is_fully_complete(course: Course, completed: Set[str]) -> bool:
    lesson_ids = course_lesson_ids(course)
    return len(lesson_ids) > 0 and lesson_ids <= set(completed)


class CompletionTrigger:
    def __init__(self, listeners: Optional[List[CompletionListener]] = None):
        self.listeners: List[CompletionListener] = list(listeners or [])

    def subscribe(self, listener: CompletionListener):
        self.listeners.append(listener)

    async def evaluate(
        self,
        course: Course,
        user_id: str,
        before: Set[str],
        after: Set[str],
        performance: Callable[[], Awaitable[float]],
    ) -> Optional[CourseCompleted]:
        """
        Compare completion before and after a write.

        Returns the emitted event, or None when the write did not cross into
        full completion.
        """
        if is_fully_complete(course, before) or not is_fully_complete(course, after):
            return None

        event = CourseCompleted(
            user_id=user_id,
            course_id=course.course_id,
            course_title=course.title,
            performance=await performance(),
            completed_at=datetime.utcnow(),
        )
        logger.info(
            "Course %s completed by %s (performance %.1f)",
            course.course_id, user_id, event.performance,
        )

        for listener in self.listeners:
            try:
                await listener(event)
            except Exception:
                # progress is already persisted; a listener cannot roll it back
                logger.exception("Completion listener %r failed", listener)
        return event


def record_course_completion(store: RecordStore) -> CompletionListener:
    """Listener that keeps a completion history record per transition"""

    async def _record(event: CourseCompleted):
        await store.insert("course_completions", event.dict())

    return _record
