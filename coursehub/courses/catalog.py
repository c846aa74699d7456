"""
Read-only course catalog: course -> modules -> lessons -> optional quiz.

Modules and lessons are ordered by creation time.
"""

from typing import List, Optional

from coursehub.courses.errors import CourseNotFound
from coursehub.courses.models import Course, Lesson, Module
from coursehub.courses.store import RecordStore


def to_lesson(record: dict) -> Lesson:
    return Lesson(
        lesson_id=record["lesson_id"],
        title=record["title"],
        content=record.get("content") or "",
        video_url=record.get("video_url"),
        attachments=record.get("attachments") or [],
        quiz=record.get("quiz"),
    )


def to_module(record: dict, lessons: List[dict]) -> Module:
    return Module(
        module_id=record["module_id"],
        title=record["title"],
        lessons=[to_lesson(l) for l in lessons],
    )


def to_course(record: dict, modules: List[Module]) -> Course:
    return Course(
        course_id=record["course_id"],
        title=record["title"],
        description=record.get("description") or "",
        price=record.get("price") or 0.0,
        image_url=record.get("image_url"),
        modules=modules,
    )


def strip_answer_key(course: Course) -> dict:
    """Course as a student sees it: quiz questions without the correct index"""
    data = course.dict()
    for module in data["modules"]:
        for lesson in module["lessons"]:
            if lesson.get("quiz"):
                for question in lesson["quiz"]["questions"]:
                    question.pop("correct_option_index", None)
    return data


class CourseCatalog:
    def __init__(self, store: RecordStore):
        self.store = store

    async def _load_modules(self, course_id: str) -> List[Module]:
        modules = await self.store.select(
            "course_modules", {"course_id": course_id}, sort="created_at"
        )
        result = []
        for module in modules:
            lessons = await self.store.select(
                "course_lessons", {"module_id": module["module_id"]}, sort="created_at"
            )
            result.append(to_module(module, lessons))
        return result

    async def find_course(self, course_id: str) -> Optional[Course]:
        record = await self.store.select_one("courses", {"course_id": course_id})
        if not record:
            return None
        return to_course(record, await self._load_modules(course_id))

    async def get_course(self, course_id: str) -> Course:
        course = await self.find_course(course_id)
        if course is None:
            raise CourseNotFound(course_id)
        return course

    async def list_courses(self) -> List[Course]:
        records = await self.store.select("courses", sort="created_at")
        return [
            to_course(r, await self._load_modules(r["course_id"]))
            for r in records
        ]

    @staticmethod
    def get_lesson(course: Course, lesson_id: str) -> Optional[Lesson]:
        for module in course.modules:
            for lesson in module.lessons:
                if lesson.lesson_id == lesson_id:
                    return lesson
        return None
