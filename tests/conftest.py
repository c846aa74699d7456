import asyncio
import copy
from datetime import datetime, timedelta

import pytest

from coursehub.courses.errors import DuplicateRecord, StoreUnavailable
from coursehub.courses.store import RecordStore

UNIQUE_KEYS = {
    "courses": ("course_id",),
    "enrollments": ("user_id", "course_id"),
    "coupons": ("code",),
}


class InMemoryRecordStore(RecordStore):
    """
    RecordStore kept in dicts.

    Set ``fail`` to simulate a backend outage, or add method names to
    ``fail_on`` to make only those calls fail.
    """

    def __init__(self):
        self.tables = {}
        self.fail = False
        self.fail_on = set()

    def _rows(self, table, op=None):
        if self.fail or op in self.fail_on:
            raise StoreUnavailable(f"{table} unavailable")
        return self.tables.setdefault(table, [])

    @staticmethod
    def _matches(record, filters):
        return all(record.get(k) == v for k, v in (filters or {}).items())

    async def select(self, table, filters=None, sort=None):
        rows = [copy.deepcopy(r) for r in self._rows(table, "select") if self._matches(r, filters)]
        if sort:
            rows.sort(key=lambda r: r.get(sort))
        return rows

    async def select_one(self, table, filters):
        for r in self._rows(table, "select_one"):
            if self._matches(r, filters):
                return copy.deepcopy(r)
        return None

    async def insert(self, table, record):
        rows = self._rows(table, "insert")
        key = UNIQUE_KEYS.get(table)
        if key and any(self._matches(r, {k: record.get(k) for k in key}) for r in rows):
            raise DuplicateRecord(f"Record already exists in {table}")
        rows.append(copy.deepcopy(record))
        return record

    async def update(self, table, filters, patch):
        count = 0
        for r in self._rows(table, "update"):
            if self._matches(r, filters):
                r.update(copy.deepcopy(patch))
                count += 1
        return count

    async def delete(self, table, filters):
        rows = self._rows(table, "delete")
        keep = [r for r in rows if not self._matches(r, filters)]
        self.tables[table] = keep
        return len(rows) - len(keep)

    async def modify(self, table, filters, push=None, add_to_set=None, pull=None):
        for r in self._rows(table, "modify"):
            if not self._matches(r, filters):
                continue
            before = copy.deepcopy(r)
            for field, value in (push or {}).items():
                r[field] = list(r.get(field) or []) + [copy.deepcopy(value)]
            for field, value in (add_to_set or {}).items():
                items = list(r.get(field) or [])
                r[field] = items if value in items else items + [value]
            for field, value in (pull or {}).items():
                r[field] = [i for i in r.get(field) or [] if i != value]
            return before
        return None


def run(coro):
    return asyncio.run(coro)


QUIZ = {
    "questions": [
        {"question_id": "q1", "text": "Q1", "options": ["a", "b", "c"], "correct_option_index": 0},
        {"question_id": "q2", "text": "Q2", "options": ["a", "b", "c"], "correct_option_index": 1},
        {"question_id": "q3", "text": "Q3", "options": ["a", "b", "c"], "correct_option_index": 2},
        {"question_id": "q4", "text": "Q4", "options": ["a", "b"], "correct_option_index": 0},
    ]
}


def seed_course(store: InMemoryRecordStore, course_id: str = "C1"):
    """
    Course with module A (L1, L2) and module B (L3).

    L1 carries a four-question quiz with key [0, 1, 2, 0].
    """
    t0 = datetime(2024, 1, 1)
    store.tables.setdefault("courses", []).append({
        "course_id": course_id,
        "title": "Intro to Python",
        "description": "Basics",
        "price": 99.0,
        "image_url": None,
        "created_at": t0,
    })
    store.tables.setdefault("course_modules", []).extend([
        # inserted out of order; the catalog sorts by created_at
        {"module_id": f"{course_id}-B", "course_id": course_id, "title": "B",
         "created_at": t0 + timedelta(minutes=2)},
        {"module_id": f"{course_id}-A", "course_id": course_id, "title": "A",
         "created_at": t0 + timedelta(minutes=1)},
    ])
    store.tables.setdefault("course_lessons", []).extend([
        {"lesson_id": "L2", "module_id": f"{course_id}-A", "title": "Lesson 2",
         "content": "...", "created_at": t0 + timedelta(minutes=4)},
        {"lesson_id": "L1", "module_id": f"{course_id}-A", "title": "Lesson 1",
         "content": "...", "quiz": QUIZ, "created_at": t0 + timedelta(minutes=3)},
        {"lesson_id": "L3", "module_id": f"{course_id}-B", "title": "Lesson 3",
         "content": "...", "created_at": t0 + timedelta(minutes=5)},
    ])


def seed_enrollment(store: InMemoryRecordStore, user_id="u1", course_id="C1",
                    completed=None, attempts=None):
    store.tables.setdefault("enrollments", []).append({
        "enrollment_id": f"ENR_{user_id}_{course_id}",
        "user_id": user_id,
        "course_id": course_id,
        "completed_lesson_ids": list(completed or []),
        "quiz_attempts": list(attempts or []),
        "enrolled_at": datetime(2024, 1, 2),
        "is_active": True,
    })


@pytest.fixture
def store():
    store = InMemoryRecordStore()
    seed_course(store)
    seed_enrollment(store)
    return store
