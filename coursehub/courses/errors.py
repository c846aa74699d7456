"""
Course system error taxonomy.

Routers never build these into responses by hand: the handlers registered in
``setup_course_routes`` map each class to its HTTP status.
"""


class CourseHubError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(CourseHubError):
    status_code = 404


class EnrollmentNotFound(NotFound):
    def __init__(self, user_id: str, course_id: str):
        super().__init__(f"Not enrolled in course {course_id}")
        self.user_id = user_id
        self.course_id = course_id


class CourseNotFound(NotFound):
    def __init__(self, course_id: str):
        super().__init__(f"Course {course_id} not found")
        self.course_id = course_id


class LessonNotFound(NotFound):
    def __init__(self, lesson_id: str, course_id: str):
        super().__init__(f"Lesson {lesson_id} is not part of course {course_id}")
        self.lesson_id = lesson_id
        self.course_id = course_id


class DuplicateRecord(CourseHubError):
    """Insert hit a unique key already present in the table."""
    status_code = 409


class StoreUnavailable(CourseHubError):
    """The record store call failed (network or backend error)."""
    status_code = 503


class InvalidSubmission(CourseHubError):
    """Quiz submitted for a missing lesson or a lesson without a quiz."""
    status_code = 422


class InvalidCoupon(CourseHubError):
    status_code = 400
