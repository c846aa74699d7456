from pydantic import BaseModel, Field, validator
from typing import List, Optional, Dict, Set
from datetime import datetime

# ==================== CATALOG MODELS ====================

class Attachment(BaseModel):
    name: str
    url: str

class Question(BaseModel):
    question_id: str
    text: str
    options: List[str]
    correct_option_index: int

    @validator('correct_option_index')
    def validate_correct_option_index(cls, v, values):
        options = values.get('options') or []
        if not 0 <= v < len(options):
            raise ValueError(
                f'correct_option_index must be between 0 and {len(options) - 1}'
            )
        return v

class Quiz(BaseModel):
    questions: List[Question] = []

class Lesson(BaseModel):
    lesson_id: str
    title: str
    content: str = ""
    video_url: Optional[str] = None
    attachments: List[Attachment] = []
    quiz: Optional[Quiz] = None

class Module(BaseModel):
    module_id: str
    title: str
    lessons: List[Lesson] = []

class Course(BaseModel):
    course_id: str
    title: str
    description: str = ""
    price: float = 0.0
    image_url: Optional[str] = None
    modules: List[Module] = []

# ==================== ENROLLMENT MODELS ====================

class QuizAttempt(BaseModel):
    lesson_id: str
    score: float = Field(..., ge=0, le=100)
    passed: bool
    timestamp: datetime

class Enrollment(BaseModel):
    enrollment_id: str
    user_id: str
    course_id: str
    completed_lesson_ids: List[str] = []
    quiz_attempts: List[QuizAttempt] = []
    enrolled_at: Optional[datetime] = None
    is_active: bool = True

class EnrollmentCreate(BaseModel):
    course_id: str

# ==================== PROGRESS MODELS ====================

class CourseCompleted(BaseModel):
    user_id: str
    course_id: str
    course_title: str
    performance: float
    completed_at: datetime

class ProgressUpdate(BaseModel):
    course_id: str
    completed_lesson_ids: Set[str]
    progress: float
    course_completed: Optional[CourseCompleted] = None

class CourseProgress(BaseModel):
    course_id: str
    course_title: str
    total_lessons: int
    completed_lesson_ids: Set[str]
    progress: float
    average_performance: float
    quiz_attempts: List[QuizAttempt] = []

class LessonCompletionSet(BaseModel):
    completed: bool

# ==================== QUIZ MODELS ====================

class QuizSubmission(BaseModel):
    answers: Dict[str, int] = {}

class QuizScore(BaseModel):
    score: float
    passed: bool
    correct_answers: Dict[str, int]

class QuizResult(QuizScore):
    lesson_completed: bool = False
    course_completed: Optional[CourseCompleted] = None

# ==================== COUPON MODELS ====================

class CouponValidate(BaseModel):
    code: str
    course_id: str

class CouponValidation(BaseModel):
    code: str
    course_id: str
    discount_percentage: int

# ==================== ADMIN MODELS ====================

class StudentProgressEntry(BaseModel):
    user_id: str
    course_id: str
    course_title: str
    progress: float
