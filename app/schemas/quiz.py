from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.base import CamelModel
from app.schemas.curriculum import QuestionPayload


class QuestionCreate(QuestionPayload):
    # Position is assigned by the server when a question is added on its own.
    question_order: Optional[int] = Field(None, ge=0)


class QuestionUpdate(QuestionPayload):
    question_order: Optional[int] = Field(None, ge=0)


class StudentOption(CamelModel):
    """Option as shown while an attempt is in progress (no correct flag)."""
    id: int
    option_text: str
    option_order: int


class StudentQuestion(CamelModel):
    id: int
    question_text: str
    question_order: int
    options: List[StudentOption] = Field(default_factory=list)


class AnswerSubmission(CamelModel):
    question_id: int
    selected_option_id: Optional[int] = None


class AttemptSubmission(CamelModel):
    answers: List[AnswerSubmission]


class QuizAttempt(CamelModel):
    id: int
    lesson_id: int
    account_id: int
    attempt_number: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    score: Optional[float] = None
    is_passed: Optional[bool] = None


class QuizAttemptStarted(QuizAttempt):
    questions: List[StudentQuestion] = Field(default_factory=list)


class ResultOption(CamelModel):
    id: int
    option_text: str
    option_order: int
    is_correct_answer: bool


class ResultQuestion(CamelModel):
    id: int
    question_text: str
    explanation: Optional[str] = None
    question_order: int
    selected_option_id: Optional[int] = None
    is_correct: bool
    options: List[ResultOption] = Field(default_factory=list)


class QuizAttemptResult(QuizAttempt):
    correct_count: int
    total_questions: int
    questions: List[ResultQuestion] = Field(default_factory=list)

