from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.schemas.curriculum import QuestionRead
from app.schemas.quiz import (
    AttemptSubmission, QuestionCreate, QuestionUpdate, QuizAttempt, QuizAttemptResult, QuizAttemptStarted,
)
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.services.quiz import quiz_service
from app.services.quiz_attempt import quiz_attempt_service
from app.utils import deps

router = APIRouter()


@router.get("/lessons/{lesson_id}/questions", response_model=APIResponse[List[QuestionRead]])
def get_quiz_questions(
    lesson_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    questions = quiz_service.list_questions(db, lesson_id=lesson_id, current_user_context=context)
    return APIResponse(message="Questions retrieved successfully", data=questions)


@router.post("/lessons/{lesson_id}/questions", response_model=APIResponse[QuestionRead], status_code=status.HTTP_201_CREATED)
async def create_quiz_question(
    lesson_id: int,
    question_in: QuestionCreate,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    question = await quiz_service.create_question(db, lesson_id=lesson_id, question_in=question_in, current_user_context=context)
    return APIResponse(message="Question created successfully", data=question)


@router.put("/questions/{question_id}", response_model=APIResponse[QuestionRead])
async def update_quiz_question(
    question_id: int,
    question_in: QuestionUpdate,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    question = await quiz_service.update_question(db, question_id=question_id, question_in=question_in, current_user_context=context)
    return APIResponse(message="Question updated successfully", data=question)


@router.delete("/questions/{question_id}", response_model=APIResponse)
async def delete_quiz_question(
    question_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    await quiz_service.delete_question(db, question_id=question_id, current_user_context=context)
    return APIResponse(message="Question deleted successfully")


@router.post("/lessons/{lesson_id}/start", response_model=APIResponse[QuizAttemptStarted], status_code=status.HTTP_201_CREATED)
def start_quiz_attempt(
    lesson_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempt = quiz_attempt_service.start_attempt(db, lesson_id=lesson_id, current_user_context=context)
    return APIResponse(message="Quiz attempt started", data=attempt)


@router.get("/lessons/{lesson_id}/attempts", response_model=APIResponse[List[QuizAttempt]])
def get_quiz_attempt_history(
    lesson_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    attempts = quiz_attempt_service.get_attempt_history(db, lesson_id=lesson_id, current_user_context=context)
    return APIResponse(message="Quiz attempts retrieved successfully", data=attempts)


@router.post("/attempts/{attempt_id}/submit", response_model=APIResponse[QuizAttemptResult])
def submit_quiz_attempt(
    attempt_id: int,
    submission: AttemptSubmission,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    result = quiz_attempt_service.submit_attempt(db, attempt_id=attempt_id, submission=submission, current_user_context=context)
    return APIResponse(message="Quiz attempt submitted", data=result)


@router.get("/attempts/{attempt_id}/result", response_model=APIResponse[QuizAttemptResult])
def get_quiz_attempt_result(
    attempt_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    result = quiz_attempt_service.get_attempt_result(db, attempt_id=attempt_id, current_user_context=context)
    return APIResponse(message="Quiz attempt result retrieved successfully", data=result)
