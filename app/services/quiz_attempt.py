import logging
from datetime import datetime, timezone
from typing import Dict, List

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import LessonTypeEnum
from app.core.database import transaction
from app.crud.quiz import quiz_option as crud_option, quiz_question as crud_question
from app.crud.quiz_attempt import quiz_attempt as crud_attempt, quiz_attempt_answer as crud_answer
from app.models.quiz_attempt import QuizAttempt as QuizAttemptModel
from app.schemas.quiz import (
    AttemptSubmission, QuizAttempt, QuizAttemptResult, QuizAttemptStarted, ResultOption, ResultQuestion,
    StudentOption, StudentQuestion,
)
from app.schemas.user import UserContext
from app.services.lesson import lesson_service
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


class QuizAttemptService:

    def _get_attempt_or_404(self, db: Session, attempt_id: int) -> QuizAttemptModel:
        attempt = crud_attempt.get(db, id=attempt_id)
        if not attempt:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quiz attempt not found.")
        return attempt

    def start_attempt(self, db: Session, lesson_id: int, current_user_context: UserContext) -> QuizAttemptStarted:
        lesson, course = lesson_service.get_lesson_with_course(db, lesson_id)
        if lesson.lesson_type != LessonTypeEnum.QUIZ:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This lesson is not a quiz.")
        permission_helper.require_course_view_permission(db, current_user_context, course)

        questions = crud_question.get_active_by_lesson(db, lesson_id=lesson.id)
        if not questions:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This quiz has no questions yet.")

        account_id = current_user_context.account.id
        try:
            with transaction(db):
                attempt = crud_attempt.create(db, obj_in={
                    "lesson_id": lesson.id,
                    "account_id": account_id,
                    "attempt_number": crud_attempt.next_attempt_number(db, lesson_id=lesson.id, account_id=account_id),
                    "started_at": datetime.now(timezone.utc),
                })
        except IntegrityError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Another attempt was started at the same time. Please try again."
            )

        logger.info(f"Account {account_id} started attempt {attempt.attempt_number} of quiz lesson {lesson.id}")
        return QuizAttemptStarted(
            **QuizAttempt.model_validate(attempt).model_dump(),
            questions=[
                StudentQuestion(
                    id=question.id,
                    question_text=question.question_text,
                    question_order=question.order,
                    options=[
                        StudentOption(id=option.id, option_text=option.option_text, option_order=option.order)
                        for option in question.options
                    ],
                )
                for question in questions
            ],
        )

    def _validate_answers(self, db: Session, attempt: QuizAttemptModel, submission: AttemptSubmission) -> List[dict]:
        questions = crud_question.get_active_by_lesson(db, lesson_id=attempt.lesson_id)
        question_ids = {question.id for question in questions}
        options_by_question: Dict[int, set] = {question_id: set() for question_id in question_ids}
        for option in crud_option.get_for_questions(db, question_ids=list(question_ids)):
            if not option.is_archived:
                options_by_question[option.question_id].add(option.id)

        answered = set()
        for answer in submission.answers:
            if answer.question_id not in question_ids:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Question {answer.question_id} does not belong to this quiz."
                )
            if answer.question_id in answered:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Question {answer.question_id} was answered more than once."
                )
            if answer.selected_option_id is not None and answer.selected_option_id not in options_by_question[answer.question_id]:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Option {answer.selected_option_id} does not belong to question {answer.question_id}."
                )
            answered.add(answer.question_id)

        if answered != question_ids:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Every question must be answered.")
        return [answer.model_dump() for answer in submission.answers]

    def submit_attempt(
        self, db: Session, attempt_id: int, submission: AttemptSubmission, current_user_context: UserContext
    ) -> QuizAttemptResult:
        attempt = self._get_attempt_or_404(db, attempt_id)
        if attempt.account_id != current_user_context.account.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This is not your quiz attempt.")
        if attempt.completed_at is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This quiz attempt has already been submitted."
            )
        answers_data = self._validate_answers(db, attempt, submission)

        try:
            with transaction(db):
                answers = crud_answer.create_batch(db, attempt_id=attempt.id, answers=answers_data)
                self._grade(db, attempt, answers)
        except SQLAlchemyError as e:
            logger.error(f"Submitting quiz attempt {attempt_id} failed: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to submit quiz attempt."
            )

        logger.info(f"Quiz attempt {attempt.id} graded: score={attempt.score:.2f} passed={attempt.is_passed}")
        return self._build_result(db, attempt)

    def _grade(self, db: Session, attempt: QuizAttemptModel, answers) -> None:
        """Mark every answer against the current correct option, then stamp score and completion."""
        correct_options = crud_option.get_correct_option_map(
            db, question_ids=[answer.question_id for answer in answers]
        )
        correct_count = 0
        for answer in answers:
            answer.is_correct = (
                answer.selected_option_id is not None
                and answer.selected_option_id == correct_options.get(answer.question_id)
            )
            correct_count += answer.is_correct

        attempt.score = correct_count / len(answers) if answers else 0.0
        attempt.is_passed = attempt.score >= settings.QUIZ_PASS_THRESHOLD
        attempt.completed_at = datetime.now(timezone.utc)
        db.flush()

    def _build_result(self, db: Session, attempt: QuizAttemptModel) -> QuizAttemptResult:
        answers = crud_answer.get_by_attempt(db, attempt_id=attempt.id)
        question_ids = [answer.question_id for answer in answers]
        answers_by_question = {answer.question_id: answer for answer in answers}
        options = crud_option.get_for_questions(db, question_ids=question_ids)

        questions = []
        for question in crud_question.get_including_archived(db, ids=question_ids):
            answer = answers_by_question[question.id]
            questions.append(ResultQuestion(
                id=question.id,
                question_text=question.question_text,
                explanation=question.explanation,
                question_order=question.order,
                selected_option_id=answer.selected_option_id,
                is_correct=bool(answer.is_correct),
                options=[
                    ResultOption(
                        id=option.id,
                        option_text=option.option_text,
                        option_order=option.order,
                        is_correct_answer=option.is_correct_answer,
                    )
                    for option in options
                    if option.question_id == question.id
                    and (not option.is_archived or option.id == answer.selected_option_id)
                ],
            ))

        return QuizAttemptResult(
            **QuizAttempt.model_validate(attempt).model_dump(),
            correct_count=sum(1 for answer in answers if answer.is_correct),
            total_questions=len(answers),
            questions=questions,
        )

    def get_attempt_result(self, db: Session, attempt_id: int, current_user_context: UserContext) -> QuizAttemptResult:
        attempt = self._get_attempt_or_404(db, attempt_id)
        if attempt.account_id != current_user_context.account.id and not permission_helper.is_admin(current_user_context):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This is not your quiz attempt.")
        if attempt.completed_at is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This quiz attempt has not been submitted yet."
            )
        return self._build_result(db, attempt)

    def get_attempt_history(self, db: Session, lesson_id: int, current_user_context: UserContext) -> List[QuizAttempt]:
        lesson, course = lesson_service.get_lesson_with_course(db, lesson_id)
        permission_helper.require_course_view_permission(db, current_user_context, course)
        attempts = crud_attempt.get_history(db, lesson_id=lesson.id, account_id=current_user_context.account.id)
        return [QuizAttempt.model_validate(attempt) for attempt in attempts]

quiz_attempt_service = QuizAttemptService()
