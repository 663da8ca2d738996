import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.constants import LessonTypeEnum
from app.core.database import transaction
from app.crud.quiz import next_order, quiz_option as crud_option, quiz_question as crud_question
from app.models.course import Course
from app.models.lesson import Lesson
from app.schemas.curriculum import OptionPayload, QuestionRead, question_to_read
from app.schemas.quiz import QuestionCreate, QuestionUpdate
from app.schemas.user import UserContext
from app.services.lesson import lesson_service
from app.utils.ordering import require_sequential_order
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


def _options_data(options: List[OptionPayload]) -> List[dict]:
    return [
        {"option_text": option.option_text, "is_correct_answer": option.is_correct_answer, "order": option.option_order}
        for option in options
    ]


class QuizService:

    def _require_quiz_lesson(self, lesson: Lesson) -> None:
        if lesson.lesson_type != LessonTypeEnum.QUIZ:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Questions can only be managed on QUIZ lessons."
            )

    def _bump_version(self, course: Course) -> None:
        course.curriculum_version = (course.curriculum_version or 0) + 1

    async def create_question(
        self, db: Session, lesson_id: int, question_in: QuestionCreate, current_user_context: UserContext
    ) -> QuestionRead:
        lesson, course = lesson_service.get_lesson_with_course(db, lesson_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)
        self._require_quiz_lesson(lesson)
        require_sequential_order([option.option_order for option in question_in.options], "Option")

        order = next_order(db, lesson_id=lesson.id)
        if question_in.question_order is not None and question_in.question_order != order:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"New questions are appended; expected question order {order}."
            )

        with transaction(db):
            try:
                question = crud_question.create_with_options(
                    db,
                    question_data={
                        "lesson_id": lesson.id,
                        "question_text": question_in.question_text,
                        "explanation": question_in.explanation,
                        "order": order,
                    },
                    options_data=_options_data(question_in.options),
                )
            except ValueError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
            self._bump_version(course)

        logger.info(f"Question {question.id} added to quiz lesson {lesson.id}")
        await cache.invalidate_curriculum(course.id)
        return question_to_read(question)

    async def update_question(
        self, db: Session, question_id: int, question_in: QuestionUpdate, current_user_context: UserContext
    ) -> QuestionRead:
        question = crud_question.get(db, id=question_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found.")
        lesson, course = lesson_service.get_lesson_with_course(db, question.lesson_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)
        require_sequential_order([option.option_order for option in question_in.options], "Option")

        options_data = _options_data(question_in.options)
        with transaction(db):
            try:
                # Answered attempts keep pointing at the archived options.
                for option in crud_option.get_active_by_question(db, question_id=question.id):
                    option.is_archived = True
                crud_question.add_options(db, question=question, options_data=options_data)
                if question_in.question_order is not None and question_in.question_order != question.order:
                    crud_question.move(db, question=question, position=question_in.question_order)
            except ValueError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
            question.question_text = question_in.question_text
            question.explanation = question_in.explanation
            self._bump_version(course)

        await cache.invalidate_curriculum(course.id)
        return question_to_read(question)

    async def delete_question(self, db: Session, question_id: int, current_user_context: UserContext) -> None:
        question = crud_question.get(db, id=question_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found.")
        lesson, course = lesson_service.get_lesson_with_course(db, question.lesson_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)

        with transaction(db):
            question.is_archived = True
            db.flush()
            crud_question.renumber(db, lesson_id=lesson.id)
            self._bump_version(course)

        logger.info(f"Question {question_id} archived from quiz lesson {lesson.id}")
        await cache.invalidate_curriculum(course.id)

    def list_questions(self, db: Session, lesson_id: int, current_user_context: UserContext) -> List[QuestionRead]:
        lesson, course = lesson_service.get_lesson_with_course(db, lesson_id)
        permission_helper.require_course_owner_or_admin(current_user_context, course)
        self._require_quiz_lesson(lesson)
        return [question_to_read(question) for question in crud_question.get_active_by_lesson(db, lesson_id=lesson.id)]

quiz_service = QuizService()
