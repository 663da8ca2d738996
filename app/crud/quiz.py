from typing import Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.quiz import QuizOption, QuizQuestion

class CRUDQuizQuestion(CRUDBase[QuizQuestion, QuizQuestion, QuizQuestion]):

    def get_active_by_lesson(self, db: Session, *, lesson_id: int) -> List[QuizQuestion]:
        return (
            db.query(self.model)
            .filter(self.model.lesson_id == lesson_id, self.model.is_archived == False)
            .order_by(self.model.order)
            .all()
        )

    def get_including_archived(self, db: Session, *, ids: List[int]) -> List[QuizQuestion]:
        return db.query(self.model).filter(self.model.id.in_(ids)).order_by(self.model.order, self.model.id).all()

    def create_with_options(self, db: Session, *, question_data: dict, options_data: List[dict]) -> QuizQuestion:
        """Persist a question and its options, re-checking the single-correct-option rule."""
        ensure_single_correct(options_data)
        question = QuizQuestion(**question_data)
        db.add(question)
        db.flush()
        self.add_options(db, question=question, options_data=options_data)
        return question

    def add_options(self, db: Session, *, question: QuizQuestion, options_data: List[dict]) -> List[QuizOption]:
        ensure_single_correct(options_data)
        options = [QuizOption(question_id=question.id, **option_data) for option_data in options_data]
        db.add_all(options)
        db.flush()
        return options

    def move(self, db: Session, *, question: QuizQuestion, position: int) -> None:
        """Move an active question to ``position`` and close the gap it leaves."""
        siblings = [q for q in self.get_active_by_lesson(db, lesson_id=question.lesson_id) if q.id != question.id]
        if position >= len(siblings) + 1:
            raise ValueError(f"Question order must be between 0 and {len(siblings)}.")
        siblings.insert(position, question)
        for index, sibling in enumerate(siblings):
            sibling.order = index
        db.flush()

    def renumber(self, db: Session, *, lesson_id: int) -> None:
        for position, question in enumerate(self.get_active_by_lesson(db, lesson_id=lesson_id)):
            if question.order != position:
                question.order = position
        db.flush()


class CRUDQuizOption(CRUDBase[QuizOption, QuizOption, QuizOption]):

    def get_active_by_question(self, db: Session, *, question_id: int) -> List[QuizOption]:
        return (
            db.query(self.model)
            .filter(self.model.question_id == question_id, self.model.is_archived == False)
            .order_by(self.model.order)
            .all()
        )

    def get_for_questions(self, db: Session, *, question_ids: List[int]) -> List[QuizOption]:
        """All options of the given questions, archived ones included."""
        return (
            db.query(self.model)
            .filter(self.model.question_id.in_(question_ids))
            .order_by(self.model.question_id, self.model.order, self.model.id)
            .all()
        )

    def get_correct_option_map(self, db: Session, *, question_ids: List[int]) -> Dict[int, int]:
        rows = (
            db.query(self.model.question_id, self.model.id)
            .filter(
                self.model.question_id.in_(question_ids),
                self.model.is_archived == False,
                self.model.is_correct_answer == True,
            )
            .all()
        )
        return {row.question_id: row.id for row in rows}


def ensure_single_correct(options_data: List[dict]) -> None:
    if len(options_data) < 2:
        raise ValueError("A question must have at least two options.")
    if sum(1 for option in options_data if option.get("is_correct_answer")) != 1:
        raise ValueError("A question must have exactly one correct option.")


def next_order(db: Session, *, lesson_id: int) -> int:
    current: Optional[int] = (
        db.query(func.max(QuizQuestion.order))
        .filter(QuizQuestion.lesson_id == lesson_id, QuizQuestion.is_archived == False)
        .scalar()
    )
    return 0 if current is None else current + 1

quiz_question = CRUDQuizQuestion(QuizQuestion)
quiz_option = CRUDQuizOption(QuizOption)
