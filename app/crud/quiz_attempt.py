from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.quiz_attempt import QuizAttempt, QuizAttemptAnswer

class CRUDQuizAttempt(CRUDBase[QuizAttempt, QuizAttempt, QuizAttempt]):

    def next_attempt_number(self, db: Session, *, lesson_id: int, account_id: int) -> int:
        current = (
            db.query(func.max(self.model.attempt_number))
            .filter(self.model.lesson_id == lesson_id, self.model.account_id == account_id)
            .scalar()
        )
        return (current or 0) + 1

    def get_history(self, db: Session, *, lesson_id: int, account_id: int) -> List[QuizAttempt]:
        return (
            db.query(self.model)
            .filter(self.model.lesson_id == lesson_id, self.model.account_id == account_id)
            .order_by(self.model.attempt_number.desc())
            .all()
        )


class CRUDQuizAttemptAnswer(CRUDBase[QuizAttemptAnswer, QuizAttemptAnswer, QuizAttemptAnswer]):

    def get_by_attempt(self, db: Session, *, attempt_id: int) -> List[QuizAttemptAnswer]:
        return db.query(self.model).filter(self.model.attempt_id == attempt_id).order_by(self.model.id).all()

    def create_batch(self, db: Session, *, attempt_id: int, answers: List[dict]) -> List[QuizAttemptAnswer]:
        """Insert ungraded answers for an attempt."""
        records = [
            QuizAttemptAnswer(
                attempt_id=attempt_id,
                question_id=answer["question_id"],
                selected_option_id=answer["selected_option_id"],
                is_correct=None,
            )
            for answer in answers
        ]
        db.add_all(records)
        db.flush()
        return records

quiz_attempt = CRUDQuizAttempt(QuizAttempt)
quiz_attempt_answer = CRUDQuizAttemptAnswer(QuizAttemptAnswer)
