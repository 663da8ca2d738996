from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class QuizQuestion(Base):
    __tablename__ = "quiz_questions"

    id = Column(Integer, primary_key=True, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=False, index=True)
    question_text = Column(String(4000), nullable=False)
    explanation = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_archived = Column(Boolean, nullable=False, default=False, index=True)
    original_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    options = relationship(
        "QuizOption",
        primaryjoin="and_(QuizQuestion.id == QuizOption.question_id, QuizOption.is_archived == False)",
        order_by="QuizOption.order",
        viewonly=True,
    )


class QuizOption(Base):
    __tablename__ = "quiz_options"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("quiz_questions.id"), nullable=False, index=True)
    option_text = Column(String(500), nullable=False)
    is_correct_answer = Column(Boolean, nullable=False, default=False)
    order = Column(Integer, nullable=False, default=0)
    is_archived = Column(Boolean, nullable=False, default=False)
    original_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
