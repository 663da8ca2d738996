from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import LessonTypeEnum, VideoSourceTypeEnum

class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    # Archived lessons outlive their section so attempt history stays valid.
    section_id = Column(Integer, ForeignKey("sections.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    lesson_type = Column(Enum(LessonTypeEnum), nullable=False)
    is_free_preview = Column(Boolean, nullable=False, default=False)
    video_source_type = Column(Enum(VideoSourceTypeEnum), nullable=True)
    external_video_id = Column(String, nullable=True)
    video_duration_seconds = Column(Integer, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    text_content = Column(Text, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False, index=True)
    original_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    section = relationship("Section", viewonly=True)
    questions = relationship(
        "QuizQuestion",
        primaryjoin="and_(Lesson.id == QuizQuestion.lesson_id, QuizQuestion.is_archived == False)",
        order_by="QuizQuestion.order",
        viewonly=True,
    )
    attachments = relationship("LessonAttachment", order_by="LessonAttachment.id", viewonly=True)
    subtitles = relationship("LessonSubtitle", order_by="LessonSubtitle.id", viewonly=True)


class LessonAttachment(Base):
    __tablename__ = "lesson_attachments"

    id = Column(Integer, primary_key=True, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String, nullable=False)
    file_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)
    cloud_storage_id = Column(String, nullable=True)
    original_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class LessonSubtitle(Base):
    __tablename__ = "lesson_subtitles"

    id = Column(Integer, primary_key=True, index=True)
    lesson_id = Column(Integer, ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)
    language_code = Column(String(10), nullable=False)
    language_name = Column(String(50), nullable=False)
    subtitle_url = Column(String, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    original_id = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
