from typing import Dict, List, Optional

from pydantic import AliasChoices, Field, model_validator

from app.core.constants import LessonTypeEnum, VideoSourceTypeEnum
from app.models.lesson import Lesson, LessonAttachment, LessonSubtitle
from app.models.quiz import QuizOption, QuizQuestion
from app.models.section import Section
from app.schemas.base import CamelModel


# Incoming tree. A present ``id`` updates that node, a missing one creates it.

class OptionPayload(CamelModel):
    id: Optional[int] = None
    option_text: str = Field(..., min_length=1, max_length=500)
    is_correct_answer: bool = False
    option_order: int = Field(..., ge=0)


class QuestionPayload(CamelModel):
    id: Optional[int] = None
    question_text: str = Field(..., min_length=1, max_length=4000)
    explanation: Optional[str] = Field(None, max_length=4000)
    question_order: int = Field(..., ge=0)
    options: List[OptionPayload]

    @model_validator(mode="after")
    def check_options(self):
        if len(self.options) < 2:
            raise ValueError("A question must have at least two options.")
        if sum(1 for option in self.options if option.is_correct_answer) != 1:
            raise ValueError("A question must have exactly one correct option.")
        return self


class AttachmentPayload(CamelModel):
    id: Optional[int] = None
    file_name: str = Field(..., min_length=1, max_length=255)


class SubtitlePayload(CamelModel):
    id: Optional[int] = None
    language_code: str = Field(..., min_length=1, max_length=10)
    language_name: str = Field(..., min_length=1, max_length=50)
    subtitle_url: str = Field(..., pattern=r"^https?://\S+$")
    is_default: bool = False


class LessonPayload(CamelModel):
    id: Optional[int] = None
    lesson_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    lesson_order: int = Field(..., ge=0)
    lesson_type: LessonTypeEnum
    is_free_preview: bool
    video_source_type: Optional[VideoSourceTypeEnum] = None
    external_video_input: Optional[str] = Field(
        None, validation_alias=AliasChoices("externalVideoInput", "externalVideoId", "external_video_input")
    )
    video_duration_seconds: Optional[int] = Field(None, ge=0)
    thumbnail_url: Optional[str] = None
    text_content: Optional[str] = Field(None, max_length=20000)
    questions: List[QuestionPayload] = Field(default_factory=list)
    attachments: List[AttachmentPayload] = Field(default_factory=list)
    subtitles: List[SubtitlePayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_type_fields(self):
        has_video_fields = any(
            value is not None
            for value in (self.video_source_type, self.external_video_input, self.video_duration_seconds, self.thumbnail_url)
        )
        if self.lesson_type == LessonTypeEnum.VIDEO:
            if self.video_source_type is None:
                raise ValueError("videoSourceType is required for VIDEO lessons.")
            if self.video_source_type != VideoSourceTypeEnum.CLOUDINARY and not self.external_video_input:
                raise ValueError("externalVideoInput is required for YOUTUBE and VIMEO lessons.")
            if self.text_content is not None:
                raise ValueError("textContent is not allowed for VIDEO lessons.")
        elif self.lesson_type == LessonTypeEnum.TEXT:
            if not (self.text_content or "").strip():
                raise ValueError("textContent is required for TEXT lessons.")
            if has_video_fields:
                raise ValueError("Video fields are not allowed for TEXT lessons.")
        elif has_video_fields or self.text_content is not None:
            raise ValueError("QUIZ lessons cannot carry video fields or textContent.")

        if self.questions and self.lesson_type != LessonTypeEnum.QUIZ:
            raise ValueError("Only QUIZ lessons can have questions.")
        if sum(1 for subtitle in self.subtitles if subtitle.is_default) > 1:
            raise ValueError("Only one subtitle can be marked as default.")
        return self


class SectionPayload(CamelModel):
    id: Optional[int] = None
    section_name: str = Field(..., min_length=1, max_length=255)
    section_order: int = Field(..., ge=0)
    description: Optional[str] = None
    lessons: List[LessonPayload] = Field(default_factory=list)


class CurriculumSyncPayload(CamelModel):
    sections: List[SectionPayload]
    expected_version: Optional[int] = None


# Payload -> record columns

def section_columns(payload: SectionPayload, course_id: int) -> dict:
    return {
        "course_id": course_id,
        "name": payload.section_name,
        "order": payload.section_order,
        "description": payload.description,
    }


def lesson_base_columns(payload: LessonPayload, section_id: Optional[int]) -> dict:
    return {
        "section_id": section_id,
        "name": payload.lesson_name,
        "description": payload.description,
        "order": payload.lesson_order,
        "is_free_preview": payload.is_free_preview,
    }


def question_columns(payload: QuestionPayload, lesson_id: Optional[int]) -> dict:
    return {
        "lesson_id": lesson_id,
        "question_text": payload.question_text,
        "explanation": payload.explanation,
        "order": payload.question_order,
    }


def option_columns(payload: OptionPayload, question_id: Optional[int]) -> dict:
    return {
        "question_id": question_id,
        "option_text": payload.option_text,
        "is_correct_answer": payload.is_correct_answer,
        "order": payload.option_order,
    }


def subtitle_columns(payload: SubtitlePayload, lesson_id: Optional[int]) -> dict:
    return {
        "lesson_id": lesson_id,
        "language_code": payload.language_code,
        "language_name": payload.language_name,
        "subtitle_url": payload.subtitle_url,
    }


# Outgoing tree

class OptionRead(CamelModel):
    id: int
    option_text: str
    is_correct_answer: bool
    option_order: int


class QuestionRead(CamelModel):
    id: int
    question_text: str
    explanation: Optional[str] = None
    question_order: int
    options: List[OptionRead] = Field(default_factory=list)


class AttachmentRead(CamelModel):
    id: int
    file_name: str
    file_url: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None


class SubtitleRead(CamelModel):
    id: int
    language_code: str
    language_name: str
    subtitle_url: str
    is_default: bool


class LessonRead(CamelModel):
    id: int
    lesson_name: str
    description: Optional[str] = None
    lesson_order: int
    lesson_type: LessonTypeEnum
    is_free_preview: bool
    video_source_type: Optional[VideoSourceTypeEnum] = None
    external_video_id: Optional[str] = None
    video_duration_seconds: Optional[int] = None
    thumbnail_url: Optional[str] = None
    text_content: Optional[str] = None
    questions: List[QuestionRead] = Field(default_factory=list)
    attachments: List[AttachmentRead] = Field(default_factory=list)
    subtitles: List[SubtitleRead] = Field(default_factory=list)


class SectionRead(CamelModel):
    id: int
    section_name: str
    section_order: int
    description: Optional[str] = None
    lessons: List[LessonRead] = Field(default_factory=list)


class CurriculumTree(CamelModel):
    course_id: int
    version: int
    sections: List[SectionRead] = Field(default_factory=list)


class SyncSummary(CamelModel):
    created: Dict[str, int] = Field(default_factory=dict)
    updated: Dict[str, int] = Field(default_factory=dict)
    archived: Dict[str, int] = Field(default_factory=dict)
    deleted: Dict[str, int] = Field(default_factory=dict)
    version: int


# Record -> outgoing tree

def option_to_read(option: QuizOption) -> OptionRead:
    return OptionRead(
        id=option.id,
        option_text=option.option_text,
        is_correct_answer=option.is_correct_answer,
        option_order=option.order,
    )


def question_to_read(question: QuizQuestion) -> QuestionRead:
    return QuestionRead(
        id=question.id,
        question_text=question.question_text,
        explanation=question.explanation,
        question_order=question.order,
        options=[option_to_read(option) for option in question.options],
    )


def attachment_to_read(attachment: LessonAttachment) -> AttachmentRead:
    return AttachmentRead(
        id=attachment.id,
        file_name=attachment.file_name,
        file_url=attachment.file_url,
        file_type=attachment.file_type,
        file_size=attachment.file_size,
    )


def subtitle_to_read(subtitle: LessonSubtitle) -> SubtitleRead:
    return SubtitleRead(
        id=subtitle.id,
        language_code=subtitle.language_code,
        language_name=subtitle.language_name,
        subtitle_url=subtitle.subtitle_url,
        is_default=subtitle.is_default,
    )


def lesson_to_read(lesson: Lesson) -> LessonRead:
    return LessonRead(
        id=lesson.id,
        lesson_name=lesson.name,
        description=lesson.description,
        lesson_order=lesson.order,
        lesson_type=lesson.lesson_type,
        is_free_preview=lesson.is_free_preview,
        video_source_type=lesson.video_source_type,
        external_video_id=lesson.external_video_id,
        video_duration_seconds=lesson.video_duration_seconds,
        thumbnail_url=lesson.thumbnail_url,
        text_content=lesson.text_content,
        questions=[question_to_read(question) for question in lesson.questions],
        attachments=[attachment_to_read(attachment) for attachment in lesson.attachments],
        subtitles=[subtitle_to_read(subtitle) for subtitle in lesson.subtitles],
    )


def section_to_read(section: Section) -> SectionRead:
    return SectionRead(
        id=section.id,
        section_name=section.name,
        section_order=section.order,
        description=section.description,
        lessons=[lesson_to_read(lesson) for lesson in section.lessons],
    )
