from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from app.core.constants import LessonTypeEnum, VideoSourceTypeEnum
from app.models.lesson import Lesson


class VideoContent(BaseModel):
    kind: Literal["VIDEO"] = "VIDEO"
    source_type: VideoSourceTypeEnum
    external_video_id: Optional[str] = None
    duration_seconds: Optional[int] = None
    thumbnail_url: Optional[str] = None


class TextContent(BaseModel):
    kind: Literal["TEXT"] = "TEXT"
    text: str


class QuizContent(BaseModel):
    """Quiz lessons carry no inline content; their questions are child rows."""
    kind: Literal["QUIZ"] = "QUIZ"


LessonContent = Annotated[Union[VideoContent, TextContent, QuizContent], Field(discriminator="kind")]

CONTENT_COLUMNS = (
    "video_source_type",
    "external_video_id",
    "video_duration_seconds",
    "thumbnail_url",
    "text_content",
)


def flatten_content(content: LessonContent) -> dict:
    """Lesson columns for a content variant; columns of the other variants are nulled."""
    columns = dict.fromkeys(CONTENT_COLUMNS)
    columns["lesson_type"] = LessonTypeEnum(content.kind)
    if isinstance(content, VideoContent):
        columns.update(
            video_source_type=content.source_type,
            external_video_id=content.external_video_id,
            video_duration_seconds=content.duration_seconds,
            thumbnail_url=content.thumbnail_url,
        )
    elif isinstance(content, TextContent):
        columns["text_content"] = content.text
    return columns


def content_from_record(lesson: Lesson) -> LessonContent:
    if lesson.lesson_type == LessonTypeEnum.VIDEO:
        return VideoContent(
            source_type=lesson.video_source_type,
            external_video_id=lesson.external_video_id,
            duration_seconds=lesson.video_duration_seconds,
            thumbnail_url=lesson.thumbnail_url,
        )
    if lesson.lesson_type == LessonTypeEnum.TEXT:
        return TextContent(text=lesson.text_content or "")
    return QuizContent()


def is_platform_video(lesson: Lesson) -> bool:
    return (
        lesson.lesson_type == LessonTypeEnum.VIDEO
        and lesson.video_source_type == VideoSourceTypeEnum.CLOUDINARY
        and bool(lesson.external_video_id)
    )
