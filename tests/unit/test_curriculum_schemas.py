import pytest
from pydantic import ValidationError

from app.core.constants import LessonTypeEnum, VideoSourceTypeEnum
from app.schemas.curriculum import CurriculumSyncPayload, LessonPayload, QuestionPayload
from app.schemas.lesson import CONTENT_COLUMNS, QuizContent, TextContent, VideoContent, flatten_content
from tests.helpers.payloads import lesson, question


def test_payload_is_read_from_camel_case():
    payload = CurriculumSyncPayload.model_validate({
        "sections": [{"sectionName": "Intro", "sectionOrder": 0, "lessons": [lesson("Welcome", 0)]}],
        "expectedVersion": 3,
    })
    assert payload.expected_version == 3
    assert payload.sections[0].lessons[0].lesson_type == LessonTypeEnum.TEXT


def test_video_lesson_requires_source_type():
    with pytest.raises(ValidationError, match="videoSourceType is required"):
        LessonPayload.model_validate({
            "lessonName": "Clip", "lessonOrder": 0, "lessonType": "VIDEO", "isFreePreview": False,
        })


def test_external_video_requires_input():
    with pytest.raises(ValidationError, match="externalVideoInput is required"):
        LessonPayload.model_validate(lesson("Clip", 0, lesson_type="VIDEO", videoSourceType="YOUTUBE"))


def test_external_video_id_is_accepted_as_alias():
    payload = LessonPayload.model_validate(
        lesson("Clip", 0, lesson_type="VIDEO", videoSourceType="VIMEO", externalVideoId="76979871")
    )
    assert payload.external_video_input == "76979871"


def test_text_lesson_rejects_video_fields():
    with pytest.raises(ValidationError, match="Video fields are not allowed"):
        LessonPayload.model_validate(lesson("Notes", 0, videoSourceType="YOUTUBE"))


def test_text_lesson_requires_text():
    with pytest.raises(ValidationError, match="textContent is required"):
        LessonPayload.model_validate(lesson("Notes", 0, textContent="   "))


def test_only_quiz_lessons_take_questions():
    with pytest.raises(ValidationError, match="Only QUIZ lessons can have questions"):
        LessonPayload.model_validate(lesson("Notes", 0, questions=[question("Q?", 0)]))


def test_question_needs_exactly_one_correct_option():
    data = question("Q?", 0)
    data["options"][1]["isCorrectAnswer"] = True
    with pytest.raises(ValidationError, match="exactly one correct option"):
        QuestionPayload.model_validate(data)


def test_question_needs_two_options():
    data = question("Q?", 0)
    data["options"] = data["options"][:1]
    with pytest.raises(ValidationError, match="at least two options"):
        QuestionPayload.model_validate(data)


def test_single_default_subtitle():
    subtitle = {"languageCode": "en", "languageName": "English", "subtitleUrl": "https://cdn.test/en.vtt", "isDefault": True}
    with pytest.raises(ValidationError, match="Only one subtitle"):
        LessonPayload.model_validate(lesson("Notes", 0, subtitles=[subtitle, {**subtitle, "languageCode": "fr"}]))


def test_flatten_video_content_nulls_text():
    columns = flatten_content(VideoContent(
        source_type=VideoSourceTypeEnum.YOUTUBE, external_video_id="dQw4w9WgXcQ", duration_seconds=212
    ))
    assert columns["lesson_type"] == LessonTypeEnum.VIDEO
    assert columns["external_video_id"] == "dQw4w9WgXcQ"
    assert columns["video_duration_seconds"] == 212
    assert columns["text_content"] is None


def test_flatten_text_and_quiz_content_null_video_columns():
    text_columns = flatten_content(TextContent(text="Read me"))
    quiz_columns = flatten_content(QuizContent())
    assert text_columns["text_content"] == "Read me"
    assert all(quiz_columns[column] is None for column in CONTENT_COLUMNS)
    assert quiz_columns["lesson_type"] == LessonTypeEnum.QUIZ
