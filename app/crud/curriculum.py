from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, not_
from sqlalchemy.orm import Session, selectinload

from app.core.constants import AssetResourceTypeEnum, CourseStatusEnum, LessonTypeEnum, VideoSourceTypeEnum
from app.models.course import Course
from app.models.lesson import Lesson, LessonAttachment, LessonSubtitle
from app.models.quiz import QuizOption, QuizQuestion
from app.models.section import Section
from app.schemas.asset import AssetRef
from app.schemas.lesson import is_platform_video



@dataclass
class CurriculumState:
    """Active nodes of one course, each level keyed by id."""
    course_id: int
    sections: Dict[int, Section] = field(default_factory=dict)
    lessons: Dict[int, Lesson] = field(default_factory=dict)
    questions: Dict[int, QuizQuestion] = field(default_factory=dict)
    options: Dict[int, QuizOption] = field(default_factory=dict)
    attachments: Dict[int, LessonAttachment] = field(default_factory=dict)
    subtitles: Dict[int, LessonSubtitle] = field(default_factory=dict)

    def level(self, name: str) -> dict:
        return getattr(self, name)


@dataclass
class OrderSnapshot:
    """Persisted orders of active nodes, grouped by owner id."""
    sections: List[int] = field(default_factory=list)
    lessons: Dict[int, List[int]] = field(default_factory=dict)
    questions: Dict[int, List[int]] = field(default_factory=dict)
    options: Dict[int, List[Tuple[int, bool]]] = field(default_factory=dict)
    non_quiz_lessons_with_questions: List[int] = field(default_factory=list)


def _not_archived_draft():
    return not_(and_(Course.live_course_id.isnot(None), Course.status == CourseStatusEnum.ARCHIVED))


class CRUDCurriculum:

    def load_state(self, db: Session, *, course_id: int) -> CurriculumState:
        state = CurriculumState(course_id=course_id)
        state.sections = {s.id: s for s in db.query(Section).filter(Section.course_id == course_id)}
        state.lessons = {
            lesson.id: lesson
            for lesson in db.query(Lesson).filter(
                Lesson.section_id.in_(list(state.sections)), Lesson.is_archived == False
            )
        }
        lesson_ids = list(state.lessons)
        state.questions = {
            q.id: q
            for q in db.query(QuizQuestion).filter(
                QuizQuestion.lesson_id.in_(lesson_ids), QuizQuestion.is_archived == False
            )
        }
        state.options = {
            o.id: o
            for o in db.query(QuizOption).filter(
                QuizOption.question_id.in_(list(state.questions)), QuizOption.is_archived == False
            )
        }
        state.attachments = {
            a.id: a for a in db.query(LessonAttachment).filter(LessonAttachment.lesson_id.in_(lesson_ids))
        }
        state.subtitles = {
            s.id: s for s in db.query(LessonSubtitle).filter(LessonSubtitle.lesson_id.in_(lesson_ids))
        }
        return state

    def get_tree(self, db: Session, *, course_id: int) -> List[Section]:
        return (
            db.query(Section)
            .filter(Section.course_id == course_id)
            .options(
                selectinload(Section.lessons).selectinload(Lesson.questions).selectinload(QuizQuestion.options),
                selectinload(Section.lessons).selectinload(Lesson.attachments),
                selectinload(Section.lessons).selectinload(Lesson.subtitles),
            )
            .order_by(Section.order)
            .all()
        )

    def count_sections(self, db: Session, *, course_id: int) -> int:
        return db.query(Section).filter(Section.course_id == course_id).count()

    def _active_lessons(self, db: Session, course_id: int):
        return (
            db.query(Lesson)
            .join(Section, Lesson.section_id == Section.id)
            .filter(Section.course_id == course_id, Lesson.is_archived == False)
        )

    def count_lessons(self, db: Session, *, course_id: int) -> int:
        return self._active_lessons(db, course_id).count()

    def count_valid_lessons(self, db: Session, *, course_id: int) -> int:
        lessons = self._active_lessons(db, course_id).all()
        return sum(1 for lesson in lessons if (lesson.name or "").strip() and lesson.lesson_type in LessonTypeEnum)

    def archive(self, db: Session, records: Iterable) -> int:
        count = 0
        for record in records:
            record.is_archived = True
            count += 1
        db.flush()
        return count

    def delete(self, db: Session, records: Iterable) -> int:
        count = 0
        for record in records:
            db.delete(record)
            count += 1
        db.flush()
        return count

    def delete_sections(self, db: Session, sections: List[Section]) -> int:
        """Hard-delete sections. Lessons still pointing at them are detached but stay owned by the course."""
        section_ids = [s.id for s in sections]
        if not section_ids:
            return 0
        for lesson in db.query(Lesson).filter(Lesson.section_id.in_(section_ids)):
            lesson.section_id = None
        db.flush()
        return self.delete(db, sections)

    def snapshot_orders(self, db: Session, *, course_id: int) -> OrderSnapshot:
        snapshot = OrderSnapshot()
        snapshot.sections = [row.order for row in db.query(Section.order).filter(Section.course_id == course_id)]

        lesson_rows = (
            db.query(Lesson.id, Lesson.section_id, Lesson.order, Lesson.lesson_type)
            .join(Section, Lesson.section_id == Section.id)
            .filter(Section.course_id == course_id, Lesson.is_archived == False)
            .all()
        )
        lesson_types = {}
        for row in lesson_rows:
            snapshot.lessons.setdefault(row.section_id, []).append(row.order)
            lesson_types[row.id] = row.lesson_type

        question_rows = (
            db.query(QuizQuestion.id, QuizQuestion.lesson_id, QuizQuestion.order)
            .filter(QuizQuestion.lesson_id.in_(list(lesson_types)), QuizQuestion.is_archived == False)
            .all()
        )
        for row in question_rows:
            snapshot.questions.setdefault(row.lesson_id, []).append(row.order)
            if lesson_types[row.lesson_id] != LessonTypeEnum.QUIZ:
                snapshot.non_quiz_lessons_with_questions.append(row.lesson_id)
            snapshot.options.setdefault(row.id, [])

        option_rows = (
            db.query(QuizOption.question_id, QuizOption.order, QuizOption.is_correct_answer)
            .filter(QuizOption.question_id.in_(list(snapshot.options)), QuizOption.is_archived == False)
            .all()
        )
        for row in option_rows:
            snapshot.options[row.question_id].append((row.order, row.is_correct_answer))
        return snapshot

    def clone_tree(self, db: Session, *, source_course_id: int, target_course_id: int) -> int:
        """Copy the active curriculum of one course under another, recording ``original_id`` on every copy."""
        copied = 0
        for section in self.get_tree(db, course_id=source_course_id):
            new_section = Section(
                course_id=target_course_id,
                name=section.name,
                order=section.order,
                description=section.description,
                original_id=section.id,
            )
            db.add(new_section)
            db.flush()
            copied += 1
            for lesson in section.lessons:
                new_lesson = Lesson(
                    course_id=target_course_id,
                    section_id=new_section.id,
                    name=lesson.name,
                    description=lesson.description,
                    order=lesson.order,
                    lesson_type=lesson.lesson_type,
                    is_free_preview=lesson.is_free_preview,
                    video_source_type=lesson.video_source_type,
                    external_video_id=lesson.external_video_id,
                    video_duration_seconds=lesson.video_duration_seconds,
                    thumbnail_url=lesson.thumbnail_url,
                    text_content=lesson.text_content,
                    original_id=lesson.id,
                )
                db.add(new_lesson)
                db.flush()
                copied += 1
                for question in lesson.questions:
                    new_question = QuizQuestion(
                        lesson_id=new_lesson.id,
                        question_text=question.question_text,
                        explanation=question.explanation,
                        order=question.order,
                        original_id=question.id,
                    )
                    db.add(new_question)
                    db.flush()
                    for option in question.options:
                        db.add(QuizOption(
                            question_id=new_question.id,
                            option_text=option.option_text,
                            is_correct_answer=option.is_correct_answer,
                            order=option.order,
                            original_id=option.id,
                        ))
                for attachment in lesson.attachments:
                    db.add(LessonAttachment(
                        lesson_id=new_lesson.id,
                        file_name=attachment.file_name,
                        file_url=attachment.file_url,
                        file_type=attachment.file_type,
                        file_size=attachment.file_size,
                        cloud_storage_id=attachment.cloud_storage_id,
                        original_id=attachment.id,
                    ))
                for subtitle in lesson.subtitles:
                    db.add(LessonSubtitle(
                        lesson_id=new_lesson.id,
                        language_code=subtitle.language_code,
                        language_name=subtitle.language_name,
                        subtitle_url=subtitle.subtitle_url,
                        is_default=subtitle.is_default,
                        original_id=subtitle.id,
                    ))
        db.flush()
        return copied

    def course_assets(self, db: Session, *, course: Course) -> List[AssetRef]:
        """Every stored blob a course and its active curriculum point at."""
        assets = []
        if course.thumbnail_public_id:
            assets.append(AssetRef(public_id=course.thumbnail_public_id, resource_type=AssetResourceTypeEnum.IMAGE))
        if course.intro_video_public_id:
            assets.append(AssetRef(public_id=course.intro_video_public_id, resource_type=AssetResourceTypeEnum.VIDEO))
        for lesson in self._active_lessons(db, course.id):
            if is_platform_video(lesson):
                assets.append(AssetRef(public_id=lesson.external_video_id, resource_type=AssetResourceTypeEnum.VIDEO))
        attachments = (
            db.query(LessonAttachment)
            .join(Lesson, LessonAttachment.lesson_id == Lesson.id)
            .filter(Lesson.course_id == course.id, LessonAttachment.cloud_storage_id.isnot(None))
        )
        for attachment in attachments:
            assets.append(AssetRef(public_id=attachment.cloud_storage_id, resource_type=AssetResourceTypeEnum.RAW))
        return assets

    def count_asset_references(self, db: Session, *, public_id: str, exclude_course_id: Optional[int] = None) -> int:
        """How many live records still point at a blob. Archived update drafts do not count."""
        course_query = db.query(Course).filter(
            (Course.thumbnail_public_id == public_id) | (Course.intro_video_public_id == public_id),
            _not_archived_draft(),
        )
        lesson_query = (
            db.query(Lesson)
            .join(Section, Lesson.section_id == Section.id)
            .join(Course, Section.course_id == Course.id)
            .filter(
                Lesson.is_archived == False,
                Lesson.video_source_type == VideoSourceTypeEnum.CLOUDINARY,
                Lesson.external_video_id == public_id,
                _not_archived_draft(),
            )
        )
        attachment_query = (
            db.query(LessonAttachment)
            .join(Lesson, LessonAttachment.lesson_id == Lesson.id)
            .join(Section, Lesson.section_id == Section.id)
            .join(Course, Section.course_id == Course.id)
            .filter(LessonAttachment.cloud_storage_id == public_id, _not_archived_draft())
        )
        if exclude_course_id:
            course_query = course_query.filter(Course.id != exclude_course_id)
            lesson_query = lesson_query.filter(Course.id != exclude_course_id)
            attachment_query = attachment_query.filter(Course.id != exclude_course_id)
        return course_query.count() + lesson_query.count() + attachment_query.count()

curriculum = CRUDCurriculum()
