from typing import List, Optional
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.lesson import Lesson, LessonAttachment, LessonSubtitle
from app.models.section import Section

class CRUDLesson(CRUDBase[Lesson, Lesson, Lesson]):

    def get_course_id(self, db: Session, *, lesson: Lesson) -> Optional[int]:
        row = db.query(Section.course_id).filter(Section.id == lesson.section_id).first()
        return row.course_id if row else None


class CRUDLessonAttachment(CRUDBase[LessonAttachment, LessonAttachment, LessonAttachment]):
    pass


class CRUDLessonSubtitle(CRUDBase[LessonSubtitle, LessonSubtitle, LessonSubtitle]):

    def get_by_lesson(self, db: Session, *, lesson_id: int) -> List[LessonSubtitle]:
        return db.query(self.model).filter(self.model.lesson_id == lesson_id).order_by(self.model.id).all()

    def set_default(self, db: Session, *, lesson_id: int, subtitle_id: Optional[int]) -> None:
        """Clear the default flag on every subtitle of the lesson, then set it on one."""
        for subtitle in self.get_by_lesson(db, lesson_id=lesson_id):
            subtitle.is_default = subtitle.id == subtitle_id
        db.flush()

lesson = CRUDLesson(Lesson)
lesson_attachment = CRUDLessonAttachment(LessonAttachment)
lesson_subtitle = CRUDLessonSubtitle(LessonSubtitle)
