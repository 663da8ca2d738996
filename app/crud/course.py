from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.constants import CourseStatusEnum
from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.course_approval_request import CourseApprovalRequest
from app.models.course_enrollment import CourseEnrollment
from app.models.lesson import Lesson, LessonAttachment, LessonSubtitle
from app.models.quiz import QuizOption, QuizQuestion
from app.models.quiz_attempt import QuizAttempt, QuizAttemptAnswer
from app.models.section import Section
from app.schemas.course import CourseCreate, CourseUpdate

class CRUDCourse(CRUDBase[Course, CourseCreate, CourseUpdate]):

    def slug_exists(self, db: Session, *, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = db.query(self.model.id).filter(self.model.slug == slug)
        if exclude_id:
            query = query.filter(self.model.id != exclude_id)
        return query.first() is not None

    def get_filtered(
        self, db: Session, *, status: Optional[CourseStatusEnum] = None, is_featured: Optional[bool] = None,
        instructor_id: Optional[int] = None, skip: int = 0, limit: int = 100
    ) -> List[Course]:
        query = db.query(self.model)
        if status:
            query = query.filter(self.model.status == status)
        if is_featured is not None:
            query = query.filter(self.model.is_featured == is_featured)
        if instructor_id:
            query = query.filter(self.model.instructor_id == instructor_id)
        return query.order_by(self.model.id.desc()).offset(skip).limit(limit).all()

    def get_open_update_draft(self, db: Session, *, live_course_id: int) -> Optional[Course]:
        return (
            db.query(self.model)
            .filter(self.model.live_course_id == live_course_id, self.model.status != CourseStatusEnum.ARCHIVED)
            .first()
        )

    def remove_tree(self, db: Session, *, db_obj: Course) -> None:
        """Delete a course with its curriculum, attempts, requests and enrollments."""
        section_ids = [row.id for row in db.query(Section.id).filter(Section.course_id == db_obj.id)]
        lesson_ids = [row.id for row in db.query(Lesson.id).filter(Lesson.course_id == db_obj.id)]
        question_ids = [row.id for row in db.query(QuizQuestion.id).filter(QuizQuestion.lesson_id.in_(lesson_ids))]
        attempt_ids = [row.id for row in db.query(QuizAttempt.id).filter(QuizAttempt.lesson_id.in_(lesson_ids))]

        db.query(QuizAttemptAnswer).filter(QuizAttemptAnswer.attempt_id.in_(attempt_ids)).delete(synchronize_session=False)
        db.query(QuizAttempt).filter(QuizAttempt.id.in_(attempt_ids)).delete(synchronize_session=False)
        db.query(QuizOption).filter(QuizOption.question_id.in_(question_ids)).delete(synchronize_session=False)
        db.query(QuizQuestion).filter(QuizQuestion.id.in_(question_ids)).delete(synchronize_session=False)
        db.query(LessonAttachment).filter(LessonAttachment.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
        db.query(LessonSubtitle).filter(LessonSubtitle.lesson_id.in_(lesson_ids)).delete(synchronize_session=False)
        db.query(Lesson).filter(Lesson.id.in_(lesson_ids)).delete(synchronize_session=False)
        db.query(Section).filter(Section.id.in_(section_ids)).delete(synchronize_session=False)
        db.query(CourseApprovalRequest).filter(CourseApprovalRequest.course_id == db_obj.id).delete(synchronize_session=False)
        db.query(CourseEnrollment).filter(CourseEnrollment.course_id == db_obj.id).delete(synchronize_session=False)
        db.query(Course).filter(Course.live_course_id == db_obj.id).update(
            {Course.live_course_id: None}, synchronize_session=False
        )
        db.delete(db_obj)
        db.flush()

course = CRUDCourse(Course)
