from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.course_enrollment import CourseEnrollment

class CRUDCourseEnrollment(CRUDBase[CourseEnrollment, CourseEnrollment, CourseEnrollment]):

    def is_enrolled(self, db: Session, *, account_id: int, course_id: int) -> bool:
        return db.query(
            db.query(self.model)
            .filter(self.model.account_id == account_id, self.model.course_id == course_id)
            .exists()
        ).scalar()

course_enrollment = CRUDCourseEnrollment(CourseEnrollment)
