from typing import List, Optional
from sqlalchemy.orm import Session

from app.core.constants import ApprovalStatusEnum
from app.crud.base import CRUDBase
from app.models.course_approval_request import CourseApprovalRequest

class CRUDCourseApprovalRequest(CRUDBase[CourseApprovalRequest, CourseApprovalRequest, CourseApprovalRequest]):

    def get_pending_for_course(self, db: Session, *, course_id: int) -> Optional[CourseApprovalRequest]:
        return (
            db.query(self.model)
            .filter(self.model.course_id == course_id, self.model.status == ApprovalStatusEnum.PENDING)
            .first()
        )

    def get_filtered(
        self, db: Session, *, status: Optional[ApprovalStatusEnum] = None, course_id: Optional[int] = None,
        skip: int = 0, limit: int = 100
    ) -> List[CourseApprovalRequest]:
        query = db.query(self.model)
        if status:
            query = query.filter(self.model.status == status)
        if course_id:
            query = query.filter(self.model.course_id == course_id)
        return query.order_by(self.model.created_at.desc(), self.model.id.desc()).offset(skip).limit(limit).all()

course_approval_request = CRUDCourseApprovalRequest(CourseApprovalRequest)
