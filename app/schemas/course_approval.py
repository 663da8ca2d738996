from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from app.core.constants import ApprovalRequestTypeEnum, ApprovalStatusEnum
from app.schemas.base import CamelModel


class CourseSubmission(CamelModel):
    notes: Optional[str] = Field(None, max_length=2000)


class CourseReview(CamelModel):
    decision: ApprovalStatusEnum
    admin_notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("decision")
    @classmethod
    def not_pending(cls, v):
        if v == ApprovalStatusEnum.PENDING:
            raise ValueError("Decision must be APPROVED, REJECTED or NEEDS_REVISION.")
        return v


class CourseApprovalRequest(CamelModel):
    id: int
    course_id: int
    instructor_id: int
    request_type: ApprovalRequestTypeEnum
    status: ApprovalStatusEnum
    instructor_notes: Optional[str] = None
    admin_id: Optional[int] = None
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
