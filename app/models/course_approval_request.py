from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import ApprovalRequestTypeEnum, ApprovalStatusEnum

class CourseApprovalRequest(Base):
    __tablename__ = "course_approval_requests"

    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    instructor_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    request_type = Column(Enum(ApprovalRequestTypeEnum), nullable=False)
    status = Column(Enum(ApprovalStatusEnum), nullable=False, default=ApprovalStatusEnum.PENDING, index=True)
    instructor_notes = Column(Text, nullable=True)
    admin_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    course = relationship("Course", viewonly=True)
