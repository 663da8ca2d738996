from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Enum, Numeric, Float
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import CourseStatusEnum

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), index=True, nullable=False)
    slug = Column(String(300), unique=True, index=True, nullable=False)
    short_description = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    learning_outcomes = Column(Text, nullable=True)
    original_price = Column(Numeric(10, 2), nullable=True)
    discounted_price = Column(Numeric(10, 2), nullable=True)
    instructor_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    category_id = Column(Integer, nullable=True)
    level_id = Column(Integer, nullable=True)
    language = Column(String(10), nullable=True)
    status = Column(Enum(CourseStatusEnum), nullable=False, default=CourseStatusEnum.DRAFT, index=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    published_at = Column(DateTime(timezone=True), nullable=True)
    average_rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)
    thumbnail_url = Column(String, nullable=True)
    thumbnail_public_id = Column(String, nullable=True)
    intro_video_url = Column(String, nullable=True)
    intro_video_public_id = Column(String, nullable=True)
    live_course_id = Column(Integer, ForeignKey("courses.id"), nullable=True, index=True)
    curriculum_version = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    instructor = relationship("Account")
    sections = relationship("Section", order_by="Section.order", viewonly=True)
