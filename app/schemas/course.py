from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.core.constants import CourseStatusEnum
from app.schemas.base import CamelModel


class CourseBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    short_description: Optional[str] = Field(None, max_length=500)
    description: Optional[str] = None
    requirements: Optional[str] = None
    learning_outcomes: Optional[str] = None
    original_price: Optional[Decimal] = Field(None, ge=0)
    discounted_price: Optional[Decimal] = Field(None, ge=0)
    category_id: Optional[int] = None
    level_id: Optional[int] = None
    language: Optional[str] = Field(None, max_length=10)

    @model_validator(mode="after")
    def check_prices(self):
        if self.original_price is not None and self.discounted_price is not None:
            if self.discounted_price > self.original_price:
                raise ValueError("Discounted price cannot be greater than the original price.")
        return self


class CourseCreate(CourseBase):
    # Only honoured for admins creating a course on an instructor's behalf.
    instructor_id: Optional[int] = None


class CourseUpdate(CourseBase):
    """Generic update. Status and instructor cannot be changed here."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)


class CourseFeatureUpdate(CamelModel):
    is_featured: bool


class Course(CamelModel):
    id: int
    name: str
    slug: str
    short_description: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[str] = None
    learning_outcomes: Optional[str] = None
    original_price: Optional[Decimal] = None
    discounted_price: Optional[Decimal] = None
    instructor_id: int
    category_id: Optional[int] = None
    level_id: Optional[int] = None
    language: Optional[str] = None
    status: CourseStatusEnum
    is_featured: bool
    published_at: Optional[datetime] = None
    average_rating: float = 0.0
    review_count: int = 0
    thumbnail_url: Optional[str] = None
    intro_video_url: Optional[str] = None
    live_course_id: Optional[int] = None
    curriculum_version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
