import uuid

from slugify import slugify
from sqlalchemy.orm import Session

from app.crud.course import course as crud_course


def course_slug(name: str) -> str:
    return slugify(name, max_length=280, word_boundary=True) or "course"


def unique_course_slug(db: Session, name: str, exclude_id: int = None) -> str:
    base = course_slug(name)
    slug = base
    while crud_course.slug_exists(db, slug=slug, exclude_id=exclude_id):
        slug = f"{base}-{uuid.uuid4().hex[:6]}"
    return slug
