import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CLOUDINARY_CLOUD_NAME", "test-cloud")
os.environ.setdefault("CLOUDINARY_API_KEY", "test-key")
os.environ.setdefault("CLOUDINARY_API_SECRET", "test-secret")
os.environ["CACHE_ENABLED"] = "false"
os.environ["YOUTUBE_API_KEY"] = ""

import uuid

import cloudinary.uploader
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import main
from app.core.constants import CourseStatusEnum, LessonTypeEnum, RoleEnum
from app.core.database import Base, get_db
from app.crud.course import course as crud_course
from app.models.account import Account
from app.models.course_enrollment import CourseEnrollment
from app.models.lesson import Lesson
from app.models.section import Section
from tests.helpers.auth import auth_headers


@pytest.fixture(scope="function")
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[get_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


class FakeAssetStore:
    """Stands in for the Cloudinary uploader and records what was stored and destroyed."""

    def __init__(self):
        self.uploaded = []
        self.destroyed = []

    def upload(self, file, **options):
        public_id = f"{options.get('folder', 'test')}/{uuid.uuid4().hex[:10]}"
        self.uploaded.append((public_id, options))
        result = {
            "secure_url": f"https://res.cloudinary.com/test-cloud/{public_id}",
            "public_id": public_id,
            "bytes": len(file),
        }
        if options.get("resource_type") == "video":
            result["duration"] = 93.6
        return result

    def destroy(self, public_id, **options):
        self.destroyed.append(public_id)
        return {"result": "ok"}


@pytest.fixture(autouse=True)
def asset_store(monkeypatch):
    store = FakeAssetStore()
    monkeypatch.setattr(cloudinary.uploader, "upload", store.upload)
    monkeypatch.setattr(cloudinary.uploader, "destroy", store.destroy)
    return store


@pytest.fixture
def account_factory(db_session):
    def _account_factory(role: RoleEnum = RoleEnum.STUDENT, is_active: bool = True) -> Account:
        account = Account(
            full_name=f"Test {role.value.title()}",
            email=f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@test.com",
            role=role,
            is_active=is_active,
        )
        db_session.add(account)
        db_session.commit()
        db_session.refresh(account)
        return account
    return _account_factory


@pytest.fixture
def instructor(account_factory):
    return account_factory(RoleEnum.INSTRUCTOR)


@pytest.fixture
def admin(account_factory):
    return account_factory(RoleEnum.ADMIN)


@pytest.fixture
def student(account_factory):
    return account_factory(RoleEnum.STUDENT)


@pytest.fixture
def instructor_headers(instructor):
    return auth_headers(instructor)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def student_headers(student):
    return auth_headers(student)


@pytest.fixture
def course_factory(db_session, instructor):
    def _course_factory(owner: Account = None, status: CourseStatusEnum = CourseStatusEnum.DRAFT, **fields):
        data = {
            "name": f"Course {uuid.uuid4().hex[:6]}",
            "slug": f"course-{uuid.uuid4().hex[:10]}",
            "instructor_id": (owner or instructor).id,
            "status": status,
        }
        data.update(fields)
        course = crud_course.create(db_session, obj_in=data)
        db_session.commit()
        db_session.refresh(course)
        return course
    return _course_factory


@pytest.fixture
def enroll(db_session):
    def _enroll(account: Account, course_id: int) -> None:
        db_session.add(CourseEnrollment(account_id=account.id, course_id=course_id))
        db_session.commit()
    return _enroll


@pytest.fixture
def lesson_factory(db_session):
    def _lesson_factory(course, lesson_type: LessonTypeEnum = LessonTypeEnum.QUIZ, **fields):
        section = db_session.query(Section).filter(Section.course_id == course.id).first()
        if section is None:
            section = Section(course_id=course.id, name="Section 1", order=0)
            db_session.add(section)
            db_session.flush()
        order = db_session.query(Lesson).filter(Lesson.section_id == section.id).count()
        data = {"name": f"Lesson {order + 1}", "order": order, "lesson_type": lesson_type, "is_free_preview": False}
        if lesson_type == LessonTypeEnum.TEXT:
            data["text_content"] = "Some text"
        data.update(fields)
        lesson = Lesson(course_id=course.id, section_id=section.id, **data)
        db_session.add(lesson)
        db_session.commit()
        db_session.refresh(lesson)
        return lesson
    return _lesson_factory
