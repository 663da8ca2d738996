import logging
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.constants import AssetResourceTypeEnum, CourseStatusEnum, RoleEnum
from app.core.database import transaction
from app.crud.account import account as crud_account
from app.crud.course import course as crud_course
from app.crud.curriculum import curriculum as crud_curriculum
from app.models.course import Course as CourseModel
from app.schemas.asset import AssetRef
from app.schemas.course import Course as CourseSchema, CourseCreate, CourseUpdate
from app.schemas.user import UserContext
from app.services.cloudinary import cloudinary_service
from app.utils.permission import PermissionHelper as permission_helper
from app.utils.slug import unique_course_slug

logger = logging.getLogger(__name__)


class CourseService:

    def get_course_or_404(self, db: Session, course_id: int) -> CourseModel:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found.")
        return course

    def _resolve_instructor_id(self, db: Session, course_in: CourseCreate, current_user_context: UserContext) -> int:
        if not course_in.instructor_id or course_in.instructor_id == current_user_context.account.id:
            return current_user_context.account.id
        if not permission_helper.is_admin(current_user_context):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can create courses on behalf of another instructor."
            )
        instructor = crud_account.get(db, id=course_in.instructor_id)
        if not instructor or instructor.role != RoleEnum.INSTRUCTOR:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Instructor not found.")
        return instructor.id

    def create_course(self, db: Session, course_in: CourseCreate, current_user_context: UserContext) -> CourseSchema:
        permission_helper.require_course_creator(current_user_context)
        instructor_id = self._resolve_instructor_id(db, course_in, current_user_context)

        course_data = course_in.model_dump(exclude={"instructor_id"})
        course_data.update(
            instructor_id=instructor_id,
            slug=unique_course_slug(db, course_in.name),
            status=CourseStatusEnum.DRAFT,
        )
        with transaction(db):
            new_course = crud_course.create(db, obj_in=course_data)

        logger.info(f"Course {new_course.id} created by account {current_user_context.account.id}")
        return CourseSchema.model_validate(new_course)

    def get_course(self, db: Session, course_id: int, current_user_context: UserContext) -> CourseSchema:
        course = self.get_course_or_404(db, course_id)
        if course.status != CourseStatusEnum.PUBLISHED and not permission_helper.can_view_course(db, current_user_context, course):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found.")
        return CourseSchema.model_validate(course)

    def list_courses(
        self, db: Session, current_user_context: UserContext, *, course_status: Optional[CourseStatusEnum] = None,
        is_featured: Optional[bool] = None, instructor_id: Optional[int] = None, skip: int = 0, limit: int = 100
    ) -> List[CourseSchema]:
        own_courses = instructor_id is not None and instructor_id == current_user_context.account.id
        if not permission_helper.is_admin(current_user_context) and not own_courses:
            course_status = CourseStatusEnum.PUBLISHED
        courses = crud_course.get_filtered(
            db, status=course_status, is_featured=is_featured, instructor_id=instructor_id, skip=skip, limit=limit
        )
        return [CourseSchema.model_validate(course) for course in courses]

    def update_course(self, db: Session, course_id: int, course_in: CourseUpdate, current_user_context: UserContext) -> CourseSchema:
        course = self.get_course_or_404(db, course_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)

        update_data = course_in.model_dump(exclude_unset=True)
        if "name" in update_data:
            if not update_data["name"]:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Course name cannot be empty.")
            if update_data["name"] != course.name:
                update_data["slug"] = unique_course_slug(db, update_data["name"], exclude_id=course.id)

        original_price = update_data.get("original_price", course.original_price)
        discounted_price = update_data.get("discounted_price", course.discounted_price)
        if original_price is not None and discounted_price is not None and discounted_price > original_price:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Discounted price cannot be greater than the original price."
            )

        with transaction(db):
            crud_course.update(db, db_obj=course, obj_in=update_data)
        return CourseSchema.model_validate(course)

    async def delete_course(self, db: Session, course_id: int, current_user_context: UserContext) -> None:
        course = self.get_course_or_404(db, course_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)

        assets = crud_curriculum.course_assets(db, course=course)
        with transaction(db):
            crud_course.remove_tree(db, db_obj=course)

        logger.info(f"Course {course_id} deleted by account {current_user_context.account.id}")
        await cloudinary_service.delete_unreferenced(db, assets)
        await cache.invalidate_curriculum(course_id)

    async def upload_thumbnail(self, db: Session, course_id: int, file: bytes, current_user_context: UserContext) -> CourseSchema:
        course = self.get_course_or_404(db, course_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)

        stored = await cloudinary_service.upload_image(file, folder="course-thumbnails")
        previous = course.thumbnail_public_id
        with transaction(db):
            course.thumbnail_url = stored.url
            course.thumbnail_public_id = stored.public_id

        if previous and previous != stored.public_id:
            await cloudinary_service.delete_unreferenced(
                db, [AssetRef(public_id=previous, resource_type=AssetResourceTypeEnum.IMAGE)]
            )
        return CourseSchema.model_validate(course)

    async def upload_intro_video(self, db: Session, course_id: int, file: bytes, current_user_context: UserContext) -> CourseSchema:
        course = self.get_course_or_404(db, course_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)

        stored = await cloudinary_service.upload_video(file, folder="course-intro-videos")
        previous = course.intro_video_public_id
        with transaction(db):
            course.intro_video_url = stored.url
            course.intro_video_public_id = stored.public_id

        if previous and previous != stored.public_id:
            await cloudinary_service.delete_unreferenced(
                db, [AssetRef(public_id=previous, resource_type=AssetResourceTypeEnum.VIDEO)]
            )
        return CourseSchema.model_validate(course)

    def archive_course(self, db: Session, course_id: int, current_user_context: UserContext) -> CourseSchema:
        course = self.get_course_or_404(db, course_id)
        permission_helper.require_course_owner_or_admin(current_user_context, course)
        if course.status != CourseStatusEnum.PUBLISHED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only published courses can be archived. Current status: {course.status.value}."
            )
        with transaction(db):
            course.status = CourseStatusEnum.ARCHIVED
            course.is_featured = False

        logger.info(f"Course {course_id} archived by account {current_user_context.account.id}")
        return CourseSchema.model_validate(course)

course_service = CourseService()
