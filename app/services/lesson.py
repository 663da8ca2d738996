import logging
from typing import Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.constants import AssetResourceTypeEnum, LessonTypeEnum, VideoSourceTypeEnum
from app.core.database import transaction
from app.crud.course import course as crud_course
from app.crud.lesson import lesson as crud_lesson, lesson_attachment as crud_attachment
from app.models.course import Course
from app.models.lesson import Lesson
from app.schemas.asset import AssetRef
from app.schemas.curriculum import AttachmentRead, LessonRead, attachment_to_read, lesson_to_read
from app.schemas.lesson import is_platform_video
from app.schemas.user import UserContext
from app.services.cloudinary import cloudinary_service
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)


class LessonService:

    def get_lesson_with_course(self, db: Session, lesson_id: int) -> Tuple[Lesson, Course]:
        """Active lesson and the course it belongs to; 404 if either is gone."""
        lesson = crud_lesson.get(db, id=lesson_id)
        course_id = crud_lesson.get_course_id(db, lesson=lesson) if lesson else None
        course = crud_course.get(db, id=course_id) if course_id else None
        if not lesson or not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found.")
        return lesson, course

    async def upload_lesson_video(self, db: Session, lesson_id: int, file: bytes, current_user_context: UserContext) -> LessonRead:
        lesson, course = self.get_lesson_with_course(db, lesson_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)
        if lesson.lesson_type != LessonTypeEnum.VIDEO:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Videos can only be uploaded to VIDEO lessons."
            )

        stored = await cloudinary_service.upload_video(file, folder=f"courses/{course.id}/lessons")
        previous = lesson.external_video_id if is_platform_video(lesson) else None
        with transaction(db):
            lesson.video_source_type = VideoSourceTypeEnum.CLOUDINARY
            lesson.external_video_id = stored.public_id
            lesson.video_duration_seconds = stored.duration_seconds
            course.curriculum_version = (course.curriculum_version or 0) + 1

        logger.info(f"Video {stored.public_id} uploaded for lesson {lesson_id}")
        if previous and previous != stored.public_id:
            await cloudinary_service.delete_unreferenced(
                db, [AssetRef(public_id=previous, resource_type=AssetResourceTypeEnum.VIDEO)]
            )
        await cache.invalidate_curriculum(course.id)
        return lesson_to_read(lesson)

    async def upload_attachment_file(
        self, db: Session, attachment_id: int, file: bytes, content_type: str, current_user_context: UserContext
    ) -> AttachmentRead:
        attachment = crud_attachment.get(db, id=attachment_id)
        if not attachment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attachment not found.")
        _, course = self.get_lesson_with_course(db, attachment.lesson_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)

        stored = await cloudinary_service.upload_raw(file, folder=f"courses/{course.id}/attachments")
        previous = attachment.cloud_storage_id
        with transaction(db):
            attachment.file_url = stored.url
            attachment.cloud_storage_id = stored.public_id
            attachment.file_type = content_type
            attachment.file_size = stored.bytes if stored.bytes is not None else len(file)
            course.curriculum_version = (course.curriculum_version or 0) + 1

        if previous and previous != stored.public_id:
            await cloudinary_service.delete_unreferenced(
                db, [AssetRef(public_id=previous, resource_type=AssetResourceTypeEnum.RAW)]
            )
        await cache.invalidate_curriculum(course.id)
        return attachment_to_read(attachment)

lesson_service = LessonService()
