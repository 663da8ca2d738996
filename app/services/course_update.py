import logging
from typing import Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.constants import AssetResourceTypeEnum, CourseStatusEnum
from app.core.database import transaction
from app.crud.base import apply_changes
from app.crud.course import course as crud_course
from app.crud.curriculum import CurriculumState, curriculum as crud_curriculum
from app.models.course import Course as CourseModel
from app.schemas.asset import AssetRef
from app.schemas.course import Course as CourseSchema
from app.schemas.lesson import CONTENT_COLUMNS
from app.schemas.user import UserContext
from app.services.cloudinary import cloudinary_service
from app.services.course import course_service
from app.services.curriculum import DesiredNode, SyncResult, curriculum_service
from app.utils.permission import PermissionHelper as permission_helper
from app.utils.slug import unique_course_slug

logger = logging.getLogger(__name__)

# Course columns an update draft carries over to its live course.
COURSE_FIELDS = (
    "name", "short_description", "description", "requirements", "learning_outcomes",
    "original_price", "discounted_price", "category_id", "level_id", "language",
    "thumbnail_url", "thumbnail_public_id", "intro_video_url", "intro_video_public_id",
)
SECTION_FIELDS = ("name", "order", "description")
LESSON_FIELDS = ("name", "description", "order", "lesson_type", "is_free_preview") + CONTENT_COLUMNS
QUESTION_FIELDS = ("question_text", "explanation", "order")
OPTION_FIELDS = ("option_text", "is_correct_answer", "order")
ATTACHMENT_FIELDS = ("file_name", "file_url", "file_type", "file_size", "cloud_storage_id")
SUBTITLE_FIELDS = ("language_code", "language_name", "subtitle_url")


def _columns(record, fields) -> Dict:
    return {name: getattr(record, name) for name in fields}


class CourseUpdateService:
    """Edits to a published course go through a DRAFT clone that is merged back on approval."""

    def create_update_session(self, db: Session, course_id: int, current_user_context: UserContext) -> CourseSchema:
        live = course_service.get_course_or_404(db, course_id)
        permission_helper.require_course_owner_or_admin(current_user_context, live)
        if live.status != CourseStatusEnum.PUBLISHED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only published courses can be updated through an update draft."
            )
        if crud_course.get_open_update_draft(db, live_course_id=live.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This course already has an update draft in progress."
            )

        draft_data = _columns(live, COURSE_FIELDS)
        draft_data.update(
            slug=unique_course_slug(db, f"{live.name} update"),
            instructor_id=live.instructor_id,
            status=CourseStatusEnum.DRAFT,
            live_course_id=live.id,
            curriculum_version=0,
        )
        with transaction(db):
            draft = crud_course.create(db, obj_in=draft_data)
            copied = crud_curriculum.clone_tree(db, source_course_id=live.id, target_course_id=draft.id)

        logger.info(f"Update draft {draft.id} opened for course {live.id} ({copied} nodes cloned)")
        return CourseSchema.model_validate(draft)

    async def cancel_update(self, db: Session, draft_id: int, current_user_context: UserContext) -> None:
        draft = course_service.get_course_or_404(db, draft_id)
        if draft.live_course_id is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Course is not an update draft.")
        permission_helper.require_course_mutation_permission(current_user_context, draft)

        assets = crud_curriculum.course_assets(db, course=draft)
        with transaction(db):
            crud_course.remove_tree(db, db_obj=draft)

        logger.info(f"Update draft {draft_id} cancelled by account {current_user_context.account.id}")
        # Blobs shared with the live course are still referenced there and survive.
        await cloudinary_service.delete_unreferenced(db, assets)
        await cache.invalidate_curriculum(draft_id)

    def plan_from_draft(self, db: Session, *, draft: CourseModel, state: CurriculumState) -> List[DesiredNode]:
        """Desired tree of the live course, built from the draft. Cloned nodes map back via ``original_id``."""

        def live_id(level: str, record) -> Optional[int]:
            return record.original_id if record.original_id in state.level(level) else None

        nodes = []
        for section in crud_curriculum.get_tree(db, course_id=draft.id):
            section_node = DesiredNode("sections", live_id("sections", section), _columns(section, SECTION_FIELDS))
            for lesson in section.lessons:
                lesson_node = DesiredNode("lessons", live_id("lessons", lesson), _columns(lesson, LESSON_FIELDS))
                for question in lesson.questions:
                    question_node = DesiredNode(
                        "questions", live_id("questions", question), _columns(question, QUESTION_FIELDS)
                    )
                    question_node.children = [
                        DesiredNode("options", live_id("options", option), _columns(option, OPTION_FIELDS))
                        for option in question.options
                    ]
                    lesson_node.children.append(question_node)
                lesson_node.children.extend(
                    DesiredNode("attachments", live_id("attachments", attachment), _columns(attachment, ATTACHMENT_FIELDS))
                    for attachment in lesson.attachments
                )
                lesson_node.children.extend(
                    DesiredNode(
                        "subtitles", live_id("subtitles", subtitle), _columns(subtitle, SUBTITLE_FIELDS),
                        is_default=subtitle.is_default,
                    )
                    for subtitle in lesson.subtitles
                )
                section_node.children.append(lesson_node)
            nodes.append(section_node)
        return nodes

    def merge_into_live(self, db: Session, *, draft: CourseModel, result: SyncResult) -> CourseModel:
        """Apply an approved draft to its live course. Runs inside the caller's transaction."""
        live = crud_course.get(db, id=draft.live_course_id)
        if not live:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The live course of this update draft no longer exists."
            )

        course_data = _columns(draft, COURSE_FIELDS)
        if draft.name != live.name:
            course_data["slug"] = unique_course_slug(db, draft.name, exclude_id=live.id)
        for public_id_field, resource_type in (
            ("thumbnail_public_id", AssetResourceTypeEnum.IMAGE),
            ("intro_video_public_id", AssetResourceTypeEnum.VIDEO),
        ):
            previous = getattr(live, public_id_field)
            if previous and previous != course_data[public_id_field]:
                result.assets_to_delete.append(AssetRef(public_id=previous, resource_type=resource_type))
        apply_changes(live, course_data)

        state = crud_curriculum.load_state(db, course_id=live.id)
        nodes = self.plan_from_draft(db, draft=draft, state=state)
        curriculum_service.apply_plan(db, course=live, nodes=nodes, state=state, result=result)

        draft.status = CourseStatusEnum.ARCHIVED
        db.flush()
        logger.info(f"Update draft {draft.id} merged into course {live.id}")
        return live

course_update_service = CourseUpdateService()
