import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.constants import (
    AssetResourceTypeEnum, CourseStatusEnum, LessonTypeEnum, PENDING_UPLOAD_URL, VideoSourceTypeEnum,
)
from app.core.database import transaction
from app.crud.base import apply_changes
from app.crud.course import course as crud_course
from app.crud.curriculum import CurriculumState, curriculum as crud_curriculum
from app.crud.lesson import lesson_subtitle as crud_subtitle
from app.models.course import Course
from app.models.lesson import Lesson, LessonAttachment, LessonSubtitle
from app.models.quiz import QuizOption, QuizQuestion
from app.models.section import Section
from app.schemas.asset import AssetRef
from app.schemas.curriculum import (
    CurriculumSyncPayload, CurriculumTree, LessonPayload, SyncSummary,
    lesson_base_columns, option_columns, question_columns, section_columns, section_to_read, subtitle_columns,
)
from app.schemas.lesson import (
    LessonContent, QuizContent, TextContent, VideoContent, content_from_record, flatten_content, is_platform_video,
)
from app.schemas.user import UserContext
from app.services.cloudinary import cloudinary_service
from app.services.video import video_service
from app.utils.ordering import require_sequential_order
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)

LEVEL_MODELS = {
    "sections": Section,
    "lessons": Lesson,
    "questions": QuizQuestion,
    "options": QuizOption,
    "attachments": LessonAttachment,
    "subtitles": LessonSubtitle,
}
LEVEL_LABELS = {
    "sections": "Section",
    "lessons": "Lesson",
    "questions": "Question",
    "options": "Option",
    "attachments": "Attachment",
    "subtitles": "Subtitle",
}
PARENT_COLUMNS = {
    "sections": "course_id",
    "lessons": "section_id",
    "questions": "lesson_id",
    "options": "question_id",
    "attachments": "lesson_id",
    "subtitles": "lesson_id",
}


@dataclass
class DesiredNode:
    """One node of the tree the client wants. ``id`` is None for nodes to create."""
    level: str
    id: Optional[int]
    columns: Dict[str, Any]
    create_columns: Dict[str, Any] = field(default_factory=dict)
    children: List["DesiredNode"] = field(default_factory=list)
    is_default: bool = False
    record: Any = None


@dataclass
class SyncResult:
    created: Counter = field(default_factory=Counter)
    updated: Counter = field(default_factory=Counter)
    archived: Counter = field(default_factory=Counter)
    deleted: Counter = field(default_factory=Counter)
    assets_to_delete: List[AssetRef] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(sum(counter.values()) for counter in (self.created, self.updated, self.archived, self.deleted))

    def summary(self, version: int) -> SyncSummary:
        return SyncSummary(
            created={level: self.created[level] for level in LEVEL_MODELS},
            updated={level: self.updated[level] for level in LEVEL_MODELS},
            archived={level: self.archived[level] for level in ("lessons", "questions", "options")},
            deleted={level: self.deleted[level] for level in ("sections", "attachments", "subtitles")},
            version=version,
        )


def _walk(nodes: List[DesiredNode]):
    for node in nodes:
        yield node
        yield from _walk(node.children)


class CurriculumService:

    def _get_course(self, db: Session, course_id: int) -> Course:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found.")
        return course

    # Reads

    async def get_curriculum(self, db: Session, *, course_id: int, current_user_context: UserContext) -> CurriculumTree:
        course = self._get_course(db, course_id)
        can_manage = permission_helper.is_admin(current_user_context) or permission_helper.is_course_owner(current_user_context, course)
        enrolled = permission_helper.can_view_course(db, current_user_context, course)
        if not enrolled and course.status != CourseStatusEnum.PUBLISHED:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found.")

        cached = await cache.get_curriculum(course.id)
        if cached is not None:
            tree = CurriculumTree.model_validate(cached)
        else:
            tree = self.build_tree(db, course=course)
            await cache.set_curriculum(course.id, tree.model_dump(mode="json", by_alias=True))

        if can_manage:
            return tree
        return self._redact(tree, enrolled=enrolled)

    def build_tree(self, db: Session, *, course: Course) -> CurriculumTree:
        sections = crud_curriculum.get_tree(db, course_id=course.id)
        return CurriculumTree(
            course_id=course.id,
            version=course.curriculum_version,
            sections=[section_to_read(section) for section in sections],
        )

    def _redact(self, tree: CurriculumTree, *, enrolled: bool) -> CurriculumTree:
        """Learners never see answer keys; outsiders only see content of free-preview lessons."""
        tree = tree.model_copy(deep=True)
        for section in tree.sections:
            for lesson in section.lessons:
                lesson.questions = []
                if not enrolled and not lesson.is_free_preview:
                    lesson.external_video_id = None
                    lesson.text_content = None
                    lesson.attachments = []
        return tree

    # Sync

    def _check_payload_orders(self, payload: CurriculumSyncPayload) -> None:
        require_sequential_order([s.section_order for s in payload.sections], "Section")
        for section in payload.sections:
            require_sequential_order([l.lesson_order for l in section.lessons], "Lesson")
            for lesson in section.lessons:
                require_sequential_order([q.question_order for q in lesson.questions], "Question")
                for question in lesson.questions:
                    require_sequential_order([o.option_order for o in question.options], "Option")

    async def sync_curriculum(
        self, db: Session, *, course_id: int, payload: CurriculumSyncPayload, current_user_context: UserContext
    ) -> SyncSummary:
        course = self._get_course(db, course_id)
        permission_helper.require_course_mutation_permission(current_user_context, course)
        self._check_payload_orders(payload)

        if payload.expected_version is not None and payload.expected_version != course.curriculum_version:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="The curriculum was changed by another request. Reload it and try again."
            )

        result = SyncResult()
        try:
            with transaction(db):
                state = crud_curriculum.load_state(db, course_id=course.id)
                nodes = await self._plan_from_payload(payload, state)
                self.apply_plan(db, course=course, nodes=nodes, state=state, result=result)
                version = course.curriculum_version
        except SQLAlchemyError as e:
            logger.error(f"Curriculum sync failed for course {course_id}: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to synchronize curriculum."
            )

        logger.info(
            f"Synced curriculum of course {course_id} to version {version}: "
            f"created={dict(result.created)} updated={dict(result.updated)} "
            f"archived={dict(result.archived)} deleted={dict(result.deleted)}"
        )
        await cloudinary_service.delete_unreferenced(db, result.assets_to_delete)
        await cache.invalidate_curriculum(course.id)
        return result.summary(version)

    async def _plan_from_payload(self, payload: CurriculumSyncPayload, state: CurriculumState) -> List[DesiredNode]:
        seen: Dict[str, Set[int]] = {level: set() for level in LEVEL_MODELS}

        def claim(level: str, node_id: Optional[int]) -> Optional[int]:
            if node_id is None:
                return None
            label = LEVEL_LABELS[level]
            if node_id in seen[level]:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Duplicate {label.lower()} id {node_id} in payload."
                )
            if node_id not in state.level(level):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail=f"{label} {node_id} not found in this course."
                )
            seen[level].add(node_id)
            return node_id

        nodes = []
        for section_in in payload.sections:
            section_node = DesiredNode("sections", claim("sections", section_in.id), section_columns(section_in, None))
            for lesson_in in section_in.lessons:
                lesson_id = claim("lessons", lesson_in.id)
                existing = state.lessons.get(lesson_id) if lesson_id else None
                self._guard_type_change(existing, lesson_in, state)
                content = await self._resolve_content(lesson_in, existing)
                lesson_node = DesiredNode(
                    "lessons", lesson_id, {**lesson_base_columns(lesson_in, None), **flatten_content(content)}
                )
                for question_in in lesson_in.questions:
                    question_node = DesiredNode(
                        "questions", claim("questions", question_in.id), question_columns(question_in, None)
                    )
                    question_node.children = [
                        DesiredNode("options", claim("options", option_in.id), option_columns(option_in, None))
                        for option_in in question_in.options
                    ]
                    lesson_node.children.append(question_node)
                for attachment_in in lesson_in.attachments:
                    lesson_node.children.append(DesiredNode(
                        "attachments",
                        claim("attachments", attachment_in.id),
                        {"file_name": attachment_in.file_name},
                        create_columns={"file_url": PENDING_UPLOAD_URL},
                    ))
                for subtitle_in in lesson_in.subtitles:
                    lesson_node.children.append(DesiredNode(
                        "subtitles",
                        claim("subtitles", subtitle_in.id),
                        subtitle_columns(subtitle_in, None),
                        is_default=subtitle_in.is_default,
                    ))
                section_node.children.append(lesson_node)
            nodes.append(section_node)
        return nodes

    def _guard_type_change(self, existing: Optional[Lesson], lesson_in: LessonPayload, state: CurriculumState) -> None:
        if existing is None or existing.lesson_type == lesson_in.lesson_type:
            return
        if existing.lesson_type == LessonTypeEnum.QUIZ and any(
            question.lesson_id == existing.id for question in state.questions.values()
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Remove all questions from quiz lesson {existing.id} before changing its type."
            )

    async def _resolve_content(self, lesson_in: LessonPayload, existing: Optional[Lesson]) -> LessonContent:
        if lesson_in.lesson_type == LessonTypeEnum.TEXT:
            return TextContent(text=lesson_in.text_content)
        if lesson_in.lesson_type == LessonTypeEnum.QUIZ:
            return QuizContent()

        source = lesson_in.video_source_type
        was_video = existing is not None and existing.lesson_type == LessonTypeEnum.VIDEO
        if source == VideoSourceTypeEnum.CLOUDINARY:
            if was_video and existing.video_source_type == VideoSourceTypeEnum.CLOUDINARY:
                current = content_from_record(existing)
                if lesson_in.thumbnail_url is not None:
                    current = current.model_copy(update={"thumbnail_url": lesson_in.thumbnail_url})
                return current
            if existing is not None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Uploaded videos must be added through the lesson video upload endpoint."
                )
            # Structure only; the binary arrives through the upload endpoint.
            return VideoContent(source_type=source, thumbnail_url=lesson_in.thumbnail_url)

        video_id = video_service.extract_video_id(source, lesson_in.external_video_input)
        if not video_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid {source.value} video URL or id: {lesson_in.external_video_input}"
            )
        duration = lesson_in.video_duration_seconds
        unchanged = (
            was_video and existing.video_source_type == source and existing.external_video_id == video_id
        )
        if unchanged:
            if duration is None:
                duration = existing.video_duration_seconds
        elif source == VideoSourceTypeEnum.YOUTUBE and video_service.can_lookup_youtube:
            duration = await video_service.get_youtube_duration(video_id)
        return VideoContent(
            source_type=source,
            external_video_id=video_id,
            duration_seconds=duration,
            thumbnail_url=lesson_in.thumbnail_url,
        )

    def apply_plan(
        self, db: Session, *, course: Course, nodes: List[DesiredNode], state: CurriculumState, result: SyncResult
    ) -> None:
        """Bring the stored tree of ``course`` in line with ``nodes``: removals, then updates and creates."""
        incoming = {level: set() for level in LEVEL_MODELS}
        for node in _walk(nodes):
            if node.id is not None:
                incoming[node.level].add(node.id)

        self._remove_missing(db, state, incoming, result)
        for node in nodes:
            self._upsert(db, node, course.id, course.id, state, result)
        db.flush()
        self._verify_tree(db, course.id)

        if result.changed:
            course.curriculum_version = (course.curriculum_version or 0) + 1
            db.flush()

    def _remove_missing(self, db: Session, state: CurriculumState, incoming: Dict[str, Set[int]], result: SyncResult) -> None:
        removed = {
            level: [record for record_id, record in state.level(level).items() if record_id not in incoming[level]]
            for level in LEVEL_MODELS
        }
        for lesson in removed["lessons"]:
            if is_platform_video(lesson):
                result.assets_to_delete.append(
                    AssetRef(public_id=lesson.external_video_id, resource_type=AssetResourceTypeEnum.VIDEO)
                )
        for attachment in removed["attachments"]:
            if attachment.cloud_storage_id:
                result.assets_to_delete.append(
                    AssetRef(public_id=attachment.cloud_storage_id, resource_type=AssetResourceTypeEnum.RAW)
                )

        for level in ("lessons", "questions", "options"):
            result.archived[level] += crud_curriculum.archive(db, removed[level])
        for level in ("attachments", "subtitles"):
            result.deleted[level] += crud_curriculum.delete(db, removed[level])
        result.deleted["sections"] += crud_curriculum.delete_sections(db, removed["sections"])

    def _upsert(
        self, db: Session, node: DesiredNode, parent_id: int, course_id: int, state: CurriculumState, result: SyncResult
    ):
        columns = {**node.columns, PARENT_COLUMNS[node.level]: parent_id}
        if node.level == "lessons":
            columns["course_id"] = course_id
        existing = state.level(node.level).get(node.id) if node.id is not None else None
        if existing is not None:
            if node.level == "lessons":
                self._schedule_replaced_video(existing, columns, result)
            if apply_changes(existing, columns):
                result.updated[node.level] += 1
            record = existing
        else:
            record = LEVEL_MODELS[node.level](**columns, **node.create_columns)
            db.add(record)
            db.flush()
            result.created[node.level] += 1
        node.record = record

        for child in node.children:
            self._upsert(db, child, record.id, course_id, state, result)
        if node.level == "lessons":
            self._apply_default_subtitle(db, node, result)
        return record

    def _schedule_replaced_video(self, lesson: Lesson, columns: dict, result: SyncResult) -> None:
        if not is_platform_video(lesson):
            return
        keeps_video = (
            columns.get("lesson_type") == LessonTypeEnum.VIDEO
            and columns.get("video_source_type") == VideoSourceTypeEnum.CLOUDINARY
            and columns.get("external_video_id") == lesson.external_video_id
        )
        if not keeps_video:
            result.assets_to_delete.append(
                AssetRef(public_id=lesson.external_video_id, resource_type=AssetResourceTypeEnum.VIDEO)
            )

    def _apply_default_subtitle(self, db: Session, lesson_node: DesiredNode, result: SyncResult) -> None:
        subtitles = [child for child in lesson_node.children if child.level == "subtitles"]
        default_id = next((child.record.id for child in subtitles if child.is_default), None)
        if any(bool(child.record.is_default) != (child.record.id == default_id) for child in subtitles):
            crud_subtitle.set_default(db, lesson_id=lesson_node.record.id, subtitle_id=default_id)
            result.updated["subtitles"] += 1

    def _verify_tree(self, db: Session, course_id: int) -> None:
        snapshot = crud_curriculum.snapshot_orders(db, course_id=course_id)
        require_sequential_order(snapshot.sections, "Section")
        for orders in snapshot.lessons.values():
            require_sequential_order(orders, "Lesson")
        for orders in snapshot.questions.values():
            require_sequential_order(orders, "Question")
        for options in snapshot.options.values():
            require_sequential_order([order for order, _ in options], "Option")
            if len(options) < 2 or sum(1 for _, correct in options if correct) != 1:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Every quiz question must have at least two options and exactly one correct answer."
                )
        if snapshot.non_quiz_lessons_with_questions:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only QUIZ lessons can have questions."
            )

curriculum_service = CurriculumService()
