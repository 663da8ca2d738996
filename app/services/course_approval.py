import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.cache import cache
from app.core.constants import (
    COURSE_TRANSITIONS, ApprovalRequestTypeEnum, ApprovalStatusEnum, CourseStatusEnum, NotificationTypeEnum,
)
from app.core.database import transaction
from app.crud.account import account as crud_account
from app.crud.course_approval_request import course_approval_request as crud_approval_request
from app.crud.curriculum import curriculum as crud_curriculum
from app.models.course import Course as CourseModel
from app.models.course_approval_request import CourseApprovalRequest as ApprovalRequestModel
from app.schemas.course import Course as CourseSchema, CourseFeatureUpdate
from app.schemas.course_approval import CourseApprovalRequest, CourseReview, CourseSubmission
from app.schemas.user import UserContext
from app.services.cloudinary import cloudinary_service
from app.services.course import course_service
from app.services.course_update import course_update_service
from app.services.curriculum import SyncResult
from app.services.notification import notification_service
from app.utils.permission import PermissionHelper as permission_helper

logger = logging.getLogger(__name__)

REVIEW_NOTIFICATIONS = {
    ApprovalStatusEnum.APPROVED: (NotificationTypeEnum.COURSE_APPROVED, "Your course '{name}' has been approved."),
    ApprovalStatusEnum.REJECTED: (NotificationTypeEnum.COURSE_REJECTED, "Your course '{name}' has been rejected."),
    ApprovalStatusEnum.NEEDS_REVISION: (
        NotificationTypeEnum.COURSE_NEEDS_REVISION, "Your course '{name}' needs revision before it can be published."
    ),
}


def transition(course: CourseModel, target: CourseStatusEnum) -> None:
    if target not in COURSE_TRANSITIONS[course.status]:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Course cannot move from {course.status.value} to {target.value}."
        )
    course.status = target


class CourseApprovalService:

    def _check_submittable(self, db: Session, course: CourseModel) -> None:
        if crud_approval_request.get_pending_for_course(db, course_id=course.id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This course already has a pending approval request."
            )
        if course.status not in (CourseStatusEnum.DRAFT, CourseStatusEnum.REJECTED):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only DRAFT or REJECTED courses can be submitted for approval. Current status: {course.status.value}."
            )
        if crud_curriculum.count_sections(db, course_id=course.id) == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Course must have at least one section before it can be submitted."
            )
        if crud_curriculum.count_lessons(db, course_id=course.id) == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Course must have at least one lesson before it can be submitted."
            )
        if crud_curriculum.count_valid_lessons(db, course_id=course.id) == 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Course must have at least one lesson with a name and a valid type."
            )

    def submit_course(
        self, db: Session, course_id: int, submission_in: CourseSubmission, current_user_context: UserContext
    ) -> CourseApprovalRequest:
        course = course_service.get_course_or_404(db, course_id)
        if not permission_helper.is_course_owner(current_user_context, course):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only the course instructor can submit it for approval."
            )
        self._check_submittable(db, course)

        request_type = (
            ApprovalRequestTypeEnum.RE_SUBMISSION if course.status == CourseStatusEnum.REJECTED
            else ApprovalRequestTypeEnum.INITIAL_SUBMISSION
        )
        with transaction(db):
            transition(course, CourseStatusEnum.PENDING)
            request = crud_approval_request.create(db, obj_in={
                "course_id": course.id,
                "instructor_id": current_user_context.account.id,
                "request_type": request_type,
                "status": ApprovalStatusEnum.PENDING,
                "instructor_notes": submission_in.notes,
            })

        logger.info(f"Course {course.id} submitted for approval (request {request.id}, {request_type.value})")
        notification_service.notify(
            db,
            account_ids=[admin.id for admin in crud_account.get_admins(db)],
            notification_type=NotificationTypeEnum.COURSE_SUBMITTED,
            message=f"Course '{course.name}' was submitted for approval.",
            related_entity=("CourseApprovalRequest", request.id),
        )
        return CourseApprovalRequest.model_validate(request)

    def _get_request_or_404(self, db: Session, request_id: int) -> ApprovalRequestModel:
        request = crud_approval_request.get(db, id=request_id)
        if not request:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Approval request not found.")
        return request

    async def review_request(
        self, db: Session, request_id: int, review_in: CourseReview, current_user_context: UserContext
    ) -> CourseApprovalRequest:
        permission_helper.require_admin(current_user_context, "Only admins can review courses.")
        request = self._get_request_or_404(db, request_id)
        if request.status != ApprovalStatusEnum.PENDING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This approval request has already been reviewed."
            )
        course = course_service.get_course_or_404(db, request.course_id)

        now = datetime.now(timezone.utc)
        result = SyncResult()
        live_course_id = None
        try:
            with transaction(db):
                request.status = review_in.decision
                request.admin_id = current_user_context.account.id
                request.admin_notes = review_in.admin_notes
                request.reviewed_at = now
                if review_in.decision != ApprovalStatusEnum.APPROVED:
                    # NEEDS_REVISION is kept on the request; the course itself goes back to REJECTED.
                    transition(course, CourseStatusEnum.REJECTED)
                elif course.live_course_id is not None:
                    live_course_id = course_update_service.merge_into_live(db, draft=course, result=result).id
                else:
                    transition(course, CourseStatusEnum.PUBLISHED)
                    course.published_at = now
        except SQLAlchemyError as e:
            logger.error(f"Review of approval request {request_id} failed: {e}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to review the course."
            )

        logger.info(f"Approval request {request_id} reviewed as {review_in.decision.value} by account {current_user_context.account.id}")
        if live_course_id is not None:
            await cloudinary_service.delete_unreferenced(db, result.assets_to_delete)
            await cache.invalidate_curriculum(live_course_id, course.id)

        notification_type, template = REVIEW_NOTIFICATIONS[review_in.decision]
        message = template.format(name=course.name)
        if review_in.admin_notes:
            message = f"{message} Notes: {review_in.admin_notes}"
        notification_service.notify(
            db,
            account_ids=[request.instructor_id],
            notification_type=notification_type,
            message=message,
            related_entity=("CourseApprovalRequest", request.id),
        )
        return CourseApprovalRequest.model_validate(request)

    def toggle_feature(
        self, db: Session, course_id: int, feature_in: CourseFeatureUpdate, current_user_context: UserContext
    ) -> CourseSchema:
        permission_helper.require_admin(current_user_context, "Only admins can feature courses.")
        course = course_service.get_course_or_404(db, course_id)
        if course.status != CourseStatusEnum.PUBLISHED:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only published courses can be featured."
            )
        with transaction(db):
            course.is_featured = feature_in.is_featured
        return CourseSchema.model_validate(course)

    def list_requests(
        self, db: Session, current_user_context: UserContext, *, request_status: Optional[ApprovalStatusEnum] = None,
        course_id: Optional[int] = None, skip: int = 0, limit: int = 100
    ) -> List[CourseApprovalRequest]:
        permission_helper.require_admin(current_user_context)
        requests = crud_approval_request.get_filtered(
            db, status=request_status, course_id=course_id, skip=skip, limit=limit
        )
        return [CourseApprovalRequest.model_validate(request) for request in requests]

    def get_request(self, db: Session, request_id: int, current_user_context: UserContext) -> CourseApprovalRequest:
        request = self._get_request_or_404(db, request_id)
        if not permission_helper.is_admin(current_user_context) and request.instructor_id != current_user_context.account.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to view this approval request."
            )
        return CourseApprovalRequest.model_validate(request)

course_approval_service = CourseApprovalService()
