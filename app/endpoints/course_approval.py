from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.constants import ApprovalStatusEnum
from app.schemas.course import Course, CourseFeatureUpdate
from app.schemas.course_approval import CourseApprovalRequest, CourseReview, CourseSubmission
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.services.course_approval import course_approval_service
from app.utils import deps

router = APIRouter()


@router.get("/reviews", response_model=APIResponse[List[CourseApprovalRequest]])
def get_approval_requests(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    request_status: Optional[ApprovalStatusEnum] = None,
    course_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100
):
    requests = course_approval_service.list_requests(
        db, current_user_context=context, request_status=request_status, course_id=course_id, skip=skip, limit=limit
    )
    return APIResponse(message="Approval requests retrieved successfully", data=requests)


@router.get("/reviews/{request_id}", response_model=APIResponse[CourseApprovalRequest])
def get_approval_request(
    request_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    request = course_approval_service.get_request(db, request_id=request_id, current_user_context=context)
    return APIResponse(message="Approval request retrieved successfully", data=request)


@router.patch("/reviews/{request_id}", response_model=APIResponse[CourseApprovalRequest])
async def review_course(
    request_id: int,
    review_in: CourseReview,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    request = await course_approval_service.review_request(
        db, request_id=request_id, review_in=review_in, current_user_context=context
    )
    return APIResponse(message="Course reviewed successfully", data=request)


@router.post("/{course_id}/submit", response_model=APIResponse[CourseApprovalRequest])
def submit_course(
    course_id: int,
    submission_in: Optional[CourseSubmission] = None,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    request = course_approval_service.submit_course(
        db, course_id=course_id, submission_in=submission_in or CourseSubmission(), current_user_context=context
    )
    return APIResponse(message="Course submitted for approval", data=request)


@router.patch("/{course_id}/feature", response_model=APIResponse[Course])
def toggle_course_feature(
    course_id: int,
    feature_in: CourseFeatureUpdate,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    course = course_approval_service.toggle_feature(db, course_id=course_id, feature_in=feature_in, current_user_context=context)
    return APIResponse(message="Course feature flag updated successfully", data=course)
