from typing import List, Optional
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.core.constants import CourseStatusEnum
from app.schemas.course import Course, CourseCreate, CourseUpdate
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.services.course import course_service
from app.services.course_update import course_update_service
from app.utils import deps

router = APIRouter()

MAX_IMAGE_SIZE = 10 * 1024 * 1024


@router.post("/", response_model=APIResponse[Course], status_code=status.HTTP_201_CREATED)
def create_course(
    *,
    db: Session = Depends(deps.get_db),
    course_in: CourseCreate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    new_course = course_service.create_course(db, course_in=course_in, current_user_context=context)
    return APIResponse(message="Course created successfully", data=new_course)


@router.get("/", response_model=APIResponse[List[Course]])
def get_all_courses(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    course_status: Optional[CourseStatusEnum] = None,
    is_featured: Optional[bool] = None,
    instructor_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100
):
    courses = course_service.list_courses(
        db, current_user_context=context, course_status=course_status, is_featured=is_featured,
        instructor_id=instructor_id, skip=skip, limit=limit
    )
    return APIResponse(message="Courses retrieved successfully", data=courses)


@router.get("/{course_id}", response_model=APIResponse[Course])
def read_course(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    course = course_service.get_course(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Course retrieved successfully", data=course)


@router.put("/{course_id}", response_model=APIResponse[Course])
def update_course(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    course_in: CourseUpdate,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    updated_course = course_service.update_course(db, course_id=course_id, course_in=course_in, current_user_context=context)
    return APIResponse(message="Course updated successfully", data=updated_course)


@router.delete("/{course_id}", response_model=APIResponse)
async def delete_course(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    await course_service.delete_course(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Course deleted successfully")


@router.put("/{course_id}/thumbnail", response_model=APIResponse[Course])
async def upload_course_thumbnail(
    course_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file type. Please upload an image.")
    file_bytes = await file.read()
    if len(file_bytes) > MAX_IMAGE_SIZE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large. Maximum file size is 10MB.")

    course = await course_service.upload_thumbnail(db, course_id=course_id, file=file_bytes, current_user_context=context)
    return APIResponse(message="Course thumbnail uploaded successfully", data=course)


@router.put("/{course_id}/intro-video", response_model=APIResponse[Course])
async def upload_course_intro_video(
    course_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    if not (file.content_type or "").startswith("video/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file type. Please upload a video.")
    file_bytes = await file.read()
    course = await course_service.upload_intro_video(db, course_id=course_id, file=file_bytes, current_user_context=context)
    return APIResponse(message="Course intro video uploaded successfully", data=course)


@router.post("/{course_id}/archive", response_model=APIResponse[Course])
def archive_course(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    course = course_service.archive_course(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Course archived successfully", data=course)


@router.post("/{course_id}/update-session", response_model=APIResponse[Course], status_code=status.HTTP_201_CREATED)
def create_update_session(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Open an editable DRAFT copy of a published course."""
    draft = course_update_service.create_update_session(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Update draft created successfully", data=draft)


@router.post("/{course_id}/cancel-update", response_model=APIResponse)
async def cancel_update(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    await course_update_service.cancel_update(db, draft_id=course_id, current_user_context=context)
    return APIResponse(message="Update draft cancelled successfully")
