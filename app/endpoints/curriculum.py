from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.schemas.curriculum import AttachmentRead, CurriculumSyncPayload, CurriculumTree, LessonRead, SyncSummary
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.services.curriculum import curriculum_service
from app.services.lesson import lesson_service
from app.utils import deps

router = APIRouter()

MAX_ATTACHMENT_SIZE = 50 * 1024 * 1024


@router.get("/courses/{course_id}/curriculum", response_model=APIResponse[CurriculumTree])
async def get_course_curriculum(
    course_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    tree = await curriculum_service.get_curriculum(db, course_id=course_id, current_user_context=context)
    return APIResponse(message="Curriculum retrieved successfully", data=tree)


@router.put("/courses/{course_id}/curriculum", response_model=APIResponse[SyncSummary])
async def sync_course_curriculum(
    course_id: int,
    payload: CurriculumSyncPayload,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    """Replace the course curriculum with the submitted tree. Nodes with an id are updated, the rest created."""
    summary = await curriculum_service.sync_curriculum(db, course_id=course_id, payload=payload, current_user_context=context)
    return APIResponse(message="Curriculum synchronized successfully", data=summary)


@router.put("/lessons/{lesson_id}/video", response_model=APIResponse[LessonRead])
async def upload_lesson_video(
    lesson_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    if not (file.content_type or "").startswith("video/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid file type. Please upload a video.")
    file_bytes = await file.read()
    lesson = await lesson_service.upload_lesson_video(db, lesson_id=lesson_id, file=file_bytes, current_user_context=context)
    return APIResponse(message="Lesson video uploaded successfully", data=lesson)


@router.put("/lessons/attachments/{attachment_id}/file", response_model=APIResponse[AttachmentRead])
async def upload_attachment_file(
    attachment_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    file_bytes = await file.read()
    if len(file_bytes) > MAX_ATTACHMENT_SIZE:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File too large. Maximum file size is 50MB.")
    attachment = await lesson_service.upload_attachment_file(
        db, attachment_id=attachment_id, file=file_bytes,
        content_type=file.content_type or "application/octet-stream", current_user_context=context
    )
    return APIResponse(message="Attachment uploaded successfully", data=attachment)
