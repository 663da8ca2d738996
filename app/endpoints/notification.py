from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.schemas.notification import Notification
from app.schemas.response import APIResponse
from app.schemas.user import UserContext
from app.services.notification import notification_service
from app.utils import deps

router = APIRouter()

@router.get("/", response_model=APIResponse[List[Notification]])
def get_my_notifications(
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context),
    skip: int = 0,
    limit: int = 100
):
    """Retrieve notifications for the current account, newest first."""
    notifications = notification_service.get_account_notifications(db, account_id=context.account.id, skip=skip, limit=limit)
    return APIResponse(message="Notifications fetched successfully", data=[Notification.model_validate(n) for n in notifications])

@router.patch("/{notification_id}/read", response_model=APIResponse[Notification])
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(deps.get_db),
    context: UserContext = Depends(deps.get_current_user_with_context)
):
    notification = notification_service.mark_notification_as_read(db, account_id=context.account.id, notification_id=notification_id)
    return APIResponse(message="Notification marked as read", data=Notification.model_validate(notification))
