import logging
from typing import Iterable, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.constants import NotificationTypeEnum
from app.core.database import transaction
from app.crud.notification import notification as crud_notification
from app.models.notification import Notification

logger = logging.getLogger(__name__)

RelatedEntity = Tuple[str, int]

class NotificationService:
    def notify(
        self, db: Session, *, account_ids: Iterable[int], notification_type: NotificationTypeEnum,
        message: str, related_entity: Optional[RelatedEntity] = None
    ) -> int:
        """Best-effort fan-out. Runs in its own transaction after the primary one has committed."""
        account_ids = list(dict.fromkeys(account_ids))
        if not account_ids:
            return 0
        entity_type, entity_id = related_entity or (None, None)
        try:
            with transaction(db):
                for account_id in account_ids:
                    crud_notification.create(db, obj_in={
                        "account_id": account_id,
                        "notification_type": notification_type.value,
                        "message": message,
                        "related_entity_type": entity_type,
                        "related_entity_id": entity_id,
                    })
        except SQLAlchemyError as e:
            logger.error(f"Failed to send {notification_type.value} notification to {account_ids}: {e}")
            return 0
        logger.info(f"Sent {notification_type.value} notification to {len(account_ids)} account(s)")
        return len(account_ids)

    def get_account_notifications(self, db: Session, *, account_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return crud_notification.get_for_account(db, account_id=account_id, skip=skip, limit=limit)

    def mark_notification_as_read(self, db: Session, *, account_id: int, notification_id: int) -> Notification:
        notification = crud_notification.get_for_account_by_id(db, account_id=account_id, notification_id=notification_id)
        if not notification:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found.")
        with transaction(db):
            crud_notification.mark_as_read(db, db_obj=notification)
        return notification

notification_service = NotificationService()
