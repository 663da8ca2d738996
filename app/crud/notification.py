from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.notification import Notification

class CRUDNotification(CRUDBase[Notification, Notification, Notification]):

    def get_for_account(self, db: Session, *, account_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return (
            db.query(self.model)
            .filter(self.model.account_id == account_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def get_for_account_by_id(self, db: Session, *, account_id: int, notification_id: int) -> Optional[Notification]:
        return db.query(self.model).filter(
            self.model.id == notification_id, self.model.account_id == account_id
        ).first()

    def mark_as_read(self, db: Session, *, db_obj: Notification) -> Notification:
        db_obj.is_read = True
        db.flush()
        return db_obj

notification = CRUDNotification(Notification)
