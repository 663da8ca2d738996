from datetime import datetime
from typing import Optional

from app.schemas.base import CamelModel


class Notification(CamelModel):
    id: int
    account_id: int
    notification_type: str
    message: str
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[int] = None
    is_read: bool
    created_at: Optional[datetime] = None
