from typing import List
from sqlalchemy.orm import Session

from app.core.constants import ADMIN_ROLES
from app.crud.base import CRUDBase
from app.models.account import Account

class CRUDAccount(CRUDBase[Account, Account, Account]):

    def get_admins(self, db: Session) -> List[Account]:
        return (
            db.query(self.model)
            .filter(self.model.role.in_(ADMIN_ROLES), self.model.is_active == True)
            .order_by(self.model.id)
            .all()
        )

account = CRUDAccount(Account)
