from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union
from pydantic import BaseModel
from sqlalchemy.orm import Session
from app.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


def apply_changes(db_obj: Any, values: Dict[str, Any]) -> bool:
    """Set only the attributes whose value differs. Returns True if anything changed."""
    changed = False
    for field, value in values.items():
        if getattr(db_obj, field) != value:
            setattr(db_obj, field, value)
            changed = True
    return changed


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Repository over one model. Never commits: the caller owns the transaction."""

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        query = db.query(self.model).filter(self.model.id == id)
        if hasattr(self.model, 'is_archived'):
            query = query.filter(self.model.is_archived == False)
        return query.first()

    def create(self, db: Session, *, obj_in: Union[CreateSchemaType, Dict[str, Any]]) -> ModelType:
        if isinstance(obj_in, dict):
            obj_in_data = obj_in
        else:
            obj_in_data = obj_in.model_dump()
        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        db.flush() # Populate ID
        return db_obj

    def update(
        self, db: Session, *, db_obj: ModelType, obj_in: Union[UpdateSchemaType, Dict[str, Any]]
    ) -> bool:
        if isinstance(obj_in, dict):
            update_data = obj_in
        else:
            update_data = obj_in.model_dump(exclude_unset=True)
        changed = apply_changes(db_obj, update_data)
        if changed:
            db.flush()
        return changed
