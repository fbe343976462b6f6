from typing import Any, Generic, Optional, Type, TypeVar, Union
from pydantic import BaseModel
from sqlalchemy.orm import Session

from koko_api.database import Base


ModelType = TypeVar("ModelType", bound=Base)


class BaseService(Generic[ModelType]):
    def __init__(self, model: Type[ModelType]):
        """
        Generic data access with default methods to Create, Read, Update and Delete.

        **Parameters**

        * `model`: A SQLAlchemy model class

        Methods taking `commit` leave the transaction open when it is False so
        callers can group several writes.
        """
        self.model = model

    def create(self, db: Session, *, obj_in: Union[BaseModel, dict[str, Any]], commit: bool = True) -> ModelType:
        obj_in_data = obj_in.model_dump() if isinstance(obj_in, BaseModel) else dict(obj_in)
        db_obj = self.model(**obj_in_data)
        db.add(db_obj)
        if commit:
            db.commit()
            db.refresh(db_obj)
        else:
            db.flush()
        return db_obj

    def update(
        self, db: Session, *, db_obj: ModelType, obj_in: Union[BaseModel, dict[str, Any]]
    ) -> ModelType:
        if isinstance(obj_in, BaseModel):
            update_data = obj_in.model_dump(exclude_unset=True)
        else:
            update_data = dict(obj_in)
        for field, value in update_data.items():
            setattr(db_obj, field, value)

        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def get(self, db: Session, id) -> Optional[ModelType]:
        return db.get(self.model, id)

    def delete(self, db: Session, *, id, commit: bool = True) -> bool:
        obj = db.get(self.model, id)
        if obj is None:
            return False
        db.delete(obj)
        if commit:
            db.commit()
        else:
            db.flush()
        return True
