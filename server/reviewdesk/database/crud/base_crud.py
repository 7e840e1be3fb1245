import logging
import uuid
from typing import Any, Dict, Generic, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from reviewdesk.database.models import Base
from reviewdesk.workflow.errors import ValidationError
from sqlalchemy.orm import Session

# Type variable for SQLAlchemy models
ModelType = TypeVar("ModelType", bound=Base)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

logger = logging.getLogger(__name__)


def parse_id(value: Any, label: str = "id") -> uuid.UUID:
    """Coerce a path/body identifier to a UUID, raising ValidationError when malformed."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(f"Invalid {label}")


# Generic CRUD base class with type safety
class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    def __init__(self, model: Type[ModelType]):
        """
        CRUD object with default methods to Create, Read, Update, Delete
        """
        self.model = model

    def _commit(self, db: Session, action: str) -> None:
        """Commit the session, rolling back and re-raising on failure."""
        try:
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(
                f"Failed to {action} {self.model.__name__}: {e}", exc_info=True
            )
            raise

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        """Get a single record by ID"""
        record_id = parse_id(id)
        try:
            return db.query(self.model).filter(self.model.id == record_id).first()
        except Exception as e:
            logger.error(
                f"Error retrieving {self.model.__name__} with ID {id}: {str(e)}",
                exc_info=True,
            )
            return None

    def count_by(self, db: Session, **filters) -> int:
        query = db.query(self.model)
        for field, value in filters.items():
            if hasattr(self.model, field):
                query = query.filter(getattr(self.model, field) == value)
        return query.count()

    def create(
        self,
        db: Session,
        *,
        obj_in: Union[CreateSchemaType, Dict[str, Any]],
    ) -> ModelType:
        """Create a new record. Errors roll back the session and propagate."""
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump()
        db_obj = self.model(**data)
        db.add(db_obj)
        self._commit(db, "create")
        db.refresh(db_obj)
        return db_obj

    def update(
        self,
        db: Session,
        *,
        db_obj: ModelType,
        obj_in: Union[UpdateSchemaType, Dict[str, Any]],
        commit: bool = True,
    ) -> ModelType:
        """
        Update a record with the fields set on `obj_in`.

        With `commit=False` the change is only flushed, leaving the caller to
        commit or roll back the surrounding transaction.
        """
        changes = (
            obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        )
        for field, value in changes.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        db.add(db_obj)
        if not commit:
            db.flush()
            return db_obj
        self._commit(db, "update")
        db.refresh(db_obj)
        return db_obj

    def remove(self, db: Session, *, id: Any) -> Optional[ModelType]:
        """Delete a record; cascades are left to the model relationships"""
        obj = self.get(db, id)
        if not obj:
            return None
        db.delete(obj)
        self._commit(db, "remove")
        return obj
