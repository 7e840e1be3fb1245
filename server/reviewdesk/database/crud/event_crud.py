import logging
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel
from reviewdesk.database.crud.base_crud import CRUDBase
from reviewdesk.database.models import Event
from reviewdesk.schemas.event import EventCreate
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class EventUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[datetime] = None
    review_deadline: Optional[datetime] = None
    banner_url: Optional[str] = None


class EventCRUD(CRUDBase[Event, EventCreate, EventUpdate]):
    def create_for(
        self, db: Session, *, obj_in: EventCreate, created_by: uuid.UUID
    ) -> Event:
        data = obj_in.model_dump()
        data["created_by"] = created_by
        return self.create(db, obj_in=data)

    def list_by_date(self, db: Session) -> List[Event]:
        return db.query(Event).order_by(Event.date.asc()).all()

    def list_with_open_deadline(self, db: Session, *, now: datetime) -> List[Event]:
        """Events whose review deadline is still ahead of (or equal to) `now`."""
        return (
            db.query(Event)
            .filter(Event.review_deadline.is_not(None), Event.review_deadline >= now)
            .order_by(Event.review_deadline.asc())
            .all()
        )


event_crud = EventCRUD(Event)
